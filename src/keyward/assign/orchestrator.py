"""Assign clients and secrets to groups.

The orchestrator resolves the group and target by name and issues at most
one membership mutation. Missing clients are created on the way. A run
against a group that already holds the target is a no-op.

Input is validated before any remote call, so an invalid kind or name never
reaches the directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from keyward.assign.errors import InvalidArgumentError, NotFoundError
from keyward.assign.secret_names import parse_display_name
from keyward.assign.validation import require_valid_name
from keyward.directory.client import DirectoryNotFoundError
from keyward.models import (
    AssignmentOutcome,
    AssignmentRequest,
    AssignType,
    Client,
    Group,
    GroupDetail,
    SanitizedSecret,
)

logger = logging.getLogger(__name__)


class RemoteDirectory(Protocol):
    """Query and mutation surface of the secrets directory."""

    async def get_group_by_name(self, name: str) -> Group: ...

    async def get_client_by_name(self, name: str) -> Client: ...

    async def create_client(self, name: str) -> None: ...

    async def get_sanitized_secret_by_name_and_version(
        self, name: str, version: str
    ) -> SanitizedSecret: ...

    async def group_details_for_id(self, group_id: int) -> GroupDetail: ...

    async def enroll_client_in_group_by_ids(self, client_id: int, group_id: int) -> None: ...

    async def grant_secret_to_group_by_ids(self, secret_id: int, group_id: int) -> None: ...

    async def evict_client_from_group_by_ids(self, client_id: int, group_id: int) -> None: ...

    async def revoke_secret_from_group_by_ids(self, secret_id: int, group_id: int) -> None: ...


class Resolution(str, Enum):
    """How a client was obtained."""

    FOUND = "found"
    CREATED = "created"


@dataclass(frozen=True)
class ClientResolution:
    """A resolved client and whether this run had to create it."""

    client: Client
    kind: Resolution

    @property
    def created(self) -> bool:
        return self.kind is Resolution.CREATED


def parse_assign_type(value: str | list[str] | tuple[str, ...] | None) -> AssignType:
    """Turn the raw ``--type`` value into an AssignType.

    Accepts a single token or a sequence holding exactly one token. The
    token is lowercased but not trimmed.
    """
    if value is None:
        raise InvalidArgumentError("Assignment type must be specified (client or secret)")

    tokens = [value] if isinstance(value, str) else list(value)
    if len(tokens) != 1:
        raise InvalidArgumentError(
            "Exactly one assignment type must be specified (client or secret)"
        )

    token = (tokens[0] or "").lower()
    try:
        return AssignType(token)
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid assignment type {tokens[0]!r}: must be one of client, secret"
        ) from None


def already_assigned(detail: GroupDetail, assign_type: AssignType, target_id: int) -> bool:
    """Check whether ``target_id`` is already a member of the group snapshot."""
    if assign_type is AssignType.CLIENT:
        return target_id in detail.client_ids()
    return target_id in detail.secret_ids()


class AssignmentOrchestrator:
    """Drives assign and unassign runs against a RemoteDirectory."""

    def __init__(self, directory: RemoteDirectory):
        self._directory = directory

    async def run(self, request: AssignmentRequest) -> AssignmentOutcome:
        """Assign ``request.name`` to ``request.group``."""
        assign_type = self._validate(request)

        if assign_type is AssignType.CLIENT:
            return await self._assign_client(request.name, request.group)
        return await self._assign_secret(request.name, request.group)

    async def unassign(self, request: AssignmentRequest) -> AssignmentOutcome:
        """Remove ``request.name`` from ``request.group``.

        Unlike ``run``, a missing client is an error and is never created.
        """
        assign_type = self._validate(request)
        group = await self._resolve_group(request.group)

        if assign_type is AssignType.CLIENT:
            target_id = (await self._resolve_client(request.name)).id
        else:
            target_id = (await self._resolve_secret(request.name)).id

        detail = await self._directory.group_details_for_id(group.id)
        changed = already_assigned(detail, assign_type, target_id)

        if not changed:
            logger.info(
                "%s %s is not assigned to group %s, nothing to do",
                assign_type.value, request.name, group.name,
            )
        elif assign_type is AssignType.CLIENT:
            logger.debug("Evicting client %s from group %s", target_id, group.id)
            await self._directory.evict_client_from_group_by_ids(target_id, group.id)
            logger.info("Evicted client %s from group %s", request.name, group.name)
        else:
            logger.debug("Revoking secret %s from group %s", target_id, group.id)
            await self._directory.revoke_secret_from_group_by_ids(target_id, group.id)
            logger.info("Revoked secret %s from group %s", request.name, group.name)

        return AssignmentOutcome(
            assign_type=assign_type,
            name=request.name,
            group=group.name,
            group_id=group.id,
            target_id=target_id,
            changed=changed,
            unassign=True,
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate(self, request: AssignmentRequest) -> AssignType:
        assign_type = parse_assign_type(request.assign_type)
        require_valid_name(request.group, "group")
        require_valid_name(request.name, assign_type.value)
        if assign_type is AssignType.SECRET:
            parse_display_name(request.name)
        return assign_type

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    async def _resolve_group(self, name: str) -> Group:
        try:
            return await self._directory.get_group_by_name(name)
        except DirectoryNotFoundError as e:
            raise NotFoundError(f"Group not found: {name}", kind="group", name=name) from e

    async def _resolve_client(self, name: str) -> Client:
        try:
            return await self._directory.get_client_by_name(name)
        except DirectoryNotFoundError as e:
            raise NotFoundError(f"Client not found: {name}", kind="client", name=name) from e

    async def _resolve_secret(self, display_name: str) -> SanitizedSecret:
        base, version = parse_display_name(display_name)
        try:
            return await self._directory.get_sanitized_secret_by_name_and_version(base, version)
        except DirectoryNotFoundError as e:
            raise NotFoundError(
                f"Secret not found: {display_name}", kind="secret", name=display_name
            ) from e

    async def get_or_create_client(self, name: str) -> ClientResolution:
        """Look up a client by name, creating it if it doesn't exist.

        After creation the client is always re-read by name to obtain its
        server-assigned id.
        """
        try:
            client = await self._directory.get_client_by_name(name)
        except DirectoryNotFoundError:
            logger.info("Client %s not found, creating it", name)
            await self._directory.create_client(name)
            client = await self._directory.get_client_by_name(name)
            logger.info("Created client %s (id=%s)", name, client.id)
            return ClientResolution(client=client, kind=Resolution.CREATED)
        return ClientResolution(client=client, kind=Resolution.FOUND)

    # -------------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------------

    async def _assign_client(self, name: str, group_name: str) -> AssignmentOutcome:
        group = await self._resolve_group(group_name)
        resolution = await self.get_or_create_client(name)
        client = resolution.client

        detail = await self._directory.group_details_for_id(group.id)
        changed = not already_assigned(detail, AssignType.CLIENT, client.id)

        if changed:
            logger.debug("Enrolling client %s in group %s", client.id, group.id)
            await self._directory.enroll_client_in_group_by_ids(client.id, group.id)
            logger.info("Enrolled client %s in group %s", name, group.name)
        else:
            logger.info("Client %s already in group %s", name, group.name)

        return AssignmentOutcome(
            assign_type=AssignType.CLIENT,
            name=name,
            group=group.name,
            group_id=group.id,
            target_id=client.id,
            client_created=resolution.created,
            changed=changed,
        )

    async def _assign_secret(self, display_name: str, group_name: str) -> AssignmentOutcome:
        group = await self._resolve_group(group_name)
        secret = await self._resolve_secret(display_name)

        detail = await self._directory.group_details_for_id(group.id)
        changed = not already_assigned(detail, AssignType.SECRET, secret.id)

        if changed:
            logger.debug("Granting secret %s to group %s", secret.id, group.id)
            await self._directory.grant_secret_to_group_by_ids(secret.id, group.id)
            logger.info("Granted secret %s to group %s", display_name, group.name)
        else:
            logger.info("Secret %s already granted to group %s", display_name, group.name)

        return AssignmentOutcome(
            assign_type=AssignType.SECRET,
            name=display_name,
            group=group.name,
            group_id=group.id,
            target_id=secret.id,
            changed=changed,
        )
