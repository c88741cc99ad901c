"""Core domain models for the secrets directory."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Separates a secret's base name from its version in a display name.
VERSION_DELIMITER = ".."


class DirectoryModel(BaseModel):
    """Base for records returned by the directory admin API.

    The API speaks camelCase; unknown fields are ignored so newer servers
    don't break older clients.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AssignType(str, Enum):
    """Kind of object being assigned to a group."""

    CLIENT = "client"
    SECRET = "secret"


class Group(DirectoryModel):
    """An access-control collection of clients and secrets."""

    id: int = Field(..., description="Opaque numeric identifier")
    name: str = Field(..., description="Unique group name")
    description: str | None = Field(default=None, description="Free-form description")
    created_at: datetime | None = Field(default=None, alias="creationDate")
    updated_at: datetime | None = Field(default=None, alias="updateDate")
    created_by: str | None = Field(default=None, alias="createdBy")
    metadata: dict[str, str] = Field(default_factory=dict)


class Client(DirectoryModel):
    """An identity that can be enrolled into groups."""

    id: int = Field(..., description="Opaque numeric identifier")
    name: str = Field(..., description="Unique client name")
    description: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    created_by: str | None = Field(default=None, alias="createdBy")
    enabled: bool = True
    automation_allowed: bool = Field(default=False, alias="automationAllowed")


class SanitizedSecret(DirectoryModel):
    """Metadata view of a secret, never carrying the secret value."""

    id: int = Field(..., description="Opaque numeric identifier")
    name: str = Field(..., description="Base name, without version")
    version: str = Field(default="", description="Hex version token, empty if unversioned")
    description: str | None = None
    checksum: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    created_by: str | None = Field(default=None, alias="createdBy")
    metadata: dict[str, str] = Field(default_factory=dict)
    type: str | None = None

    @property
    def display_name(self) -> str:
        """Name shown to operators: ``<name>`` or ``<name>..<version>``."""
        if not self.version:
            return self.name
        return f"{self.name}{VERSION_DELIMITER}{self.version}"


class GroupDetail(DirectoryModel):
    """A group together with its current clients and secrets."""

    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = Field(default=None, alias="creationDate")
    metadata: dict[str, Any] = Field(default_factory=dict)
    clients: list[Client] = Field(default_factory=list)
    secrets: list[SanitizedSecret] = Field(default_factory=list)

    def client_ids(self) -> set[int]:
        return {c.id for c in self.clients}

    def secret_ids(self) -> set[int]:
        return {s.id for s in self.secrets}


class AssignmentRequest(BaseModel):
    """Raw operator input for one assign/unassign invocation.

    Values are validated by the orchestrator, not here, so malformed input
    surfaces as ``InvalidArgumentError`` rather than a pydantic error.
    """

    assign_type: str | list[str] | None = Field(
        default=None, description="Requested kind, 'client' or 'secret'"
    )
    name: str = Field(default="", description="Client name or secret display name")
    group: str = Field(default="", description="Target group name")


class AssignmentOutcome(BaseModel):
    """What a single run did."""

    assign_type: AssignType
    name: str
    group: str
    group_id: int
    target_id: int
    client_created: bool = False
    changed: bool = False
    unassign: bool = False

    def summary(self) -> str:
        """Get a human-readable summary of the outcome."""
        kind = self.assign_type.value
        if self.unassign:
            if self.changed:
                verb = "Evicted" if self.assign_type is AssignType.CLIENT else "Revoked"
                return f"{verb} {kind} '{self.name}' from group '{self.group}'"
            return f"{kind.capitalize()} '{self.name}' is not assigned to group '{self.group}'"

        lines = []
        if self.client_created:
            lines.append(f"Created client '{self.name}' (id={self.target_id})")
        if self.changed:
            verb = "Enrolled" if self.assign_type is AssignType.CLIENT else "Granted"
            lines.append(f"{verb} {kind} '{self.name}' in group '{self.group}'")
        else:
            lines.append(f"{kind.capitalize()} '{self.name}' already assigned to group '{self.group}'")
        return "\n".join(lines)
