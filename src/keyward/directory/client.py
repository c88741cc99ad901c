"""Directory admin API client.

Wraps the secrets directory's admin REST API for:
- Session login
- Group, client and secret lookups by name
- Client creation
- Group membership (client enrollment, secret grants)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from keyward.directory.settings import DirectorySettings
from keyward.models import Client, Group, GroupDetail, SanitizedSecret

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """Base exception for directory API errors."""

    def __init__(
        self, message: str, status_code: int | None = None, response: dict | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class DirectoryAuthError(DirectoryError):
    """Authentication failed or session expired."""

    pass


class DirectoryNotFoundError(DirectoryError):
    """Resource not found."""

    pass


class DirectoryConflictError(DirectoryError):
    """Resource already exists."""

    pass


class DirectoryClient:
    """Async client for the directory admin REST API."""

    def __init__(self, settings: DirectorySettings):
        self._settings = settings
        self._client: httpx.AsyncClient | None = None
        self._authenticated = False

    async def __aenter__(self) -> "DirectoryClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self._settings.admin_url,
            timeout=self._settings.timeout,
            verify=self._settings.verify,
            cookies=self._settings.session_cookies or None,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def settings(self) -> DirectorySettings:
        """Get settings."""
        return self._settings

    @property
    def session_cookies(self) -> dict[str, str]:
        """Cookies currently held by the HTTP session."""
        if not self._client:
            return {}
        return dict(self._client.cookies.items())

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def authenticate(self) -> None:
        """Make sure requests carry a session.

        Reuses saved session cookies when present, otherwise logs in with
        username and password.
        """
        if self._settings.has_session and not self._settings.has_credentials:
            logger.debug("Using saved session cookies")
            self._authenticated = True
            return

        if not self._settings.has_credentials:
            raise DirectoryAuthError(
                "No credentials provided. Use --user/--password or run `keyward login`"
            )

        await self.login(self._settings.username, self._settings.password)

    async def login(self, username: str | None, password: str | None) -> None:
        """Log in and keep the returned session cookie."""
        logger.debug("Logging in as: %s", username)
        try:
            response = await self._client.post(
                "/login", json={"username": username, "password": password}
            )
        except httpx.HTTPError as e:
            raise DirectoryError(f"Login request failed: {e}") from e

        if response.status_code not in (200, 204):
            raise DirectoryAuthError(
                f"Login failed for {username}: {response.text}",
                status_code=response.status_code,
            )

        self._authenticated = True
        logger.info("Authenticated as: %s", username)

    async def _ensure_session(self) -> None:
        if not self._authenticated:
            await self.authenticate()

    # -------------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict | None = None,
        expected_status: list[int] | None = None,
    ) -> Any:
        await self._ensure_session()
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise DirectoryError(f"{method} {path} failed: {e}") from e
        return self._handle_response(response, expected_status=expected_status)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request to admin API."""
        return await self._request("GET", path, params=params)

    async def _post(self, path: str, json: dict | None = None) -> Any:
        """Make POST request to admin API."""
        return await self._request("POST", path, json=json, expected_status=[200, 201, 204])

    async def _put(self, path: str) -> Any:
        """Make PUT request to admin API."""
        return await self._request("PUT", path, expected_status=[200, 201, 204])

    async def _delete(self, path: str) -> Any:
        """Make DELETE request to admin API."""
        return await self._request("DELETE", path, expected_status=[200, 204])

    def _handle_response(
        self,
        response: httpx.Response,
        expected_status: list[int] | None = None,
    ) -> Any:
        """Handle API response."""
        expected = expected_status or [200]

        if response.status_code == 404:
            raise DirectoryNotFoundError(
                f"Resource not found: {response.request.url}",
                status_code=404,
            )

        if response.status_code == 409:
            raise DirectoryConflictError(
                f"Resource already exists: {response.text}",
                status_code=409,
            )

        if response.status_code in (401, 403):
            raise DirectoryAuthError(
                "Authentication expired or invalid",
                status_code=response.status_code,
            )

        if response.status_code not in expected:
            raise DirectoryError(
                f"Unexpected response {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None

        return response.json()

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def get_group_by_name(self, name: str) -> Group:
        """Get a group by name."""
        return Group.model_validate(await self._get("/groups", params={"name": name}))

    async def group_details_for_id(self, group_id: int) -> GroupDetail:
        """Get a group with its current clients and secrets."""
        return GroupDetail.model_validate(await self._get(f"/groups/{group_id}"))

    # -------------------------------------------------------------------------
    # Clients
    # -------------------------------------------------------------------------

    async def get_client_by_name(self, name: str) -> Client:
        """Get a client by name."""
        return Client.model_validate(await self._get("/clients", params={"name": name}))

    async def create_client(self, name: str, description: str = "") -> None:
        """Create a new client.

        The response body is not relied upon; callers look the client up by
        name afterwards.
        """
        logger.debug("Creating client: %s", name)
        await self._post("/clients", json={"name": name, "description": description})
        logger.info("Created client: %s", name)

    # -------------------------------------------------------------------------
    # Secrets
    # -------------------------------------------------------------------------

    async def get_sanitized_secret_by_name_and_version(
        self, name: str, version: str
    ) -> SanitizedSecret:
        """Get secret metadata by base name and version."""
        data = await self._get("/secrets", params={"name": name, "version": version})
        return SanitizedSecret.model_validate(data)

    # -------------------------------------------------------------------------
    # Memberships
    # -------------------------------------------------------------------------

    async def enroll_client_in_group_by_ids(self, client_id: int, group_id: int) -> None:
        """Add a client to a group."""
        logger.debug("Enrolling client %s in group %s", client_id, group_id)
        await self._put(f"/memberships/clients/{client_id}/groups/{group_id}")

    async def evict_client_from_group_by_ids(self, client_id: int, group_id: int) -> None:
        """Remove a client from a group."""
        logger.debug("Evicting client %s from group %s", client_id, group_id)
        await self._delete(f"/memberships/clients/{client_id}/groups/{group_id}")

    async def grant_secret_to_group_by_ids(self, secret_id: int, group_id: int) -> None:
        """Grant a secret to a group."""
        logger.debug("Granting secret %s to group %s", secret_id, group_id)
        await self._put(f"/memberships/secrets/{secret_id}/groups/{group_id}")

    async def revoke_secret_from_group_by_ids(self, secret_id: int, group_id: int) -> None:
        """Revoke a secret from a group."""
        logger.debug("Revoking secret %s from group %s", secret_id, group_id)
        await self._delete(f"/memberships/secrets/{secret_id}/groups/{group_id}")
