"""Directory connection settings.

Settings can be provided via:
1. Environment variables (KEYWARD_DIRECTORY_*)
2. CLI arguments (--base-url, --user, --password, etc.)
3. Auto-loaded session cookies from .keyward.session.yaml (written by `keyward login`)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SESSION_FILE = Path(".keyward.session.yaml")


def load_session_file(path: Path) -> dict[str, Any]:
    """Read the session file, returning an empty mapping if unusable."""
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        logger.debug("Failed to parse session file %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        return {}
    return data


def _load_session_from_file(session_file: Path, base_url: str) -> dict[str, str] | None:
    """Try to load the saved session cookies for ``base_url``.

    Returns the cookies if found, None otherwise.
    """
    data = load_session_file(session_file)
    servers = data.get("servers", {})
    if not isinstance(servers, dict):
        return None

    entry = servers.get(base_url.rstrip("/"), {})
    if isinstance(entry, dict):
        cookies = entry.get("cookies")
        if isinstance(cookies, dict) and cookies:
            logger.debug("Loaded session for %s from %s", base_url, session_file)
            return {str(k): str(v) for k, v in cookies.items()}
    return None


class DirectorySettings(BaseSettings):
    """Directory connection and authentication settings."""

    model_config = SettingsConfigDict(
        env_prefix="KEYWARD_DIRECTORY_",
        extra="ignore",
    )

    # Connection
    base_url: str = Field(
        default="https://localhost:4444",
        description="Directory server base URL",
    )
    timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify the server certificate",
    )
    ca_bundle: str | None = Field(
        default=None,
        description="Path to a CA bundle used to verify the server",
    )

    # Password login
    username: str | None = Field(default=None, description="Operator username")
    password: str | None = Field(default=None, description="Operator password")

    # Saved session
    session_cookies: dict[str, str] = Field(
        default_factory=dict,
        description="Session cookies from a previous login",
    )
    session_file: Path = Field(
        default=DEFAULT_SESSION_FILE,
        description="Where `keyward login` stores session cookies",
    )

    @property
    def admin_url(self) -> str:
        """Get the admin API URL."""
        return f"{self.base_url.rstrip('/')}/admin"

    @property
    def has_credentials(self) -> bool:
        """Check if username/password credentials are available."""
        return bool(self.username and self.password)

    @property
    def has_session(self) -> bool:
        return bool(self.session_cookies)

    @property
    def verify(self) -> bool | str:
        """Value for httpx's ``verify`` argument."""
        if not self.verify_tls:
            return False
        return self.ca_bundle or True

    def with_overrides(
        self,
        *,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        session_file: Path | None = None,
        verify_tls: bool | None = None,
    ) -> "DirectorySettings":
        """Create a new settings instance with CLI overrides applied."""
        return DirectorySettings(
            base_url=base_url or self.base_url,
            timeout=self.timeout,
            verify_tls=self.verify_tls if verify_tls is None else verify_tls,
            ca_bundle=self.ca_bundle,
            username=username or self.username,
            password=password or self.password,
            session_cookies=dict(self.session_cookies),
            session_file=session_file or self.session_file,
        )

    def with_auto_session(self) -> "DirectorySettings":
        """Try to load saved session cookies if nothing else is configured.

        Explicit credentials win over a saved session.
        """
        if self.has_session or self.has_credentials:
            return self

        cookies = _load_session_from_file(self.session_file, self.base_url)
        if cookies:
            logger.info("Using saved session from %s", self.session_file)
            return self.model_copy(update={"session_cookies": cookies})

        return self
