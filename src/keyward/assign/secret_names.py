"""Secret display names.

Secrets are versioned but shown to operators as a single string. An
unversioned secret displays as its base name; a versioned one as
``<base>..<version>`` where the version is a lowercase hex token, e.g.
``db-password..15a3c8f2b0e``.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from keyward.assign.errors import InvalidArgumentError
from keyward.models import VERSION_DELIMITER

_VERSION_PATTERN = re.compile(r"^[0-9a-f]+$")


class SecretName(NamedTuple):
    """A secret's base name and version token."""

    base: str
    version: str


def _check_version(version: str, display: str) -> None:
    if version and not _VERSION_PATTERN.fullmatch(version):
        raise InvalidArgumentError(
            f"Invalid secret version {version!r} in {display!r}: expected a hex token"
        )


def format_display_name(base: str, version: str = "") -> str:
    """Build the display name for ``(base, version)``."""
    if not base or VERSION_DELIMITER in base:
        raise InvalidArgumentError(f"Invalid secret base name: {base!r}")
    _check_version(version, base)
    if not version:
        return base
    return f"{base}{VERSION_DELIMITER}{version}"


def parse_display_name(display: str) -> SecretName:
    """Split a display name into its base name and version.

    Splits on the last delimiter so base names may contain single dots.

    Raises:
        InvalidArgumentError: if the base is empty, or the delimiter is
            present with an empty or non-hex version.
    """
    if not display:
        raise InvalidArgumentError("Secret name cannot be empty")

    base, sep, version = display.rpartition(VERSION_DELIMITER)
    if not sep:
        return SecretName(display, "")

    if not base or VERSION_DELIMITER in base:
        raise InvalidArgumentError(f"Invalid secret name {display!r}: bad base name")
    if not version:
        raise InvalidArgumentError(f"Invalid secret name {display!r}: missing version")
    _check_version(version, display)
    return SecretName(base, version)
