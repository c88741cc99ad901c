"""Name validation for groups, clients and secrets."""

from __future__ import annotations

import re

from keyward.assign.errors import InvalidArgumentError

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


def validate_name(name: str | None) -> bool:
    """Check that a name only uses letters, digits, '_', '-' and '.'."""
    if not name:
        return False
    return _NAME_PATTERN.fullmatch(name) is not None


def require_valid_name(name: str | None, field: str) -> str:
    """Return ``name`` unchanged or raise InvalidArgumentError."""
    if not validate_name(name):
        raise InvalidArgumentError(
            f"Invalid {field} name {name!r}: only letters, digits, '_', '-' and '.' are allowed"
        )
    return name  # type: ignore[return-value]
