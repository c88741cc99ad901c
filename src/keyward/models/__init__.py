"""Domain models."""

from .core import (
    VERSION_DELIMITER,
    AssignmentOutcome,
    AssignmentRequest,
    AssignType,
    Client,
    Group,
    GroupDetail,
    SanitizedSecret,
)

__all__ = [
    "VERSION_DELIMITER",
    "AssignType",
    "AssignmentOutcome",
    "AssignmentRequest",
    "Client",
    "Group",
    "GroupDetail",
    "SanitizedSecret",
]
