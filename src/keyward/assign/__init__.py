"""Assignment of clients and secrets to groups."""

from .errors import AssignmentError, InvalidArgumentError, NotFoundError
from .orchestrator import (
    AssignmentOrchestrator,
    ClientResolution,
    RemoteDirectory,
    Resolution,
    already_assigned,
    parse_assign_type,
)
from .secret_names import SecretName, format_display_name, parse_display_name
from .validation import require_valid_name, validate_name

__all__ = [
    "AssignmentError",
    "InvalidArgumentError",
    "NotFoundError",
    "AssignmentOrchestrator",
    "ClientResolution",
    "RemoteDirectory",
    "Resolution",
    "already_assigned",
    "parse_assign_type",
    "SecretName",
    "format_display_name",
    "parse_display_name",
    "require_valid_name",
    "validate_name",
]
