"""Structured audit logging for group membership changes."""

from typing import Any

import logging
import structlog

from keyward.models import AssignmentOutcome, AssignmentRequest


def configure_audit_logging(
    *,
    log_level: str | int,
    json_format: bool,
) -> None:
    # Resolve log level via stdlib logging (NOT structlog)
    if isinstance(log_level, str):
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = int(log_level)

    processors = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """Audit logger for assign and unassign runs."""

    def __init__(
        self,
        enabled: bool = True,
        operator: str | None = None,
        logger: Any = None,
    ):
        """Initialize audit logger.

        Args:
            enabled: Whether audit logging is enabled
            operator: Who ran the command, if known
            logger: Optional custom logger
        """
        self._enabled = enabled
        self._operator = operator
        self._logger = logger or structlog.get_logger("audit")

    def log_outcome(self, outcome: AssignmentOutcome, server: str | None = None) -> None:
        """Log a completed run.

        Runs that changed membership are logged at info, no-ops at debug.
        """
        if not self._enabled:
            return

        log_data: dict[str, Any] = {
            "event": "assignment",
            "action": "unassign" if outcome.unassign else "assign",
            "assign_type": outcome.assign_type.value,
            "name": outcome.name,
            "target_id": outcome.target_id,
            "group": outcome.group,
            "group_id": outcome.group_id,
            "changed": outcome.changed,
            "client_created": outcome.client_created,
        }

        if self._operator:
            log_data["operator"] = self._operator
        if server:
            log_data["server"] = server

        if outcome.changed or outcome.client_created:
            self._logger.info(**log_data)
        else:
            self._logger.debug(**log_data)

    def log_error(
        self,
        error: str,
        request: AssignmentRequest | None = None,
        server: str | None = None,
    ) -> None:
        """Log a failed run.

        Args:
            error: Error message
            request: The operator's request (if available)
            server: Directory base URL
        """
        if not self._enabled:
            return

        log_data: dict[str, Any] = {
            "event": "assignment_error",
            "error": error,
        }

        if self._operator:
            log_data["operator"] = self._operator
        if server:
            log_data["server"] = server

        if request:
            log_data["assign_type"] = request.assign_type
            log_data["name"] = request.name
            log_data["group"] = request.group

        self._logger.error(**log_data)
