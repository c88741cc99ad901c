"""Errors raised by the assignment workflow."""


class AssignmentError(Exception):
    """Base exception for assignment failures detected by keyward itself."""

    pass


class InvalidArgumentError(AssignmentError, ValueError):
    """Operator input was rejected before any remote call."""

    pass


class NotFoundError(AssignmentError):
    """A group or secret referenced by the operator does not exist."""

    def __init__(self, message: str, kind: str | None = None, name: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.name = name
