"""Secrets directory admin API access.

Provides the async client and connection settings used by the CLI.
"""

from keyward.directory.settings import DirectorySettings
from keyward.directory.client import (
    DirectoryAuthError,
    DirectoryClient,
    DirectoryConflictError,
    DirectoryError,
    DirectoryNotFoundError,
)

__all__ = [
    "DirectorySettings",
    "DirectoryClient",
    "DirectoryError",
    "DirectoryAuthError",
    "DirectoryNotFoundError",
    "DirectoryConflictError",
]
