"""Pytest configuration and fixtures."""

import pytest

from fakes import FakeDirectory
from keyward.models import Group, SanitizedSecret


@pytest.fixture
def group() -> Group:
    return Group(id=5, name="group")


@pytest.fixture
def secret() -> SanitizedSecret:
    return SanitizedSecret(id=16, name="secret", version="15a3c8f2b0e")


@pytest.fixture
def directory(group, secret) -> FakeDirectory:
    return FakeDirectory(groups=[group], secrets=[secret])


@pytest.fixture
def sample_group_detail_payload() -> dict:
    """Group detail as returned by the admin API."""
    return {
        "id": 5,
        "name": "group",
        "description": "Payments team",
        "creationDate": "2024-01-01T00:00:00Z",
        "createdBy": "admin",
        "clients": [
            {"id": 543, "name": "billing-worker", "enabled": True, "automationAllowed": False},
        ],
        "secrets": [
            {"id": 16, "name": "secret", "version": "15a3c8f2b0e", "checksum": "abc"},
            {"id": 17, "name": "api-key", "version": ""},
        ],
    }
