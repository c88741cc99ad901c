"""Tests for the keyward CLI commands."""
import pytest
import yaml
from typer.testing import CliRunner

from fakes import FakeDirectory
from keyward.cli import commands
from keyward.cli.main import app
from keyward.directory import DirectoryAuthError
from keyward.models import Client

runner = CliRunner()


@pytest.fixture
def use_directory(monkeypatch):
    """Route commands to a FakeDirectory instead of the HTTP client."""

    def _use(directory):
        class _Client:
            def __init__(self, settings):
                self.settings = settings

            async def __aenter__(self):
                return directory

            async def __aexit__(self, exc_type, exc_val, exc_tb):
                return None

        monkeypatch.setattr(commands, "DirectoryClient", _Client)
        return directory

    return _use


@pytest.fixture
def session_args(tmp_path):
    return ["--session-file", str(tmp_path / "session.yaml"), "--base-url", "https://keyward.test"]


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("assign", "unassign", "describe", "login", "version"):
        assert name in result.output


def test_assign_help_text():
    result = runner.invoke(app, ["assign", "--help"])
    assert result.exit_code == 0
    assert "Assign a client or secret to a group" in result.output
    assert "--type" in result.output


def test_assign_client_creates_and_enrolls(use_directory, directory, session_args):
    use_directory(directory)

    result = runner.invoke(app, ["assign", "--type", "client", "worker", "group", *session_args])

    assert result.exit_code == 0, result.output
    assert "Created client 'worker'" in result.output
    assert "Enrolled client 'worker' in group 'group'" in result.output
    assert directory.calls_to("create_client") == [("worker",)]


def test_assign_secret_is_idempotent(use_directory, directory, session_args):
    use_directory(directory)
    args = ["assign", "-t", "secret", "secret..15a3c8f2b0e", "group", *session_args]

    first = runner.invoke(app, args)
    second = runner.invoke(app, args)

    assert first.exit_code == 0 and second.exit_code == 0
    assert "Granted secret" in first.output
    assert "already assigned" in second.output
    assert directory.calls_to("grant_secret_to_group_by_ids") == [(16, 5)]


def test_assign_rejects_invalid_group_without_remote_calls(use_directory, directory, session_args):
    use_directory(directory)

    result = runner.invoke(
        app, ["assign", "--type", "secret", "General_Password", "Invalid Name", *session_args]
    )

    assert result.exit_code == 1
    assert "Invalid argument" in result.output
    assert directory.calls == []


def test_assign_requires_type(use_directory, directory, session_args):
    use_directory(directory)

    result = runner.invoke(app, ["assign", "worker", "group", *session_args])

    assert result.exit_code == 1
    assert "Invalid argument" in result.output
    assert directory.calls == []


def test_assign_rejects_extra_blank_type(use_directory, directory, session_args):
    use_directory(directory)

    result = runner.invoke(
        app, ["assign", "--type", "client", "--type", "", "worker", "group", *session_args]
    )

    assert result.exit_code == 1
    assert "Invalid argument" in result.output
    assert directory.calls == []


def test_assign_missing_secret_reports_not_found(use_directory, directory, session_args):
    use_directory(directory)

    result = runner.invoke(app, ["assign", "--type", "secret", "missing", "group", *session_args])

    assert result.exit_code == 1
    assert "Not found" in result.output


def test_assign_reports_auth_failure(use_directory, directory, session_args):
    async def rejected(name):
        raise DirectoryAuthError("Authentication expired or invalid", status_code=401)

    directory.get_group_by_name = rejected
    use_directory(directory)

    result = runner.invoke(app, ["assign", "--type", "client", "worker", "group", *session_args])

    assert result.exit_code == 1
    assert "Authentication failed" in result.output


def test_unassign_client(use_directory, group, session_args):
    directory = use_directory(
        FakeDirectory(
            groups=[group],
            clients=[Client(id=7, name="worker")],
            memberships={5: {"clients": {7}, "secrets": set()}},
        )
    )

    result = runner.invoke(app, ["unassign", "--type", "client", "worker", "group", *session_args])

    assert result.exit_code == 0, result.output
    assert "Evicted client 'worker' from group 'group'" in result.output
    assert directory.calls_to("evict_client_from_group_by_ids") == [(7, 5)]


def test_describe_lists_members(use_directory, group, secret, session_args):
    use_directory(
        FakeDirectory(
            groups=[group],
            clients=[Client(id=7, name="worker", enabled=False)],
            secrets=[secret],
            memberships={5: {"clients": {7}, "secrets": {16}}},
        )
    )

    result = runner.invoke(app, ["describe", "group", *session_args])

    assert result.exit_code == 0, result.output
    assert "Group: group (id=5)" in result.output
    assert "worker (disabled)" in result.output
    assert "secret..15a3c8f2b0e" in result.output


def test_describe_missing_group(use_directory, directory, session_args):
    use_directory(directory)

    result = runner.invoke(app, ["describe", "nope", *session_args])

    assert result.exit_code == 1
    assert "Group not found: nope" in result.output


@pytest.fixture
def logins(monkeypatch):
    """Replace the directory client with one whose login always succeeds."""
    calls = []

    class _Client:
        def __init__(self, settings):
            self.settings = settings

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc_val, exc_tb):
            return None

        async def login(self, username, password):
            calls.append((username, password))

        @property
        def session_cookies(self):
            return {"session": "abc123"}

    monkeypatch.setattr(commands, "DirectoryClient", _Client)
    return calls


def _login(session_file, base_url="https://keyward.test"):
    return runner.invoke(
        app,
        [
            "login",
            "--user", "alice",
            "--base-url", base_url,
            "--session-file", str(session_file),
        ],
        input="hunter2\n",
    )


def test_login_writes_session_file(logins, tmp_path):
    session_file = tmp_path / "session.yaml"

    result = _login(session_file)

    assert result.exit_code == 0, result.output
    assert logins == [("alice", "hunter2")]
    content = session_file.read_text()
    assert content.startswith("# WARNING")
    data = yaml.safe_load(content)
    assert data["servers"]["https://keyward.test"]["cookies"] == {"session": "abc123"}
    assert data["servers"]["https://keyward.test"]["username"] == "alice"
    assert session_file.stat().st_mode & 0o777 == 0o600


def test_login_keeps_other_servers(logins, tmp_path):
    session_file = tmp_path / "session.yaml"
    session_file.write_text(
        yaml.safe_dump(
            {
                "servers": {
                    "https://other.test": {"username": "bob", "cookies": {"session": "old"}},
                    "https://keyward.test": {"username": "alice", "cookies": {"session": "stale"}},
                }
            }
        )
    )

    result = _login(session_file, base_url="https://keyward.test/")

    assert result.exit_code == 0, result.output
    servers = yaml.safe_load(session_file.read_text())["servers"]
    assert set(servers) == {"https://other.test", "https://keyward.test"}
    assert servers["https://other.test"] == {"username": "bob", "cookies": {"session": "old"}}
    assert servers["https://keyward.test"]["cookies"] == {"session": "abc123"}


def test_login_replaces_malformed_servers_section(logins, tmp_path):
    session_file = tmp_path / "session.yaml"
    session_file.write_text("servers:\n  - not\n  - a mapping\nother: kept\n")

    result = _login(session_file)

    assert result.exit_code == 0, result.output
    data = yaml.safe_load(session_file.read_text())
    assert data["other"] == "kept"
    assert list(data["servers"]) == ["https://keyward.test"]


def test_login_tightens_existing_file_permissions(logins, tmp_path):
    session_file = tmp_path / "session.yaml"
    session_file.write_text("")
    session_file.chmod(0o644)

    result = _login(session_file)

    assert result.exit_code == 0, result.output
    assert session_file.stat().st_mode & 0o777 == 0o600


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "keyward version:" in result.output
