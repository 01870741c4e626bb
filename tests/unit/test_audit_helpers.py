"""Tests for audit helpers module."""

import re
import subprocess
from unittest.mock import Mock, patch

import pytest

from trimveo.audit.helpers import (
    UNKNOWN_USER,
    describe_command,
    describe_environment,
    generate_run_id,
    get_dependency_versions,
    get_git_sha,
    get_package_version,
    get_user_id,
    transform_version,
)


@pytest.mark.unit
def test_generate_run_id_format_and_uniqueness() -> None:
    """Test run ID is a compact UTC stamp plus a random suffix."""
    rid1 = generate_run_id()
    rid2 = generate_run_id()

    assert re.fullmatch(r"\d{8}T\d{6}Z-[0-9a-f]{8}", rid1)
    assert rid1 != rid2


@pytest.mark.unit
def test_get_git_sha_success() -> None:
    """Test git SHA is truncated to 7 chars on success."""
    with patch("subprocess.run", return_value=Mock(stdout="abcdef1234567890\n")):
        assert get_git_sha() == "abcdef1"


@pytest.mark.unit
@pytest.mark.parametrize(
    "side_effect",
    [subprocess.SubprocessError, FileNotFoundError, subprocess.TimeoutExpired("git", 5)],
)
def test_get_git_sha_returns_none_on_failure(side_effect: type | Exception) -> None:
    """Test git SHA returns None for all failure modes."""
    with patch("subprocess.run", side_effect=side_effect):
        assert get_git_sha() is None


@pytest.mark.unit
def test_transform_version() -> None:
    """Test a checkout is identified by commit, an install by version."""
    with patch("trimveo.audit.helpers.get_git_sha", return_value="abc1234"):
        assert transform_version() == "git:abc1234"

    with patch("trimveo.audit.helpers.get_git_sha", return_value=None):
        assert transform_version() == get_package_version()


@pytest.mark.unit
def test_describe_environment() -> None:
    """Test the environment lists the interpreter, platform and click."""
    env = describe_environment()

    assert "." in env.python_version
    assert "-" in env.platform
    assert env.package_version == "unknown" or "." in env.package_version
    assert set(env.dependencies) == {"click"}


@pytest.mark.unit
def test_describe_command_keeps_cwd_basename() -> None:
    """Test only the last component of the working directory is recorded."""
    command = describe_command(["trimveo", "convert", "x.txt"])

    assert command.argv == ["trimveo", "convert", "x.txt"]
    assert command.cwd is None or "/" not in command.cwd


@pytest.mark.unit
def test_get_dependency_versions() -> None:
    """Test known packages return versions, unknown return 'unknown'."""
    versions = get_dependency_versions(["click", "nonexistent_xyz_pkg"])

    assert "." in versions["click"]
    assert versions["nonexistent_xyz_pkg"] == "unknown"


@pytest.mark.unit
def test_get_user_id_fallback() -> None:
    """Test the user falls back to a fixed name when the login cannot be found."""
    with patch("getpass.getuser", side_effect=OSError("no login")):
        assert get_user_id() == UNKNOWN_USER

    with patch("getpass.getuser", return_value="records.officer"):
        assert get_user_id() == "records.officer"
