"""Facts about the run's surroundings: run ids, user, versions, platform.

Timestamps and digests live in trimveo.utils.
"""

import getpass
import importlib.metadata
import platform
import secrets
import subprocess
import sys
from datetime import UTC, datetime
from pathlib import Path

from trimveo.audit.models import CommandInfo, EnvironmentInfo

__all__ = [
    "RUNTIME_DEPENDENCIES",
    "UNKNOWN_USER",
    "generate_run_id",
    "get_git_sha",
    "get_package_version",
    "get_python_version",
    "get_platform_info",
    "get_dependency_versions",
    "get_user_id",
    "describe_command",
    "describe_environment",
    "transform_version",
]

RUNTIME_DEPENDENCIES = ("click",)
UNKNOWN_USER = "Unknown user"


def generate_run_id() -> str:
    """Return ``<compact UTC time>-<8 hex chars>``, e.g. ``20261019T101500Z-9f3a0c1e``."""
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"{stamp}-{secrets.token_hex(4)}"


def get_git_sha() -> str | None:
    """Short commit of the checkout trimveo runs from, if it is one."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short=7", "HEAD"],
            cwd=Path(__file__).parent,
            capture_output=True,
            text=True,
            check=True,
            timeout=5,
        )
    except (subprocess.SubprocessError, FileNotFoundError):
        return None
    return result.stdout.strip()[:7] or None


def get_package_version() -> str:
    try:
        return importlib.metadata.version("trimveo")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def get_python_version() -> str:
    return platform.python_version()


def get_platform_info() -> str:
    """e.g. "Linux-6.8.0-x86_64"."""
    return f"{platform.system()}-{platform.release()}-{platform.machine()}"


def get_dependency_versions(packages: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Installed version of each distribution, "unknown" when absent."""
    versions: dict[str, str] = {}
    for package in packages:
        try:
            versions[package] = importlib.metadata.version(package)
        except importlib.metadata.PackageNotFoundError:
            versions[package] = "unknown"
    return versions


def get_user_id() -> str:
    """Login name of the current user.

    This is the default initiator of package history events and the
    default signer, so it falls back to a fixed name rather than failing.
    """
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return UNKNOWN_USER


def describe_command(argv: list[str] | None = None) -> CommandInfo:
    """Command line of the run; only the basename of the working directory is kept."""
    return CommandInfo(argv=list(argv if argv is not None else sys.argv), cwd=Path.cwd().name or None)


def describe_environment() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=get_python_version(),
        platform=get_platform_info(),
        package_version=get_package_version(),
        dependencies=get_dependency_versions(RUNTIME_DEPENDENCIES),
    )


def transform_version() -> str:
    """``git:<sha>`` when running from a checkout, else the package version."""
    sha = get_git_sha()
    return f"git:{sha}" if sha else get_package_version()
