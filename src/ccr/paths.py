"""Host path layout for ccr.

Everything ccr writes lives under the ccr home directory (``$CCR_HOME`` or
``~/.ccr``). Repositories live under the repos directory (``$CCR_REPOS_DIR`` or
``~/repos``), one directory per repository.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from .constants import (
    COMPOSE_FILE_PREFIX,
    COMPOSE_FILE_SUFFIX,
    CONTAINER_PREFIX,
    DEFAULT_HOME_DIRNAME,
    DEFAULT_REPOS_DIRNAME,
    ENV_HOME,
    ENV_REPOS_DIR,
)
from .errors import ValidationError

_REPO_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_COMPOSE_NAME_RE = re.compile(
    "^" + re.escape(COMPOSE_FILE_PREFIX) + r"(.+)" + re.escape(COMPOSE_FILE_SUFFIX) + "$"
)


def get_ccr_home() -> Path:
    """Get the ccr home directory."""
    override = os.environ.get(ENV_HOME)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_HOME_DIRNAME


def get_bin_dir() -> Path:
    return get_ccr_home() / "bin"


def get_containers_dir() -> Path:
    """Directory holding compose files and the container build context."""
    return get_ccr_home() / "containers"


def get_repos_dir() -> Path:
    """Get the base directory that holds all repositories."""
    override = os.environ.get(ENV_REPOS_DIR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_REPOS_DIRNAME


def validate_repo_name(name: str | None) -> str:
    """Validate a repository name.

    Repository names become part of container, network and volume names,
    so only a conservative character set is accepted.

    Raises:
        ValidationError: If the name is empty or contains unsafe characters.
    """
    if not name:
        raise ValidationError("Repository name is required")
    if name in (".", "..") or not _REPO_NAME_RE.match(name):
        raise ValidationError(
            f"Invalid repository name '{name}': use letters, digits, '.', '_' or '-'"
        )
    return name


def get_container_name(repo_name: str) -> str:
    """Get the Claude container name for a repository."""
    return f"{CONTAINER_PREFIX}{repo_name}"


def get_repo_path(repo_name: str) -> Path:
    return get_repos_dir() / repo_name


def get_compose_filename(repo_name: str) -> str:
    return f"{COMPOSE_FILE_PREFIX}{repo_name}{COMPOSE_FILE_SUFFIX}"


def get_compose_path(repo_name: str) -> Path:
    """Get the compose file path for a repository."""
    return get_containers_dir() / get_compose_filename(repo_name)


def repo_from_compose_filename(filename: str) -> str | None:
    """Extract the repository name from a compose file name.

    Examples:
        >>> repo_from_compose_filename("docker-compose.my-app.yml")
        'my-app'
        >>> repo_from_compose_filename("docker-compose.yml") is None
        True
    """
    match = _COMPOSE_NAME_RE.match(filename)
    return match.group(1) if match else None


def detect_repo(cwd: Path | None = None) -> str | None:
    """Detect the repository name for a working directory.

    Returns the first path component below the repos directory, so any
    subdirectory of a repository resolves to that repository.

    Returns:
        Repository name, or None when cwd is not inside the repos directory.
    """
    current = (cwd or Path.cwd()).resolve()
    base = get_repos_dir().resolve()
    try:
        relative = current.relative_to(base)
    except ValueError:
        return None
    if not relative.parts:
        return None
    return relative.parts[0]


def copy_and_fix_endings(src: Path, dest: Path) -> bool:
    """Copy a text file, converting CRLF line endings to LF.

    Returns:
        False when the source does not exist, True otherwise.
    """
    if not src.is_file():
        return False
    data = src.read_bytes().replace(b"\r\n", b"\n")
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(data)
    return True
