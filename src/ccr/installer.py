"""Install the ccr system into the ccr home directory."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from .generator import write_build_files
from .logging import get_logger
from .paths import (
    copy_and_fix_endings,
    get_bin_dir,
    get_ccr_home,
    get_containers_dir,
    get_repos_dir,
)

logger = get_logger(__name__)

# Package files copied into the container build context
_PACKAGE_PATTERNS = ("*.py",)


@dataclass(frozen=True)
class InstallResult:
    home: Path
    containers_dir: Path
    repos_dir: Path
    build_files: list[Path]
    package_files: int


def _package_dir() -> Path:
    return Path(__file__).resolve().parent


def copy_package_sources(source: Path, dest: Path) -> int:
    """Copy the ccr package into the build context with LF line endings.

    The destination is replaced so removed modules do not linger.

    Returns:
        Number of files copied.
    """
    if dest.exists():
        shutil.rmtree(dest)
    count = 0
    for pattern in _PACKAGE_PATTERNS:
        for src in sorted(source.rglob(pattern)):
            if "__pycache__" in src.parts:
                continue
            if copy_and_fix_endings(src, dest / src.relative_to(source)):
                count += 1
    logger.debug("Copied %d package files from %s to %s", count, source, dest)
    return count


def install_system(source_package_dir: Path | None = None) -> InstallResult:
    """Create the ccr home layout and the container build context.

    Safe to re-run: build files and package sources are regenerated,
    compose files and config are left untouched.
    """
    home = get_ccr_home()
    containers_dir = get_containers_dir()
    for directory in (home, get_bin_dir(), containers_dir, home / "config"):
        directory.mkdir(parents=True, exist_ok=True)

    build_files = write_build_files(containers_dir)
    package_files = copy_package_sources(
        source_package_dir or _package_dir(), containers_dir / "ccr"
    )

    for sub in ("claude", "tailscale"):
        (containers_dir / "config" / sub).mkdir(parents=True, exist_ok=True)

    repos_dir = get_repos_dir()
    repos_dir.mkdir(parents=True, exist_ok=True)

    return InstallResult(home, containers_dir, repos_dir, build_files, package_files)


def uninstall_system() -> bool:
    """Remove the ccr home directory.

    Returns:
        True if something was removed.
    """
    home = get_ccr_home()
    if not home.exists():
        return False
    shutil.rmtree(home)
    return True
