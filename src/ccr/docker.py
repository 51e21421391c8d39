"""Docker operations for ccr.

Thin wrappers over the Docker CLI and `docker compose`, separated from CLI
logic so they can be mocked in tests.
"""

from __future__ import annotations

import subprocess
import time
from pathlib import Path
from typing import TYPE_CHECKING

from .constants import COMPOSE_TIMEOUT, CONTAINER_READY_TIMEOUT, DOCKER_COMMAND_TIMEOUT
from .errors import ComposeError, DockerError, DockerNotFoundError, DockerTimeoutError
from .logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "DockerError",
    "DockerNotFoundError",
    "DockerTimeoutError",
    "safe_docker_run",
    "check_docker_status",
    "list_running_containers",
    "is_container_running",
    "wait_for_container",
    "compose_up",
    "compose_down",
    "docker_exec",
    "ensure_volume",
]


def safe_docker_run(
    cmd: Sequence[str],
    *,
    timeout: int | None = DOCKER_COMMAND_TIMEOUT,
    capture_output: bool = True,
    check: bool = False,
    cwd: Path | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a Docker command with consistent error handling.

    Args:
        cmd: Command to run (should start with 'docker').
        timeout: Command timeout in seconds, None for interactive sessions.
        capture_output: Capture stdout/stderr if True.
        check: Raise CalledProcessError on non-zero exit.
        cwd: Working directory for the command.

    Raises:
        DockerNotFoundError: If docker command is not found.
        DockerTimeoutError: If command times out.
        subprocess.CalledProcessError: If check=True and command fails.
    """
    cmd_str = " ".join(cmd[:4]) + ("..." if len(cmd) > 4 else "")
    logger.debug("Running Docker command: %s", cmd_str)
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=capture_output,
            text=True,
            check=check,
            timeout=timeout,
            cwd=cwd,
        )
        logger.debug("Docker command completed: exit=%d", result.returncode)
        return result
    except FileNotFoundError as e:
        logger.error("Docker not found in PATH: %s", cmd_str)
        raise DockerNotFoundError(f"Docker not found in PATH. Command: {cmd_str}") from e
    except subprocess.TimeoutExpired as e:
        logger.error("Docker command timed out after %ss: %s", timeout, cmd_str)
        raise DockerTimeoutError(
            f"Docker command timed out after {timeout}s. Command: {cmd_str}"
        ) from e


def check_docker_status() -> bool:
    """Check if Docker daemon is responsive."""
    try:
        result = safe_docker_run(["docker", "info"])
        return result.returncode == 0
    except (DockerNotFoundError, DockerTimeoutError):
        return False


def list_running_containers() -> set[str]:
    """Get the names of all running containers.

    Returns:
        Set of container names, or empty set on failure.
    """
    try:
        result = safe_docker_run(["docker", "ps", "--format", "{{.Names}}"])
        if result.returncode != 0:
            return set()
        return {name for name in result.stdout.strip().split("\n") if name}
    except (DockerNotFoundError, DockerTimeoutError):
        return set()


def is_container_running(container_name: str) -> bool:
    """Check whether a container with exactly this name is running."""
    return container_name in list_running_containers()


def wait_for_container(container_name: str, timeout: int = CONTAINER_READY_TIMEOUT) -> bool:
    """Poll until a container is running.

    Returns:
        True if the container came up within timeout seconds.
    """
    for _ in range(timeout):
        if is_container_running(container_name):
            return True
        time.sleep(1)
    return is_container_running(container_name)


def _compose(compose_file: Path, *args: str) -> None:
    cmd = ["docker", "compose", "-f", compose_file.name, *args]
    result = safe_docker_run(
        cmd,
        timeout=COMPOSE_TIMEOUT,
        capture_output=False,
        cwd=compose_file.parent,
    )
    if result.returncode != 0:
        raise ComposeError(
            f"docker compose {' '.join(args)} failed for {compose_file.name} "
            f"(exit {result.returncode})"
        )


def compose_up(compose_file: Path) -> None:
    """Start all services of a compose file in the background.

    Raises:
        ComposeError: If docker compose exits non-zero.
    """
    _compose(compose_file, "up", "-d")


def compose_down(compose_file: Path) -> None:
    """Stop and remove all services of a compose file.

    Raises:
        ComposeError: If docker compose exits non-zero.
    """
    _compose(compose_file, "down")


def docker_exec(
    container_name: str,
    cmd: Sequence[str],
    *,
    interactive: bool = False,
    user: str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command inside a container.

    Interactive sessions attach the terminal and have no timeout.
    """
    full_cmd = ["docker", "exec"]
    if interactive:
        full_cmd.append("-it")
    full_cmd.append(container_name)
    if user:
        full_cmd.extend(["sudo", "-u", user])
    full_cmd.extend(cmd)
    if interactive:
        return safe_docker_run(full_cmd, timeout=None, capture_output=False)
    return safe_docker_run(full_cmd)


def ensure_volume(name: str) -> bool:
    """Create a named volume if it does not exist.

    Returns:
        True if the volume was created, False if it already existed.

    Raises:
        DockerError: If the volume cannot be created.
    """
    if safe_docker_run(["docker", "volume", "inspect", name]).returncode == 0:
        return False
    result = safe_docker_run(["docker", "volume", "create", name])
    if result.returncode != 0:
        raise DockerError(f"Failed to create volume {name}: {result.stderr.strip()}")
    logger.debug("Created volume %s", name)
    return True
