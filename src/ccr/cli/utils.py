"""CLI utilities for ccr.

Docker status checks, error reporting, and console setup.
"""

from __future__ import annotations

import functools
import sys
from typing import Any, Callable, TypeVar

from rich.console import Console
from rich.markup import escape

from .. import docker
from ..errors import CCRError
from ..logging import get_logger

console = Console()
logger = get_logger(__name__)

ERR_DOCKER_NOT_RUNNING = "[red]Error: Docker is not running.[/red]"

F = TypeVar("F", bound=Callable[..., Any])


def check_docker() -> bool:
    """Check if Docker is available and running."""
    return docker.check_docker_status()


def require_docker() -> None:
    """Exit with an error when Docker is not running."""
    if not check_docker():
        console.print(ERR_DOCKER_NOT_RUNNING)
        sys.exit(1)


def print_error(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]", highlight=False)


def handle_errors(func: F) -> F:
    """Convert CCRError into a red message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except CCRError as e:
            logger.debug("Command failed", exc_info=True)
            print_error(str(e))
            sys.exit(1)

    return wrapper  # type: ignore[return-value]
