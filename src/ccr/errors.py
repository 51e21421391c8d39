"""Unified exception hierarchy for ccr.

All custom exceptions inherit from CCRError for consistent error handling.
The CLI catches these and prints a short red message before exiting with 1.

Dependency direction:
    This module has NO internal dependencies (leaf module).
    It may be imported by: all other ccr modules.
    It should NOT import from any other ccr modules.
"""

from __future__ import annotations


class CCRError(Exception):
    """Base exception for all ccr errors."""


class ConfigError(CCRError):
    """Configuration-related errors.

    Examples:
        - Unknown configuration key
        - Invalid value for a validated key
    """


class ValidationError(CCRError):
    """Input validation errors.

    Examples:
        - Invalid repository name
        - Unsupported shell for activation
    """


class DockerError(CCRError):
    """Docker operation errors.

    Base class for all Docker-related exceptions.
    """


class DockerNotFoundError(DockerError):
    """Raised when Docker is not installed or not in PATH."""


class DockerTimeoutError(DockerError):
    """Raised when a Docker operation times out."""


class ContainerError(DockerError):
    """Raised when container operations fail."""


class ComposeError(DockerError):
    """Raised when a docker compose invocation fails."""


class RepoError(CCRError):
    """Repository management errors.

    Examples:
        - Repository directory missing on init
        - No compose file for start/stop
        - Clone target already exists
    """


class GitError(CCRError):
    """Raised when a git command fails or git is unavailable."""

