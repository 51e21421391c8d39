"""`ccr auth` commands.

Meant to run inside a repo container (the entrypoint calls `ccr auth setup`),
but every path can be overridden to run it elsewhere.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from ..auth import AuthManager, AuthPaths, get_api_url
from ..config import load_config
from ..constants import CONTAINER_BACKUP_DIR, CONTAINER_CLAUDE_BIN, CONTAINER_CLAUDE_DIR


@click.group("auth")
@click.option(
    "--claude-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=CONTAINER_CLAUDE_DIR,
    show_default=True,
    help="Claude Code config directory",
)
@click.option(
    "--backup-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=CONTAINER_BACKUP_DIR,
    show_default=True,
    help="Where credential backups are kept",
)
@click.option("--claude-bin", default=CONTAINER_CLAUDE_BIN, show_default=True)
@click.option("--api-url", default=None, help="Auth backend URL (default: $CCR_AUTH_API)")
@click.pass_context
def auth_group(
    ctx: click.Context,
    claude_dir: Path,
    backup_dir: Path,
    claude_bin: str,
    api_url: str | None,
) -> None:
    """Persist Claude Code authentication across container recreation."""
    paths = AuthPaths(claude_dir=claude_dir, backup_dir=backup_dir, claude_bin=claude_bin)
    ctx.obj = AuthManager(paths, api_url or get_api_url(load_config().auth_api_url))


def _finish(ok: bool) -> None:
    if not ok:
        sys.exit(1)


@auth_group.command("check")
@click.pass_obj
def check(manager: AuthManager) -> None:
    """Check credentials and the Claude Code CLI."""
    _finish(manager.check_auth().valid and manager.test_claude_auth())


@auth_group.command("test")
@click.pass_obj
def test(manager: AuthManager) -> None:
    """Probe the Claude Code CLI."""
    _finish(manager.test_claude_auth())


@auth_group.command("backup")
@click.pass_obj
def backup(manager: AuthManager) -> None:
    """Back up credentials (keeps the newest 5)."""
    manager.backup_auth()


@auth_group.command("restore")
@click.pass_obj
def restore(manager: AuthManager) -> None:
    """Restore credentials from the backend or the newest backup."""
    _finish(manager.restore_auth() is not None)


@auth_group.command("upload")
@click.pass_obj
def upload(manager: AuthManager) -> None:
    """Upload credentials to the backend."""
    _finish(manager.upload_auth())


@auth_group.command("login")
@click.pass_obj
def login(manager: AuthManager) -> None:
    """Interactive OAuth login, then verify and upload."""
    _finish(manager.interactive_login())


@auth_group.command("setup")
@click.pass_obj
def setup(manager: AuthManager) -> None:
    """Check, restore or ask for login (container startup)."""
    _finish(manager.setup_auth())
