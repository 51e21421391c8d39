"""`ccr repo` commands: per-repository container lifecycle."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ..config import load_config
from ..repos import RepoManager
from .utils import handle_errors, require_docker

console = Console()


def _manager() -> RepoManager:
    return RepoManager(load_config())


@click.group("repo")
def repo_group() -> None:
    """Manage repository containers."""


@repo_group.command("init")
@click.argument("repo_name")
@handle_errors
def init(repo_name: str) -> None:
    """Initialize container for an existing local repo."""
    require_docker()
    _manager().init_repo(repo_name)


@repo_group.command("clone")
@click.argument("target")
@handle_errors
def clone(target: str) -> None:
    """Clone a repo (name, owner/name or URL) and create its container."""
    require_docker()
    _manager().clone_repo(target)


@repo_group.command("start")
@click.argument("repo_name")
@handle_errors
def start(repo_name: str) -> None:
    """Start an existing repo container."""
    require_docker()
    _manager().start_repo(repo_name)


@repo_group.command("stop")
@click.argument("repo_name")
@handle_errors
def stop(repo_name: str) -> None:
    """Stop a repo container."""
    require_docker()
    _manager().stop_repo(repo_name)


@repo_group.command("exec", context_settings={"ignore_unknown_options": True})
@click.argument("repo_name")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@handle_errors
def exec_(repo_name: str, command: tuple[str, ...]) -> None:
    """Run a command in a repo container (default: interactive zsh)."""
    require_docker()
    sys.exit(_manager().exec_repo(repo_name, command or None))


@repo_group.command("list")
@click.option("--names", is_flag=True, help="Print repo names only (for shell completion)")
def list_(names: bool) -> None:
    """List all repo containers and their status."""
    from ..compose import list_configured_repos

    if names:
        for name in list_configured_repos():
            click.echo(name)
        return

    statuses = _manager().list_repos()
    if not statuses:
        console.print("[blue]No repository containers found.[/blue]")
        console.print(
            "[dim]Create one with: ccr repo init <repo-name> or ccr repo clone <repo-name>[/dim]"
        )
        return

    table = Table(title="Repository containers")
    table.add_column("Repo", style="cyan")
    table.add_column("Container")
    table.add_column("Status")
    for status in statuses:
        state = "[green]running[/green]" if status.running else "[red]stopped[/red]"
        table.add_row(status.name, status.container, state)
    console.print(table)


@repo_group.command("ssh-key")
@click.argument("repo_name")
@click.option(
    "--key",
    "key_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Public key file (default: ~/.ssh/id_ed25519.pub or id_rsa.pub)",
)
@handle_errors
def ssh_key(repo_name: str, key_path: Path | None) -> None:
    """Authorize your SSH public key in a repo container."""
    require_docker()
    _manager().add_ssh_key(repo_name, key_path)
