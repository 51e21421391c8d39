"""CLI package for ccr.

This package contains the CLI commands and supporting modules:
- repo: per-repository container lifecycle (`ccr repo ...`)
- auth: credential persistence (`ccr auth ...`)
- config: settings (`ccr config ...`)
- shell: rc-file integration (`ccr shell ...`)
- prompts: interactive configuration wizard
- utils: Docker checks and error reporting

Top-level commands (install, activate, detect, continue, state) live here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel

from .. import __version__
from ..logging import set_debug
from .auth import auth_group
from .config import config_group
from .repo import repo_group
from .shell import install_integration, shell_group
from .utils import handle_errors, require_docker

console = Console()

__all__ = ["cli"]


@click.group()
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging (or set CCR_DEBUG=1)")
@click.version_option(version=__version__, prog_name="ccr")
def cli(debug: bool) -> None:
    """ccr - Claude Code in per-repository Docker containers.

    Start with 'ccr install', then 'ccr repo init <repo-name>'.
    """
    if debug:
        set_debug(True)


cli.add_command(repo_group)
cli.add_command(repo_group, name="r")
cli.add_command(auth_group)
cli.add_command(config_group)
cli.add_command(shell_group)


@cli.command()
def version() -> None:
    """Show version."""
    click.echo(f"ccr v{__version__}")


@cli.command("help")
@click.pass_context
def help_(ctx: click.Context) -> None:
    """Show this message."""
    click.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())


@cli.command()
@click.option("--clean", is_flag=True, help="Remove the existing installation first")
@click.option("--no-shell", is_flag=True, help="Do not touch your shell rc file")
@handle_errors
def install(clean: bool, no_shell: bool) -> None:
    """Install the ccr system (build context, directories, shell integration)."""
    from ..installer import install_system, uninstall_system

    if clean and uninstall_system():
        console.print("[yellow]Removed existing ccr installation[/yellow]")

    console.print("[green]Installing ccr system...[/green]")
    result = install_system()
    console.print(f"[dim]Home: {result.home}[/dim]", highlight=False)
    console.print(
        f"[dim]Build context: {result.containers_dir} "
        f"({result.package_files} package files)[/dim]",
        highlight=False,
    )
    console.print(f"[dim]Repos directory: {result.repos_dir}[/dim]", highlight=False)

    if not no_shell:
        install_integration()

    console.print("[green]✓ ccr installation complete[/green]")
    console.print("Next steps:")
    console.print("  1. Restart your shell (or source your rc file)")
    console.print("  2. Configure git provider: ccr config wizard")
    console.print("  3. Initialize a repo: ccr repo init <repo-name>")


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
def uninstall(force: bool) -> None:
    """Remove the ccr home directory (compose files, config, build context)."""
    from ..installer import uninstall_system
    from ..paths import get_ccr_home

    home = get_ccr_home()
    if not force and not click.confirm(f"Remove {home}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return
    if uninstall_system():
        console.print(f"[green]✓ Removed {home}[/green]", highlight=False)
    else:
        console.print("[dim]Nothing to remove[/dim]")


@cli.command()
@click.argument("shell", type=click.Choice(["bash", "zsh", "fish"]))
def activate(shell: str) -> None:
    """Print shell integration code: eval "$(ccr activate zsh)"."""
    from ..shell import generate_activation

    click.echo(generate_activation(shell), nl=False)


def _detect(path: Path) -> None:
    from ..paths import detect_repo, get_compose_path, get_repos_dir

    repo_name = detect_repo(path)
    if repo_name is None:
        console.print("[yellow]Not in a repo directory[/yellow]")
        repos_dir = get_repos_dir()
        available: list[str] = []
        if repos_dir.is_dir():
            available = sorted(p.name for p in repos_dir.iterdir() if p.is_dir())
        console.print(f"Available repos: {' '.join(available) or 'none'}", highlight=False)
        return

    if get_compose_path(repo_name).is_file():
        container = "[green]configured ✓[/green]"
    else:
        container = f"[yellow]not configured (run: ccr repo init {repo_name})[/yellow]"
    console.print(
        Panel.fit(
            f"Current repo: [bold]{repo_name}[/bold]\nContainer: {container}",
            border_style="blue",
        )
    )


@cli.command()
@click.option("--path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
def detect(path: Path) -> None:
    """Show the current repo context."""
    _detect(path)


@cli.command()
@click.option("--path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
def status(path: Path) -> None:
    """Show the current repo context (alias of detect)."""
    _detect(path)


@click.command("continue", context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@handle_errors
def continue_(command: tuple[str, ...]) -> None:
    """Re-enter the last used repo container."""
    from ..config import load_config
    from ..repos import RepoManager
    from ..state import get_last_repo

    repo_name = get_last_repo()
    if repo_name is None:
        console.print("[yellow]No previous repo. Use: ccr repo exec <repo-name>[/yellow]")
        sys.exit(1)

    require_docker()
    console.print(f"[dim]Continuing in {repo_name}[/dim]", highlight=False)
    sys.exit(RepoManager(load_config()).exec_repo(repo_name, command or None))


cli.add_command(continue_)
cli.add_command(continue_, name="c")


@cli.group()
def state() -> None:
    """Read or record the last used repo."""


@state.command("save")
@click.argument("repo_name")
@handle_errors
def state_save(repo_name: str) -> None:
    """Record REPO_NAME as the last used repo."""
    from ..state import save_last_repo

    save_last_repo(repo_name)


@state.command("get")
def state_get() -> None:
    """Print the last used repo."""
    from ..state import get_last_repo

    repo_name = get_last_repo()
    if repo_name is None:
        sys.exit(1)
    click.echo(repo_name)


if __name__ == "__main__":  # pragma: no cover
    cli()
