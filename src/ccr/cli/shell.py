"""`ccr shell` commands: rc-file integration."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click
from rich.console import Console

from ..shell import (
    SUPPORTED_SHELLS,
    IntegrationResult,
    activation_line,
    cleanup_shell_config,
    detect_shell_config,
    install_shell_integration,
)

console = Console()


def _resolve_rc(shell: str | None) -> Path | None:
    rc_path = detect_shell_config(shell or os.environ.get("SHELL"))
    if rc_path is None:
        console.print(f"[yellow]Unknown shell: {shell or os.environ.get('SHELL', '')}[/yellow]")
        console.print(
            f"[dim]Add this to your shell config: {activation_line('bash')}[/dim]",
            highlight=False,
        )
    return rc_path


def install_integration(shell: str | None = None) -> bool:
    """Install shell integration and report; returns False for unknown shells."""
    rc_path = _resolve_rc(shell)
    if rc_path is None:
        return False
    result = install_shell_integration(rc_path)
    if result is IntegrationResult.ALREADY_PRESENT:
        console.print(f"[blue]Shell integration already configured in {rc_path}[/blue]")
        return True
    if result is IntegrationResult.REPLACED:
        console.print("[yellow]Found existing CCR entries, cleaned them up[/yellow]")
    console.print(f"[green]Shell integration added to {rc_path}[/green]")
    console.print(f"[dim]Run 'source {rc_path}' or restart your shell to activate[/dim]")
    return True


@click.group("shell")
def shell_group() -> None:
    """Install or clean up shell integration."""


@shell_group.command("install")
@click.option("--shell", type=click.Choice(SUPPORTED_SHELLS), help="Shell (default: from $SHELL)")
def install(shell: str | None) -> None:
    """Add `ccr activate` to your shell rc file."""
    if not install_integration(shell):
        sys.exit(1)


@shell_group.command("cleanup")
@click.option("--shell", type=click.Choice(SUPPORTED_SHELLS), help="Shell (default: from $SHELL)")
def cleanup(shell: str | None) -> None:
    """Remove duplicate ccr entries from your shell rc file."""
    rc_path = _resolve_rc(shell)
    if rc_path is None:
        sys.exit(1)
    if not rc_path.is_file():
        console.print(f"[blue]Shell config file {rc_path} doesn't exist[/blue]")
        return

    found = cleanup_shell_config(rc_path)
    if not found:
        console.print("[blue]No CCR entries found, nothing to clean[/blue]")
        return
    console.print(f"[green]Removed {found} CCR activation line(s) from {rc_path}[/green]")
    console.print("[dim]A backup was saved next to it (.backup-<timestamp>)[/dim]")
    console.print("[dim]Run 'ccr shell install' to add a clean integration[/dim]")
