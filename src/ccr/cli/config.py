"""`ccr config` commands."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import Config, get_config_path, get_value, load_config, save_config, set_value
from .utils import handle_errors

console = Console()


def render_config(config: Config) -> Table:
    """Build the `ccr config show` table; the Tailscale key is never printed."""
    table = Table(title="CCR Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("git.provider", escape(config.git_provider))
    table.add_row("gitea.host", escape(config.gitea_host))
    table.add_row("gitea.user", escape(config.gitea_user))
    table.add_row("github.user", escape(config.github_user))
    table.add_row("tailscale.enabled", get_value(config, "tailscale.enabled"))
    if config.use_tailscale:
        masked = "[SET]" if config.tailscale_authkey else "[NOT SET]"
        table.add_row("tailscale.authkey", escape(masked))
    table.add_row("auth.api_url", escape(config.auth_api_url))
    return table


@click.group("config")
def config_group() -> None:
    """Show and change ccr settings."""


@config_group.command("show")
def show() -> None:
    """Show all settings."""
    console.print(render_config(load_config()))
    console.print(f"[dim]File: {get_config_path()}[/dim]", highlight=False)


@config_group.command("get")
@click.argument("key")
@handle_errors
def get(key: str) -> None:
    """Print a single setting."""
    click.echo(get_value(load_config(), key))


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@handle_errors
def set_(key: str, value: str) -> None:
    """Change a single setting."""
    save_config(set_value(load_config(), key, value))
    console.print(f"[green]✓[/green] {key} updated", highlight=False)


@config_group.command("wizard")
def wizard() -> None:
    """Interactive configuration setup."""
    from .prompts import run_config_wizard

    config = run_config_wizard(load_config())
    console.print(render_config(config))
