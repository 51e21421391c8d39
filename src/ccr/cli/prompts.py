"""User prompts for ccr.

Interactive configuration wizard.
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.panel import Panel

from ..config import Config, GitProvider, save_config, set_value

console = Console()

_GITEA_CHOICES = {"2", "gitea"}
_YES_CHOICES = {"y", "yes"}


def run_config_wizard(config: Config) -> Config:
    """Ask for git provider and Tailscale settings, save and return the config."""
    console.print(Panel.fit("[bold]CCR Configuration Wizard[/bold]", border_style="blue"))

    console.print("[bold]Git Provider Configuration:[/bold]")
    console.print("  [cyan]1[/cyan]. GitHub (github.com)")
    console.print("  [cyan]2[/cyan]. Gitea (self-hosted)")
    console.print()
    choice = click.prompt("Select git provider", default="1", show_default=True)

    if choice.strip().lower() in _GITEA_CHOICES:
        config = set_value(config, "git.provider", GitProvider.GITEA.value)
        host = click.prompt(
            "Enter your Gitea host (e.g., gitea.example.com)",
            default=config.gitea_host or "",
            show_default=bool(config.gitea_host),
        )
        user = click.prompt(
            "Enter your Gitea username",
            default=config.gitea_user or "",
            show_default=bool(config.gitea_user),
        )
        config = set_value(config, "gitea.host", host.strip())
        config = set_value(config, "gitea.user", user.strip())
    else:
        config = set_value(config, "git.provider", GitProvider.GITHUB.value)
        owner = click.prompt(
            "Default GitHub owner for 'ccr repo clone <name>' (optional)",
            default=config.github_user or "",
            show_default=bool(config.github_user),
        )
        config = set_value(config, "github.user", owner.strip())

    console.print()
    console.print("[bold]Tailscale Configuration:[/bold]")
    enable = click.prompt("Enable Tailscale networking? [y/N]", default="", show_default=False)
    if enable.strip().lower() in _YES_CHOICES:
        config = set_value(config, "tailscale.enabled", "true")
        authkey = click.prompt(
            "Enter Tailscale auth key (optional)",
            default="",
            show_default=False,
            hide_input=True,
        )
        if authkey.strip():
            config = set_value(config, "tailscale.authkey", authkey.strip())
    else:
        config = set_value(config, "tailscale.enabled", "false")

    save_config(config)
    console.print()
    console.print("[green]Configuration saved![/green]")
    return config
