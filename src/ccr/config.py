"""Configuration management for ccr."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Callable

from rich.console import Console

from .constants import CONFIG_FILENAME
from .errors import ConfigError
from .paths import get_ccr_home

console = Console(stderr=True)


class GitProvider(str, Enum):
    """Supported git hosting providers."""

    GITHUB = "github"
    GITEA = "gitea"


@dataclass
class Config:
    """ccr configuration model."""

    git_provider: str = GitProvider.GITHUB.value

    # Gitea settings (only used when git_provider == "gitea")
    gitea_host: str = ""
    gitea_user: str = ""

    # Default owner for `ccr repo clone <name>` on GitHub
    github_user: str = ""

    # Tailscale networking inside repo containers
    use_tailscale: bool = False
    tailscale_authkey: str = ""

    # Optional backend that stores Claude Code credentials
    auth_api_url: str = ""

    @property
    def is_gitea(self) -> bool:
        return self.git_provider == GitProvider.GITEA.value


def _parse_provider(value: str) -> str:
    if value not in {p.value for p in GitProvider}:
        raise ConfigError("git.provider must be 'github' or 'gitea'")
    return value


def _parse_bool(value: str) -> bool:
    if value not in ("true", "false"):
        raise ConfigError("tailscale.enabled must be 'true' or 'false'")
    return value == "true"


def _parse_url(value: str) -> str:
    if value and not value.startswith(("http://", "https://")):
        raise ConfigError("auth.api_url must be empty or an http(s) URL")
    return value.rstrip("/")


def _parse_str(value: str) -> str:
    return value


# Dotted key -> (dataclass field, parser)
CONFIG_KEYS: dict[str, tuple[str, Callable[[str], object]]] = {
    "git.provider": ("git_provider", _parse_provider),
    "gitea.host": ("gitea_host", _parse_str),
    "gitea.user": ("gitea_user", _parse_str),
    "github.user": ("github_user", _parse_str),
    "tailscale.enabled": ("use_tailscale", _parse_bool),
    "tailscale.authkey": ("tailscale_authkey", _parse_str),
    "auth.api_url": ("auth_api_url", _parse_url),
}


def get_config_path() -> Path:
    """Get the path to the config file."""
    return get_ccr_home() / CONFIG_FILENAME


def load_config() -> Config:
    """Load configuration from file, or return defaults."""
    config_path = get_config_path()

    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
            known = {f.name for f in fields(Config)}
            return Config(**{k: v for k, v in data.items() if k in known})
        except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
            console.print(f"[yellow]Warning: Failed to load config ({e}), using defaults[/yellow]")

    return Config()


def save_config(config: Config) -> None:
    """Save configuration to file."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps(asdict(config), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def _lookup(key: str) -> tuple[str, Callable[[str], object]]:
    try:
        return CONFIG_KEYS[key]
    except KeyError:
        raise ConfigError(f"Unknown configuration key: {key}") from None


def get_value(config: Config, key: str) -> str:
    """Get a config value by dotted key, formatted as a string.

    Raises:
        ConfigError: If the key is unknown.
    """
    field_name, _ = _lookup(key)
    value = getattr(config, field_name)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def set_value(config: Config, key: str, value: str) -> Config:
    """Return a copy of config with a dotted key set.

    Raises:
        ConfigError: If the key is unknown or the value is invalid.
    """
    field_name, parse = _lookup(key)
    return replace(config, **{field_name: parse(value)})
