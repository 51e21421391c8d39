"""docker-compose file generation for repository containers.

Each repository gets its own compose file with three services: the Claude Code
container plus filesystem and git MCP servers sharing a per-repo network.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .config import Config
from .constants import (
    COMPOSE_FILE_PREFIX,
    COMPOSE_FILE_SUFFIX,
    CONTAINER_CLAUDE_DIR,
    CONTAINER_HOME,
    CONTAINER_WORKSPACE,
    DOCKERFILE_NAME,
    ENV_AUTH_API,
)
from .paths import (
    get_compose_path,
    get_containers_dir,
    get_container_name,
    repo_from_compose_filename,
    validate_repo_name,
)

COMPOSE_VERSION = "3.8"

# Volumes shared by every repo container, created once by ccr
EXTERNAL_VOLUMES = ("anthropic_config", "claude_home")


@dataclass
class Service:
    """A compose service."""

    image: str | None = None
    build: dict[str, str] | None = None
    container_name: str | None = None
    hostname: str | None = None
    environment: list[str] = field(default_factory=list)
    volumes: list[str] = field(default_factory=list)
    working_dir: str | None = None
    devices: list[str] = field(default_factory=list)
    cap_add: list[str] = field(default_factory=list)
    command: list[str] | None = None
    restart: str = "unless-stopped"
    tty: bool = False
    stdin_open: bool = False
    networks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize, dropping unset and empty fields."""
        data: dict[str, Any] = {}
        for key in (
            "build",
            "image",
            "container_name",
            "hostname",
            "networks",
            "environment",
            "volumes",
            "working_dir",
            "devices",
            "cap_add",
            "command",
            "restart",
        ):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.tty:
            data["tty"] = True
        if self.stdin_open:
            data["stdin_open"] = True
        return data


@dataclass
class Network:
    driver: str = "bridge"
    internal: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"driver": self.driver, "internal": self.internal}


@dataclass
class Volume:
    external: bool = False
    driver: str = "local"

    def to_dict(self) -> dict[str, Any]:
        if self.external:
            return {"external": True}
        return {"driver": self.driver}


@dataclass
class ComposeProject:
    """A complete compose file."""

    services: dict[str, Service] = field(default_factory=dict)
    networks: dict[str, Network] = field(default_factory=dict)
    volumes: dict[str, Volume] = field(default_factory=dict)
    version: str = COMPOSE_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "services": {name: s.to_dict() for name, s in self.services.items()},
            "networks": {name: n.to_dict() for name, n in self.networks.items()},
            "volumes": {name: v.to_dict() for name, v in self.volumes.items()},
        }


class _ComposeDumper(yaml.SafeDumper):
    """SafeDumper that writes multi-line strings as literal blocks."""


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_ComposeDumper.add_representer(str, _str_representer)


def _filesystem_command() -> list[str]:
    script = (
        "npm install -g @modelcontextprotocol/server-filesystem &&\n"
        f"npx @modelcontextprotocol/server-filesystem {CONTAINER_WORKSPACE}\n"
    )
    return ["sh", "-c", script]


def _git_command(config: Config) -> list[str]:
    """Build the mcp-git startup script.

    The git identity is resolved at generation time from the current config.
    """
    if config.is_gitea and config.gitea_host and config.gitea_user:
        name = shlex.quote(config.gitea_user)
        email = shlex.quote(f"{config.gitea_user}@{config.gitea_host}")
        identity = (
            f"    git config user.name {name} &&\n"
            f"    git config user.email {email} &&\n"
            "    git config credential.helper "
            f"'store --file={CONTAINER_WORKSPACE}/.git-credentials' &&\n"
        )
    else:
        identity = (
            "    git config user.name 'claude' &&\n"
            "    git config user.email 'claude@github.com' &&\n"
        )
    script = (
        "apt update && apt install -y git &&\n"
        "pip install mcp-server-git &&\n"
        f"cd {CONTAINER_WORKSPACE} &&\n"
        "if [ ! -d .git ]; then\n"
        "    git init &&\n"
        f"{identity}"
        "    git branch -M main\n"
        "fi &&\n"
        f"python -m mcp_server_git --repository {CONTAINER_WORKSPACE}\n"
    )
    return ["sh", "-c", script]


def build_compose_project(repo_name: str, repo_path: Path, config: Config) -> ComposeProject:
    """Build the compose model for a repository.

    Args:
        repo_name: Validated repository name.
        repo_path: Host path of the repository (mounted at /workspace).
        config: Current ccr configuration.
    """
    repo_name = validate_repo_name(repo_name)
    container = get_container_name(repo_name)
    network = f"{container}-network"
    history_volume = f"command_history_{repo_name}"
    tailscale_volume = f"tailscale_state_{repo_name}"

    environment = [
        "TZ=UTC",
        "ANTHROPIC_LOG_LEVEL=info",
        f"REPO_NAME={repo_name}",
    ]
    if config.is_gitea:
        environment.append(f"GITEA_URL={config.gitea_host}")
        environment.append(f"GITEA_USER={config.gitea_user}")
    if config.use_tailscale:
        environment.append(f"TS_AUTHKEY={config.tailscale_authkey}")
    if config.auth_api_url:
        environment.append(f"{ENV_AUTH_API}={config.auth_api_url}")

    volumes = [
        f"anthropic_config:{CONTAINER_HOME}/.config/anthropic",
        f"{repo_path}:{CONTAINER_WORKSPACE}",
        f"{history_volume}:/commandhistory",
        f"claude_home:{CONTAINER_HOME}",
        f"./config/claude:{CONTAINER_CLAUDE_DIR}",
    ]
    if config.use_tailscale:
        volumes.append(f"{tailscale_volume}:/var/lib/tailscale")
        volumes.append("./config/tailscale:/config")

    claude = Service(
        build={"context": ".", "dockerfile": DOCKERFILE_NAME},
        container_name=container,
        hostname=container,
        environment=environment,
        volumes=volumes,
        working_dir=CONTAINER_WORKSPACE,
        devices=["/dev/net/tun:/dev/net/tun"] if config.use_tailscale else [],
        cap_add=["NET_ADMIN", "SYS_MODULE"] if config.use_tailscale else [],
        tty=True,
        stdin_open=True,
        networks=[network],
    )

    mcp_filesystem = Service(
        image="node:20-slim",
        container_name=f"mcp-filesystem-{repo_name}",
        networks=[network],
        environment=["MCP_LOG_LEVEL=info"],
        volumes=[f"{repo_path}:{CONTAINER_WORKSPACE}:ro"],
        working_dir=CONTAINER_WORKSPACE,
        command=_filesystem_command(),
    )

    mcp_git = Service(
        image="python:3.11-slim",
        container_name=f"mcp-git-{repo_name}",
        networks=[network],
        environment=["MCP_LOG_LEVEL=info"],
        volumes=[f"{repo_path}:{CONTAINER_WORKSPACE}"],
        working_dir=CONTAINER_WORKSPACE,
        command=_git_command(config),
    )

    project_volumes = {name: Volume(external=True) for name in EXTERNAL_VOLUMES}
    project_volumes[history_volume] = Volume()
    if config.use_tailscale:
        project_volumes[tailscale_volume] = Volume()

    return ComposeProject(
        services={
            container: claude,
            f"mcp-filesystem-{repo_name}": mcp_filesystem,
            f"mcp-git-{repo_name}": mcp_git,
        },
        networks={network: Network()},
        volumes=dict(sorted(project_volumes.items())),
    )


def render_compose(project: ComposeProject) -> str:
    """Render a compose model to YAML, preserving key order."""
    return yaml.dump(
        project.to_dict(),
        Dumper=_ComposeDumper,
        sort_keys=False,
        default_flow_style=False,
        width=120,
    )


def write_compose_file(repo_name: str, repo_path: Path, config: Config) -> Path:
    """Generate and write the compose file for a repository."""
    compose_path = get_compose_path(repo_name)
    compose_path.parent.mkdir(parents=True, exist_ok=True)
    content = render_compose(build_compose_project(repo_name, repo_path, config))
    with open(compose_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
    return compose_path


def list_configured_repos() -> list[str]:
    """List repositories that have a compose file."""
    containers_dir = get_containers_dir()
    if not containers_dir.is_dir():
        return []
    pattern = f"{COMPOSE_FILE_PREFIX}*{COMPOSE_FILE_SUFFIX}"
    names = (repo_from_compose_filename(p.name) for p in containers_dir.glob(pattern))
    return sorted(name for name in names if name)
