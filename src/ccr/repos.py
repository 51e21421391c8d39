"""Repository container management.

Creates, starts, stops and enters the per-repository Claude Code containers.
Each operation is a straight sequence of compose/docker/git invocations.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence
from urllib.parse import urlparse

from rich.console import Console
from rich.markup import escape

from . import docker
from .compose import EXTERNAL_VOLUMES, list_configured_repos, write_compose_file
from .config import Config
from .constants import (
    CONTAINER_HOME,
    CONTAINER_USER,
    DEFAULT_EXEC_COMMAND,
    ENV_GITEA_TOKEN,
    GIT_CLONE_TIMEOUT,
)
from .errors import ContainerError, GitError, RepoError, ValidationError
from .logging import get_logger
from .paths import (
    get_compose_path,
    get_container_name,
    get_repo_path,
    get_repos_dir,
    validate_repo_name,
)
from .state import save_last_repo

console = Console()
logger = get_logger(__name__)


@dataclass(frozen=True)
class RepoStatus:
    name: str
    container: str
    running: bool


@dataclass(frozen=True)
class CloneSource:
    """Resolved clone target: the URL to clone and a token-free remote URL."""

    repo_name: str
    url: str
    public_url: str


def _log(message: str) -> None:
    console.print(f"[green]\\[REPO-MGR][/green] {escape(message)}", highlight=False)


def _info(message: str) -> None:
    console.print(f"[blue]\\[REPO-MGR][/blue] {escape(message)}", highlight=False)


def _warn(message: str) -> None:
    console.print(f"[yellow]\\[REPO-MGR][/yellow] {escape(message)}", highlight=False)


def resolve_clone_source(target: str, config: Config, token: str | None = None) -> CloneSource:
    """Work out what to clone for `ccr repo clone <target>`.

    Accepted targets:
        - full URL: used as-is, repo name from the last path segment
        - ``owner/name``: GitHub repository
        - ``name``: Gitea repository of gitea.user, or GitHub repository of
          github.user, depending on git.provider

    Raises:
        RepoError: If the provider settings needed for the target are missing.
    """
    if "://" in target or target.startswith("git@"):
        segment = target.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
        name = segment[:-4] if segment.endswith(".git") else segment
        parsed = urlparse(target)
        public = target
        if parsed.password or parsed.username:
            public = parsed._replace(netloc=parsed.netloc.rpartition("@")[2]).geturl()
        return CloneSource(validate_repo_name(name), target, public)

    if "/" in target:
        owner, _, name = target.partition("/")
        validate_repo_name(owner)
        url = f"https://github.com/{owner}/{validate_repo_name(name)}.git"
        return CloneSource(name, url, url)

    name = validate_repo_name(target)
    if config.is_gitea:
        if not (config.gitea_host and config.gitea_user):
            raise RepoError(
                "Gitea is not configured. Run: ccr config set gitea.host <host> "
                "and ccr config set gitea.user <user>"
            )
        token = token if token is not None else os.environ.get(ENV_GITEA_TOKEN, "")
        if not token:
            raise RepoError(f"{ENV_GITEA_TOKEN} must be set to clone from Gitea")
        path = f"{config.gitea_host}/{config.gitea_user}/{name}.git"
        return CloneSource(
            name,
            f"https://{config.gitea_user}:{token}@{path}",
            f"https://{path}",
        )

    if not config.github_user:
        raise RepoError(
            "Use owner/name, or set a default owner: ccr config set github.user <user>"
        )
    url = f"https://github.com/{config.github_user}/{name}.git"
    return CloneSource(name, url, url)


def _split_command(command: str) -> list[str]:
    try:
        return shlex.split(command)
    except ValueError as e:
        raise ValidationError(f"Cannot parse command {command!r}: {e}") from None


def _run_git(args: Sequence[str], *, cwd: Path | None = None, timeout: int = 30) -> None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise GitError("git not found in PATH") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"git {args[0]} timed out after {timeout}s") from e
    if result.returncode != 0:
        raise GitError(f"git {args[0]} failed (exit {result.returncode})")


class RepoManager:
    """Manage isolated Claude Code containers for individual repositories."""

    def __init__(self, config: Config) -> None:
        self.config = config

    def ensure_repos_dir(self) -> Path:
        repos_dir = get_repos_dir()
        if not repos_dir.is_dir():
            _log(f"Creating repos directory: {repos_dir}")
            repos_dir.mkdir(parents=True, exist_ok=True)
        return repos_dir

    def _require_compose(self, repo_name: str, hint: bool = False) -> Path:
        compose_file = get_compose_path(repo_name)
        if not compose_file.is_file():
            message = f"No container configuration found for repo: {repo_name}"
            if hint:
                message += f". Run 'ccr repo init {repo_name}' first."
            raise RepoError(message)
        return compose_file

    def init_repo(self, repo_name: str) -> str:
        """Generate the compose file for an existing local repo and start it.

        Returns:
            The Claude container name.

        Raises:
            RepoError: If the repository directory does not exist.
        """
        repo_name = validate_repo_name(repo_name)
        repo_path = get_repo_path(repo_name)
        if not repo_path.is_dir():
            raise RepoError(f"Repository directory does not exist: {repo_path}")

        _log(f"Initializing Claude Code container for repo: {repo_name}")
        _log(f"Repository path: {repo_path}")

        compose_file = write_compose_file(repo_name, repo_path, self.config)
        (compose_file.parent / "config" / "claude").mkdir(parents=True, exist_ok=True)
        if self.config.use_tailscale:
            (compose_file.parent / "config" / "tailscale").mkdir(parents=True, exist_ok=True)

        for volume in EXTERNAL_VOLUMES:
            docker.ensure_volume(volume)

        _log(f"Starting container for {repo_name}...")
        docker.compose_up(compose_file)

        container = get_container_name(repo_name)
        _log("Waiting for container to initialize...")
        if not docker.wait_for_container(container):
            raise ContainerError(f"Container '{container}' did not start")

        if self.config.is_gitea:
            self.configure_git_in_container(repo_name)

        _info(f"Repository container '{repo_name}' is ready!")
        _info(f"Access with: docker exec -it {container} sudo -u {CONTAINER_USER} /bin/zsh")
        _info(f"Or use: cr {repo_name} (after running: eval \"$(ccr activate zsh)\")")
        return container

    def clone_repo(self, target: str) -> str:
        """Clone a repository into the repos directory and initialize its container.

        Returns:
            The Claude container name.

        Raises:
            RepoError: If the target directory already exists.
            GitError: If cloning fails.
        """
        source = resolve_clone_source(target, self.config)
        repos_dir = self.ensure_repos_dir()
        repo_path = repos_dir / source.repo_name
        if repo_path.exists():
            raise RepoError(f"Repository directory already exists: {repo_path}")

        _log(f"Cloning repository: {source.public_url}")
        _run_git(["clone", source.url, source.repo_name], cwd=repos_dir, timeout=GIT_CLONE_TIMEOUT)
        if source.url != source.public_url:
            # Keep credentials out of .git/config
            _run_git(["remote", "set-url", "origin", source.public_url], cwd=repo_path)

        return self.init_repo(source.repo_name)

    def configure_git_in_container(self, repo_name: str) -> None:
        """Configure git identity and Gitea credentials in a repo container.

        Skipped with a warning when Gitea user, host or token are missing.
        """
        repo_name = validate_repo_name(repo_name)
        container = get_container_name(repo_name)
        user = self.config.gitea_user
        host = self.config.gitea_host
        token = os.environ.get(ENV_GITEA_TOKEN, "")
        if not (user and host and token):
            _warn("Skipping git credential setup (gitea.user, gitea.host or GITEA_TOKEN missing)")
            return

        _log(f"Configuring git credentials in container: {container}")
        credentials_file = f"{CONTAINER_HOME}/.git-credentials"
        steps: list[list[str]] = [
            ["git", "config", "--global", "user.name", user],
            ["git", "config", "--global", "user.email", f"{user}@{host}"],
            ["git", "config", "--global", "credential.helper", f"store --file={credentials_file}"],
            [
                "sh",
                "-c",
                f"umask 077 && printf '%s\\n' \"$0\" > {credentials_file}",
                f"https://{user}:{token}@{host}",
            ],
            ["chmod", "600", credentials_file],
            ["git", "config", "--global", "init.defaultBranch", "main"],
        ]
        for step in steps:
            result = docker.docker_exec(container, step, user=CONTAINER_USER)
            if result.returncode != 0:
                raise ContainerError(
                    f"Git setup failed in {container}: {step[0]} exited {result.returncode}"
                )

    def start_repo(self, repo_name: str) -> None:
        repo_name = validate_repo_name(repo_name)
        compose_file = self._require_compose(repo_name, hint=True)
        _log(f"Starting container for repo: {repo_name}")
        docker.compose_up(compose_file)
        _info(f"Container for '{repo_name}' is running!")

    def stop_repo(self, repo_name: str) -> None:
        repo_name = validate_repo_name(repo_name)
        compose_file = self._require_compose(repo_name)
        _log(f"Stopping container for repo: {repo_name}")
        docker.compose_down(compose_file)
        _info(f"Container for '{repo_name}' stopped.")

    def exec_repo(self, repo_name: str, command: str | Sequence[str] | None = None) -> int:
        """Run a command (default: interactive zsh) in a repo container.

        Starts the container first when it is not running.

        Returns:
            Exit code of the command.
        """
        repo_name = validate_repo_name(repo_name)
        container = get_container_name(repo_name)

        if command is None or command == "" or command == ():
            argv = list(DEFAULT_EXEC_COMMAND)
        elif isinstance(command, str):
            argv = _split_command(command)
        else:
            argv = list(command)
            if len(argv) == 1 and " " in argv[0]:
                argv = _split_command(argv[0])

        if not docker.is_container_running(container):
            _warn(f"Container '{container}' is not running. Starting it...")
            self.start_repo(repo_name)
            if not docker.wait_for_container(container):
                raise ContainerError(f"Container '{container}' did not start")

        save_last_repo(repo_name)
        logger.debug("Exec in %s: %s", container, argv)
        result = docker.docker_exec(container, argv, interactive=True)
        return result.returncode

    def list_repos(self) -> list[RepoStatus]:
        """List repos with a compose file and whether their container is running."""
        running = docker.list_running_containers()
        statuses = []
        for name in list_configured_repos():
            container = get_container_name(name)
            statuses.append(RepoStatus(name, container, container in running))
        return statuses

    def add_ssh_key(self, repo_name: str, pubkey_path: Path | None = None) -> Path:
        """Authorize a host SSH public key for the claude user in a container.

        Returns:
            The public key file that was installed.

        Raises:
            RepoError: If no public key is found.
        """
        repo_name = validate_repo_name(repo_name)
        if pubkey_path is None:
            ssh_dir = Path.home() / ".ssh"
            candidates = [ssh_dir / "id_ed25519.pub", ssh_dir / "id_rsa.pub"]
            pubkey_path = next((p for p in candidates if p.is_file()), None)
            if pubkey_path is None:
                raise RepoError(
                    "No SSH public key found. Generate one first: ssh-keygen -t ed25519"
                )
        elif not pubkey_path.is_file():
            raise RepoError(f"SSH public key not found: {pubkey_path}")

        key = pubkey_path.read_text(encoding="utf-8").strip()
        if not key or "\n" in key:
            raise ValidationError(f"Not a single-line SSH public key: {pubkey_path}")

        container = get_container_name(repo_name)
        if not docker.is_container_running(container):
            raise ContainerError(f"Container '{container}' is not running")

        ssh_dir = f"{CONTAINER_HOME}/.ssh"
        script = (
            f"mkdir -p {ssh_dir} && "
            f"printf '%s\\n' \"$0\" >> {ssh_dir}/authorized_keys && "
            f"chmod 700 {ssh_dir} && chmod 600 {ssh_dir}/authorized_keys"
        )
        result = docker.docker_exec(container, ["sh", "-c", script, key], user=CONTAINER_USER)
        if result.returncode != 0:
            raise ContainerError(f"Failed to add SSH key in {container}: {result.stderr.strip()}")
        _info(f"SSH key {pubkey_path.name} added to {container}")
        return pubkey_path
