"""Constants module for ccr.

All timeout values and shared names are defined here (SSOT).
"""

from __future__ import annotations

# === Timeouts (seconds) ===
DOCKER_COMMAND_TIMEOUT = 30  # Quick docker commands (info, ps, exec)
COMPOSE_TIMEOUT = 600  # compose up may build the image
CONTAINER_READY_TIMEOUT = 30  # Waiting for a container after compose up
GIT_CLONE_TIMEOUT = 600
CLAUDE_VERSION_TIMEOUT = 10  # `claude --version` auth probe
HTTP_TIMEOUT = 10  # Auth backend requests

# === Environment variables ===
ENV_HOME = "CCR_HOME"
ENV_REPOS_DIR = "CCR_REPOS_DIR"
ENV_AUTH_API = "CCR_AUTH_API"
ENV_GITEA_TOKEN = "GITEA_TOKEN"

# === Host layout ===
DEFAULT_HOME_DIRNAME = ".ccr"
DEFAULT_REPOS_DIRNAME = "repos"
CONFIG_FILENAME = "config.json"
STATE_FILENAME = "state.json"
COMPOSE_FILE_PREFIX = "docker-compose."
COMPOSE_FILE_SUFFIX = ".yml"
DOCKERFILE_NAME = "Dockerfile.claude"
STARTUP_SCRIPT_NAME = "claude-startup.sh"

# === Container layout ===
CONTAINER_USER = "claude"
CONTAINER_HOME = "/home/claude"
CONTAINER_WORKSPACE = "/workspace"
CONTAINER_CLAUDE_DIR = "/home/claude/.claude"
CONTAINER_CLAUDE_BIN = "/home/claude/.npm-global/bin/claude"
CONTAINER_BACKUP_DIR = "/workspace/.claude-auth-backup"
CONTAINER_CCR_DIR = "/opt/ccr"
DEFAULT_EXEC_COMMAND = ("sudo", "-u", CONTAINER_USER, "/bin/zsh")

# === Naming ===
CONTAINER_PREFIX = "claude-"

# === Auth ===
CREDENTIALS_FILENAME = ".credentials.json"
CLAUDE_CONFIG_FILENAME = "config.json"
BACKUP_KEEP = 5  # Backups retained per file kind

# === Shell integration ===
SHELL_MARKER = "# CCR (Claude Code Repo) integration"
