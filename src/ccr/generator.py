"""Container build context generation for ccr.

Produces the Dockerfile and startup script that every repo compose file
builds from (``build: {context: ., dockerfile: Dockerfile.claude}``).
"""

from __future__ import annotations

from pathlib import Path

from .constants import (
    CONTAINER_CCR_DIR,
    CONTAINER_HOME,
    CONTAINER_USER,
    DOCKERFILE_NAME,
    STARTUP_SCRIPT_NAME,
)

SYSTEM_PACKAGES = """
# System packages
RUN apt-get update && apt-get install -y --no-install-recommends \\
    git curl ca-certificates sudo zsh jq less procps \\
    openssh-server iptables \\
    python3 python3-pip python3-venv \\
    && rm -rf /var/lib/apt/lists/* \\
    && mkdir -p /var/run/sshd
"""

TAILSCALE_INSTALL = """
# Tailscale (started by the entrypoint only when TS_AUTHKEY is set)
RUN curl -fsSL https://tailscale.com/install.sh | sh
"""

USER_SETUP = f"""
# Non-root user with passwordless sudo
RUN useradd -m -s /bin/zsh {CONTAINER_USER} \\
    && echo '{CONTAINER_USER} ALL=(ALL) NOPASSWD:ALL' > /etc/sudoers.d/{CONTAINER_USER} \\
    && chmod 0440 /etc/sudoers.d/{CONTAINER_USER} \\
    && mkdir -p /commandhistory /workspace \\
    && chown {CONTAINER_USER}:{CONTAINER_USER} /commandhistory /workspace
"""

CLAUDE_INSTALL = f"""
# Claude Code (user-level npm prefix so it survives on the claude_home volume)
USER {CONTAINER_USER}
ENV NPM_CONFIG_PREFIX={CONTAINER_HOME}/.npm-global
ENV PATH={CONTAINER_HOME}/.npm-global/bin:$PATH
RUN npm config set fund false && npm config set update-notifier false \\
    && npm install -g @anthropic-ai/claude-code \\
    && npm cache clean --force
USER root
"""

CCR_INSTALL = f"""
# ccr runtime (auth manager used by the entrypoint)
RUN pip install --break-system-packages --no-cache-dir click rich requests pyyaml
COPY ccr {CONTAINER_CCR_DIR}/ccr
ENV PYTHONPATH={CONTAINER_CCR_DIR}
"""

ENTRYPOINT_SETUP = f"""
WORKDIR /workspace

COPY --chmod=755 {STARTUP_SCRIPT_NAME} /usr/local/bin/{STARTUP_SCRIPT_NAME}

USER {CONTAINER_USER}
ENTRYPOINT ["/usr/local/bin/{STARTUP_SCRIPT_NAME}"]
CMD ["sleep", "infinity"]
"""


def generate_dockerfile() -> str:
    """Generate Dockerfile.claude content."""
    return f"""# syntax=docker/dockerfile:1
# ccr repo container: Claude Code + git + optional Tailscale/SSH
FROM node:20-slim

LABEL org.opencontainers.image.title="ccr-claude"

ENV DEBIAN_FRONTEND=noninteractive
ENV LANG=C.UTF-8 LC_ALL=C.UTF-8
{SYSTEM_PACKAGES}
{TAILSCALE_INSTALL}
{USER_SETUP}
{CLAUDE_INSTALL}
{CCR_INSTALL}
{ENTRYPOINT_SETUP}
"""


def generate_startup_script() -> str:
    """Generate the container entrypoint.

    Runs as the claude user and uses sudo for privileged steps. Every step is
    best-effort except the final exec, so a broken Tailscale or SSH setup never
    prevents the container from starting.
    """
    return f"""#!/bin/bash

USERNAME="{CONTAINER_USER}"
CLAUDE_CONFIG_DIR="{CONTAINER_HOME}/.claude"

log() {{
    echo "[STARTUP] $1"
}}

error() {{
    echo "[ERROR] $1" >&2
}}

fix_permissions() {{
    log "Fixing directory permissions..."
    sudo chown -R "$USERNAME:$USERNAME" "/home/$USERNAME" 2>/dev/null || true
    mkdir -p "$CLAUDE_CONFIG_DIR/plugins" "/home/$USERNAME/.config/anthropic"
    chmod 755 "$CLAUDE_CONFIG_DIR" "$CLAUDE_CONFIG_DIR/plugins" "/home/$USERNAME/.config/anthropic"
}}

setup_git() {{
    if [ -z "$(git config --global user.name)" ]; then
        log "Setting up default git configuration..."
        git config --global user.name "Claude Code User"
        git config --global user.email "claude@example.com"
        git config --global init.defaultBranch main
        git config --global merge.conflictstyle diff3
        git config --global diff.colorMoved default
        git config --global pull.rebase false
        git config --global push.default simple
    fi
    git config --global --add safe.directory /workspace
}}

setup_tailscale() {{
    if [ -z "$TS_AUTHKEY" ] || [ "$TS_AUTHKEY" = "your_tailscale_auth_key_here" ]; then
        log "No valid Tailscale auth key provided"
        return
    fi
    if ! command -v tailscaled >/dev/null 2>&1; then
        error "tailscaled not installed"
        return
    fi
    log "Starting Tailscaled..."
    sudo mkdir -p /var/run/tailscale /var/lib/tailscale
    sudo tailscaled --state=/var/lib/tailscale/tailscaled.state \\
        --socket=/var/run/tailscale/tailscaled.sock &
    sleep 3
    log "Connecting to Tailscale with SSH enabled..."
    sudo tailscale up --authkey="$TS_AUTHKEY" --ssh --hostname="${{HOSTNAME:-claude-cli}}" --reset \\
        || error "Tailscale connection failed"
}}

setup_ssh_daemon() {{
    if [ ! -x /usr/sbin/sshd ]; then
        return
    fi
    if ! pgrep sshd >/dev/null; then
        log "Starting SSH daemon..."
        sudo /usr/sbin/sshd
    else
        log "SSH daemon already running"
    fi
}}

setup_claude_auth() {{
    log "Setting up Claude Code authentication..."
    if python3 -m ccr auth setup; then
        log "Claude Code authentication ready"
    else
        log "Claude Code authentication requires manual setup"
        log "Run: python3 -m ccr auth login"
    fi
}}

main() {{
    log "Claude Code container starting up (repo: ${{REPO_NAME:-unknown}})..."
    fix_permissions
    setup_git
    setup_tailscale
    setup_ssh_daemon
    setup_claude_auth
    log "Claude Code container ready!"
    exec "$@"
}}

main "$@"
"""


def write_build_files(containers_dir: Path) -> list[Path]:
    """Write Dockerfile.claude and the startup script into the build context."""
    containers_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for filename, content in [
        (DOCKERFILE_NAME, generate_dockerfile()),
        (STARTUP_SCRIPT_NAME, generate_startup_script()),
    ]:
        path = containers_dir / filename
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        written.append(path)
    (containers_dir / STARTUP_SCRIPT_NAME).chmod(0o755)
    return written
