"""Claude Code authentication persistence.

Keeps the Claude Code OAuth credentials alive across container recreation:
credentials are backed up into the (persistent) workspace, optionally pushed to
a backend, and restored from there when a fresh container starts without them.

Restore order: backend first, then the newest local backup.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import requests
from rich.console import Console
from rich.markup import escape

from .constants import (
    BACKUP_KEEP,
    CLAUDE_CONFIG_FILENAME,
    CLAUDE_VERSION_TIMEOUT,
    CONTAINER_BACKUP_DIR,
    CONTAINER_CLAUDE_BIN,
    CONTAINER_CLAUDE_DIR,
    CREDENTIALS_FILENAME,
    ENV_AUTH_API,
    HTTP_TIMEOUT,
)
from .logging import get_logger

console = Console()
logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthPaths:
    """Filesystem locations used by the auth manager."""

    claude_dir: Path = Path(CONTAINER_CLAUDE_DIR)
    backup_dir: Path = Path(CONTAINER_BACKUP_DIR)
    claude_bin: str = CONTAINER_CLAUDE_BIN

    @property
    def credentials_file(self) -> Path:
        return self.claude_dir / CREDENTIALS_FILENAME

    @property
    def config_file(self) -> Path:
        return self.claude_dir / CLAUDE_CONFIG_FILENAME

    def resolve_claude_bin(self) -> str:
        """Return the claude binary, falling back to PATH lookup."""
        if Path(self.claude_bin).is_file():
            return self.claude_bin
        return shutil.which("claude") or self.claude_bin


@dataclass(frozen=True)
class AuthStatus:
    valid: bool
    message: str
    expires_at: datetime | None = None


def _log(message: str) -> None:
    console.print(f"[blue]\\[AUTH-MANAGER][/blue] {escape(message)}", highlight=False)


def _error(message: str) -> None:
    console.print(f"[red]\\[AUTH-ERROR][/red] {escape(message)}", highlight=False)


def _success(message: str) -> None:
    console.print(f"[green]\\[AUTH-SUCCESS][/green] {escape(message)}", highlight=False)


def _warn(message: str) -> None:
    console.print(f"[yellow]\\[AUTH-WARNING][/yellow] {escape(message)}", highlight=False)


def get_api_url(configured: str = "") -> str | None:
    """Resolve the auth backend URL: environment first, then config."""
    url = os.environ.get(ENV_AUTH_API) or configured
    return url or None


def _backup_suffix(path: Path) -> int:
    try:
        return int(path.name.rsplit(".", 1)[1])
    except (IndexError, ValueError):
        return -1


def _list_backups(backup_dir: Path, base_name: str) -> list[Path]:
    """List backups of one file kind, oldest first."""
    if not backup_dir.is_dir():
        return []
    backups = [
        p for p in backup_dir.glob(f"{base_name}.*") if p.is_file() and _backup_suffix(p) >= 0
    ]
    return sorted(backups, key=_backup_suffix)


class AuthManager:
    """Check, back up, restore and upload Claude Code credentials."""

    def __init__(self, paths: AuthPaths | None = None, api_url: str | None = None) -> None:
        self.paths = paths or AuthPaths()
        self.api_url = api_url

    def check_auth(self) -> AuthStatus:
        """Check that the credentials file exists and its token has not expired."""
        _log("Checking Claude Code authentication...")
        credentials = self.paths.credentials_file

        if not credentials.is_file():
            status = AuthStatus(False, f"No authentication file found at {credentials}")
            _error(status.message)
            return status

        try:
            data = json.loads(credentials.read_text(encoding="utf-8"))
            expires_ms = int(data["claudeAiOauth"]["expiresAt"])
            expires_at = datetime.fromtimestamp(expires_ms / 1000)
        except (OSError, OverflowError, json.JSONDecodeError, KeyError, TypeError, ValueError):
            status = AuthStatus(False, "Invalid authentication file - missing expiration")
            _error(status.message)
            return status

        now_ms = int(time.time() * 1000)
        if now_ms > expires_ms:
            status = AuthStatus(False, "Authentication token expired", expires_at)
            _error(status.message)
            return status

        status = AuthStatus(True, f"Authentication valid (expires: {expires_at:%c})", expires_at)
        _success(status.message)
        return status

    def test_claude_auth(self) -> bool:
        """Probe the Claude Code CLI with `claude --version`."""
        _log("Testing Claude Code CLI authentication...")
        claude = self.paths.resolve_claude_bin()
        try:
            result = subprocess.run(
                [claude, "--version"],
                capture_output=True,
                text=True,
                check=False,
                timeout=CLAUDE_VERSION_TIMEOUT,
            )
        except FileNotFoundError:
            _error(f"Claude Code CLI not found: {claude}")
            return False
        except subprocess.TimeoutExpired:
            _error(f"Claude Code CLI did not respond within {CLAUDE_VERSION_TIMEOUT}s")
            return False

        output = (result.stdout or "") + (result.stderr or "")
        if result.returncode == 0 and "Claude Code" in output:
            _success("Claude Code CLI authentication working")
            return True
        _error(f"Claude Code CLI authentication failed: {output.strip()}")
        return False

    def backup_auth(self, now: int | None = None) -> list[Path]:
        """Copy credentials and config into the backup dir, keeping the newest few.

        Args:
            now: Epoch seconds used as the backup suffix (defaults to now).

        Returns:
            Paths of the backups written.
        """
        _log("Backing up authentication files...")
        stamp = int(time.time()) if now is None else now
        backup_dir = self.paths.backup_dir
        backup_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for source, label in (
            (self.paths.credentials_file, "credentials"),
            (self.paths.config_file, "config"),
        ):
            if source.is_file():
                target = backup_dir / f"{source.name}.{stamp}"
                shutil.copy2(source, target)
                written.append(target)
                _log(f"Backed up {label} file")

        for base_name in (CREDENTIALS_FILENAME, CLAUDE_CONFIG_FILENAME):
            backups = _list_backups(backup_dir, base_name)
            for stale in backups[:-BACKUP_KEEP]:
                stale.unlink()
                logger.debug("Removed old backup %s", stale)

        return written

    def _fetch_from_backend(self) -> dict | None:
        if not self.api_url:
            logger.debug("No auth backend configured")
            return None
        _log("Checking backend for authentication...")
        try:
            response = requests.get(self.api_url, timeout=HTTP_TIMEOUT)
            if response.status_code != 200:
                return None
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.debug("Auth backend request failed: %s", e)
            return None
        if isinstance(data, dict) and data.get("claudeAiOauth"):
            return data
        return None

    def restore_auth(self) -> str | None:
        """Restore credentials from the backend or the newest local backup.

        Returns:
            "backend" or the backup path used, or None when nothing was restored.
        """
        _log("Attempting to restore authentication...")
        credentials = self.paths.credentials_file

        data = self._fetch_from_backend()
        if data is not None:
            credentials.parent.mkdir(parents=True, exist_ok=True)
            credentials.write_text(json.dumps(data), encoding="utf-8")
            os.chmod(credentials, 0o600)
            _success("Restored authentication from backend")
            return "backend"
        if self.api_url:
            _warn("No valid authentication found on backend")

        backups = _list_backups(self.paths.backup_dir, CREDENTIALS_FILENAME)
        if backups:
            latest = backups[-1]
            _log(f"Restoring from backup: {latest}")
            credentials.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(latest, credentials)
            _success("Restored authentication from backup")
            return str(latest)

        _error("No authentication backup found")
        return None

    def upload_auth(self) -> bool:
        """POST the current credentials to the backend."""
        _log("Uploading authentication to backend...")
        credentials = self.paths.credentials_file
        if not credentials.is_file():
            _error("No authentication file to upload")
            return False
        if not self.api_url:
            _warn(f"No auth backend configured (set {ENV_AUTH_API} or auth.api_url)")
            return False

        try:
            payload = json.loads(credentials.read_text(encoding="utf-8"))
            response = requests.post(self.api_url, json=payload, timeout=HTTP_TIMEOUT)
        except (OSError, json.JSONDecodeError, requests.RequestException) as e:
            logger.debug("Auth upload failed: %s", e)
            _warn("Failed to upload authentication to backend")
            return False

        if not response.ok:
            _warn(f"Failed to upload authentication to backend (HTTP {response.status_code})")
            return False
        _success("Authentication uploaded to backend")
        return True

    def interactive_login(self) -> bool:
        """Run the Claude Code OAuth login, then verify and upload."""
        _log("Starting interactive Claude Code login...")
        self.backup_auth()

        console.print("Please complete the OAuth login process...")
        claude = self.paths.resolve_claude_bin()
        try:
            result = subprocess.run([claude, "code", "login"], check=False)
        except FileNotFoundError:
            _error(f"Claude Code CLI not found: {claude}")
            return False
        if result.returncode != 0:
            _error("Login failed")
            return False

        _success("Login completed successfully")
        if not self.check_auth().valid:
            _error("Login completed but authentication file is invalid")
            return False
        self.upload_auth()
        return True

    def setup_auth(self) -> bool:
        """Make sure valid credentials are in place.

        Returns:
            True when credentials are valid at the end, False when an
            interactive login is required.
        """
        _log("Setting up Claude Code authentication...")
        self.paths.claude_dir.mkdir(parents=True, exist_ok=True)

        if self.check_auth().valid and self.test_claude_auth():
            _success("Authentication already valid")
            self.backup_auth()
            if self.api_url:
                self.upload_auth()
            return True

        if self.restore_auth() is not None:
            if self.check_auth().valid and self.test_claude_auth():
                _success("Authentication restored successfully")
                return True
            _warn("Restored authentication is invalid")

        _warn("No valid authentication found. Interactive login required.")
        console.print()
        console.print("To authenticate Claude Code CLI:")
        console.print("1. Run: ccr auth login")
        console.print("2. Or run: claude code login")
        console.print()
        return False
