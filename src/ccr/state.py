"""Last-used repository tracking for `ccr continue`."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from .constants import STATE_FILENAME
from .logging import get_logger
from .paths import get_ccr_home, validate_repo_name

logger = get_logger(__name__)


def get_state_path() -> Path:
    return get_ccr_home() / STATE_FILENAME


def save_last_repo(repo_name: str) -> None:
    """Record a repository as the last one used."""
    repo_name = validate_repo_name(repo_name)
    path = get_state_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    state = {
        "last_repo": repo_name,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    path.write_text(json.dumps(state, indent=2), encoding="utf-8")


def get_last_repo() -> str | None:
    """Get the last used repository, or None if unknown."""
    path = get_state_path()
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.debug("Ignoring unreadable state file %s: %s", path, e)
        return None
    last = data.get("last_repo") if isinstance(data, dict) else None
    return last if isinstance(last, str) and last else None
