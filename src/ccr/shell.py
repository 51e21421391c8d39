"""Shell integration: activation script, rc-file install and cleanup."""

from __future__ import annotations

import re
import shutil
from datetime import datetime
from enum import Enum
from pathlib import Path

from .constants import SHELL_MARKER
from .errors import ValidationError
from .logging import get_logger

logger = get_logger(__name__)

SUPPORTED_SHELLS = ("bash", "zsh", "fish")

# Lines removed by cleanup_shell_config
_CLEANUP_PATTERNS = (
    re.compile(r"ccr activate"),
    re.compile(r"# CCR.*integration"),
    re.compile(r"mise activate"),
)

_SHORT_ALIASES = {
    "cr-init": "init",
    "cr-clone": "clone",
    "cr-start": "start",
    "cr-stop": "stop",
    "cr-list": "list",
}

_POSIX_FUNCTIONS = """\
cr() {
    if [ -z "$1" ]; then
        echo "Usage: cr <repo-name>"
        echo "Available repos:"
        ccr repo list
        return 1
    fi
    ccr repo exec "$1"
}

crc() {
    local repo_name="$1"
    if [ -z "$repo_name" ] || [ -z "$2" ]; then
        echo "Usage: crc <repo-name> <command>"
        return 1
    fi
    shift
    ccr repo exec "$repo_name" -- "$@"
}

claude-in() {
    local repo_name="$1"
    if [ -z "$repo_name" ]; then
        echo "Usage: claude-in <repo-name> <claude-args>"
        return 1
    fi
    shift
    ccr repo exec "$repo_name" -- claude "$@"
}
"""

_BASH_COMPLETION = """\
_ccr_repo_complete() {
    local cur="${COMP_WORDS[COMP_CWORD]}"
    COMPREPLY=($(compgen -W "$(ccr repo list --names 2>/dev/null)" -- "$cur"))
}
complete -F _ccr_repo_complete cr crc claude-in cr-start cr-stop
"""

_ZSH_COMPLETION = """\
_ccr_repo_complete() {
    local -a repos
    repos=(${(f)"$(ccr repo list --names 2>/dev/null)"})
    compadd -a repos
}
if whence compdef >/dev/null 2>&1; then
    compdef _ccr_repo_complete cr crc claude-in cr-start cr-stop
fi
"""

_FISH_SCRIPT = """\
function cr
    if test (count $argv) -lt 1
        echo "Usage: cr <repo-name>"
        echo "Available repos:"
        ccr repo list
        return 1
    end
    ccr repo exec $argv[1]
end

function crc
    if test (count $argv) -lt 2
        echo "Usage: crc <repo-name> <command>"
        return 1
    end
    ccr repo exec $argv[1] -- $argv[2..-1]
end

function claude-in
    if test (count $argv) -lt 1
        echo "Usage: claude-in <repo-name> <claude-args>"
        return 1
    end
    ccr repo exec $argv[1] -- claude $argv[2..-1]
end

for cmd in cr crc claude-in cr-start cr-stop
    complete -c $cmd -f -a '(ccr repo list --names 2>/dev/null)'
end
"""


class IntegrationResult(str, Enum):
    INSTALLED = "installed"
    ALREADY_PRESENT = "already_present"
    REPLACED = "replaced"


def _check_shell(shell: str) -> str:
    if shell not in SUPPORTED_SHELLS:
        raise ValidationError(
            f"Unsupported shell '{shell}'. Supported: {', '.join(SUPPORTED_SHELLS)}"
        )
    return shell


def generate_activation(shell: str) -> str:
    """Generate the shell code printed by `ccr activate <shell>`.

    Raises:
        ValidationError: If the shell is not supported.
    """
    shell = _check_shell(shell)
    lines = ["# ccr shell integration", ""]
    if shell == "fish":
        lines.append("alias claude-repo 'ccr repo'")
        lines.extend(f"alias {name} 'ccr repo {sub}'" for name, sub in _SHORT_ALIASES.items())
        lines.append("")
        return "\n".join(lines) + "\n" + _FISH_SCRIPT

    lines.append("alias claude-repo='ccr repo'")
    lines.extend(f"alias {name}='ccr repo {sub}'" for name, sub in _SHORT_ALIASES.items())
    lines.append("")
    completion = _BASH_COMPLETION if shell == "bash" else _ZSH_COMPLETION
    return "\n".join(lines) + "\n" + _POSIX_FUNCTIONS + "\n" + completion


def detect_shell_config(shell_env: str | None, home: Path | None = None) -> Path | None:
    """Map a $SHELL value to its rc file, or None for unknown shells."""
    home = home or Path.home()
    name = Path(shell_env).name if shell_env else ""
    if name == "zsh":
        return home / ".zshrc"
    if name == "bash":
        return home / ".bashrc"
    if name == "fish":
        return home / ".config" / "fish" / "config.fish"
    return None


def shell_name_for(rc_path: Path) -> str:
    if rc_path.name == "config.fish":
        return "fish"
    if rc_path.name == ".zshrc":
        return "zsh"
    return "bash"


def activation_line(shell: str) -> str:
    if _check_shell(shell) == "fish":
        return "ccr activate fish | source"
    return f'eval "$(ccr activate {shell})"'


def install_shell_integration(rc_path: Path, shell: str | None = None) -> IntegrationResult:
    """Add the ccr activation line to a shell rc file.

    Stale `ccr activate` lines without the marker are removed after saving a
    copy to ``<rc>.ccr-backup``.
    """
    shell = shell or shell_name_for(rc_path)
    line = activation_line(shell)
    content = rc_path.read_text(encoding="utf-8") if rc_path.exists() else ""

    if SHELL_MARKER in content:
        return IntegrationResult.ALREADY_PRESENT

    result = IntegrationResult.INSTALLED
    if "ccr activate" in content:
        shutil.copy2(rc_path, rc_path.with_name(rc_path.name + ".ccr-backup"))
        content = "".join(
            kept for kept in content.splitlines(keepends=True) if "ccr activate" not in kept
        )
        result = IntegrationResult.REPLACED

    if content and not content.endswith("\n"):
        content += "\n"
    content += f"\n{SHELL_MARKER}\n{line}\n"

    rc_path.parent.mkdir(parents=True, exist_ok=True)
    rc_path.write_text(content, encoding="utf-8")
    logger.debug("Shell integration written to %s (%s)", rc_path, result.value)
    return result


def _squeeze_blank_lines(lines: list[str]) -> list[str]:
    out: list[str] = []
    previous_blank = False
    for line in lines:
        blank = not line.strip()
        if blank and previous_blank:
            continue
        out.append(line)
        previous_blank = blank
    return out


def cleanup_shell_config(rc_path: Path, now: datetime | None = None) -> int:
    """Remove ccr entries from a shell rc file.

    A timestamped backup is written first. Runs of blank lines left behind
    are collapsed to one.

    Returns:
        Number of `ccr activate` lines that were found.
    """
    if not rc_path.is_file():
        return 0

    content = rc_path.read_text(encoding="utf-8")
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    shutil.copy2(rc_path, rc_path.with_name(f"{rc_path.name}.backup-{stamp}"))

    lines = content.splitlines(keepends=True)
    found = sum(1 for line in lines if "ccr activate" in line)
    if not found:
        return 0

    kept = [line for line in lines if not any(p.search(line) for p in _CLEANUP_PATTERNS)]
    rc_path.write_text("".join(_squeeze_blank_lines(kept)), encoding="utf-8")
    return found
