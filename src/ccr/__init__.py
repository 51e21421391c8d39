"""ccr - Per-repository Claude Code containers."""

from __future__ import annotations

__version__ = "1.0.0"
