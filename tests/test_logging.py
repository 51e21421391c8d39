"""Tests for ccr.logging module."""

from __future__ import annotations

import logging
import os
from unittest.mock import patch

from ccr.logging import _get_log_level, get_logger, set_debug


class TestGetLogLevel:
    """Tests for _get_log_level function."""

    def test_default_is_warning(self) -> None:
        """Default log level is WARNING when no env var set."""
        with patch.dict(os.environ, {}, clear=True):
            assert _get_log_level() == logging.WARNING

    def test_debug_enabled_with_1(self) -> None:
        """CCR_DEBUG=1 enables debug logging."""
        with patch.dict(os.environ, {"CCR_DEBUG": "1"}):
            assert _get_log_level() == logging.DEBUG

    def test_debug_enabled_case_insensitive(self) -> None:
        """CCR_DEBUG values are case insensitive."""
        with patch.dict(os.environ, {"CCR_DEBUG": "TRUE"}):
            assert _get_log_level() == logging.DEBUG
        with patch.dict(os.environ, {"CCR_DEBUG": "Yes"}):
            assert _get_log_level() == logging.DEBUG

    def test_invalid_value_is_warning(self) -> None:
        """Invalid CCR_DEBUG value defaults to WARNING."""
        with patch.dict(os.environ, {"CCR_DEBUG": "invalid"}):
            assert _get_log_level() == logging.WARNING


class TestGetLogger:
    """Tests for get_logger function."""

    def test_prefixes_with_ccr(self) -> None:
        """Logger names are prefixed with 'ccr' if not already."""
        assert get_logger("my_module").name == "ccr.my_module"

    def test_ccr_prefix_not_duplicated(self) -> None:
        """Logger names starting with 'ccr.' are not double-prefixed."""
        assert get_logger("ccr.docker").name == "ccr.docker"
        assert get_logger("ccr").name == "ccr"

    def test_similar_prefix_is_still_prefixed(self) -> None:
        """A name like 'ccrtools' is not mistaken for the ccr namespace."""
        assert get_logger("ccrtools").name == "ccr.ccrtools"

    def test_caches_loggers(self) -> None:
        """Same logger is returned for same name."""
        assert get_logger("cached_module") is get_logger("cached_module")


class TestSetDebug:
    """Tests for set_debug function."""

    def test_enable_and_disable(self) -> None:
        """set_debug toggles the ccr root logger and its handlers."""
        get_logger("ccr")
        root = logging.getLogger("ccr")
        try:
            set_debug(True)
            assert root.level == logging.DEBUG
            assert all(h.level == logging.DEBUG for h in root.handlers)
        finally:
            set_debug(False)
        assert root.level == logging.WARNING

    def test_single_handler(self) -> None:
        """Repeated logger lookups and toggles keep one handler on the ccr root."""
        get_logger("one")
        get_logger("two")
        set_debug(True)
        set_debug(False)
        assert len(logging.getLogger("ccr").handlers) == 1
