"""Tests for logging setup and token scrubbing."""

import logging
from types import SimpleNamespace

from altaframework.logging_config import LOGGER_PREFIX, SUBSYSTEMS, sanitize_secrets, setup_logging

_FAKE_TOKEN = "M" + "a" * 23 + "." + "b" * 6 + "." + "c" * 27


def test_sanitize_secrets_scrubs_bot_token():
    event = {
        "event": f"login with {_FAKE_TOKEN}",
        "headers": {"Authorization": "Bot " + "x" * 40},
        "args": [_FAKE_TOKEN, 3],
    }
    result = sanitize_secrets(None, "info", event)
    assert _FAKE_TOKEN not in result["event"]
    assert "***REDACTED***" in result["event"]
    assert result["headers"]["Authorization"] == "***REDACTED***"
    assert result["args"] == ["***REDACTED***", 3]


def test_sanitize_secrets_leaves_plain_values():
    event = {"event": "command_invoked", "command": "ping", "arg_count": 0}
    assert sanitize_secrets(None, "info", dict(event)) == event


def test_setup_logging_creates_subsystem_files(tmp_path):
    config = SimpleNamespace(
        log_dir=tmp_path / "logs",
        logging_level="INFO",
        logging_subsystem_levels={"commands": "DEBUG"},
        logging_max_file_size_mb=1,
        logging_backup_count=1,
    )
    root_handlers = list(logging.getLogger().handlers)
    setup_logging(config)
    try:
        assert (tmp_path / "logs").is_dir()
        assert logging.getLogger(f"{LOGGER_PREFIX}.commands").level == logging.DEBUG
        assert logging.getLogger(f"{LOGGER_PREFIX}.client").level == logging.INFO
        for subsystem in SUBSYSTEMS:
            handlers = logging.getLogger(f"{LOGGER_PREFIX}.{subsystem}").handlers
            assert len(handlers) == 1
    finally:
        for name in (LOGGER_PREFIX,) + tuple(f"{LOGGER_PREFIX}.{s}" for s in SUBSYSTEMS):
            for handler in logging.getLogger(name).handlers:
                handler.close()
            logging.getLogger(name).handlers.clear()
        logging.getLogger().handlers[:] = root_handlers
