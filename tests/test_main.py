"""Tests for the console entry point."""

from unittest.mock import AsyncMock, patch

import pytest

from altaframework.exceptions import ConfigurationError, UnsupportedAccountError
from altaframework.main import run


@pytest.mark.parametrize(
    "error",
    [ConfigurationError("No token was provided"), UnsupportedAccountError("user account")],
)
def test_run_exits_nonzero_on_fatal_startup_error(error, capsys):
    with patch("altaframework.main.main", AsyncMock(side_effect=error)):
        with pytest.raises(SystemExit) as exc_info:
            run()
    assert exc_info.value.code == 1
    assert "fatal" in capsys.readouterr().err


def test_run_swallows_keyboard_interrupt():
    with patch("altaframework.main.main", AsyncMock(side_effect=KeyboardInterrupt)):
        run()
