import logging
import logging.handlers
from datetime import datetime

import pytest

from barsim.core.errors import BacktestError, InsufficientCashError, UserCallbackError
from barsim.models.config import LoggingConfig
from barsim.utils.logging_config import ColoredFormatter, setup_logging, setup_logging_from_config


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_with_rotating_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "run.log"

    root = setup_logging(level="DEBUG", log_file=str(log_file))
    logging.getLogger("barsim.test").debug("hello file")
    for handler in root.handlers:
        handler.flush()

    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
    assert "hello file" in log_file.read_text(encoding="utf-8")


def test_setup_logging_from_config(restore_root_logger):
    root = setup_logging_from_config(LoggingConfig(level="warning"), colored=True)

    assert root.level == logging.WARNING
    assert isinstance(root.handlers[0].formatter, ColoredFormatter)


def test_error_str_includes_tick_once_attached():
    error = InsufficientCashError("need more", required=10.0, available=5.0)
    assert str(error) == "need more"

    error.attach_tick(datetime(2013, 1, 3), 2)

    assert str(error) == "need more (tick 2 @ 2013-01-03T00:00:00)"
    assert isinstance(error, BacktestError)


def test_user_callback_error_carries_callback_name():
    error = UserCallbackError("boom", callback="handle_data",
                              timestamp=datetime(2013, 1, 1), tick_index=0)

    assert error.callback == "handle_data"
    assert "tick 0" in str(error)
