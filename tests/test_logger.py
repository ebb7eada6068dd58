import logging

import pytest

from swap_bundler.logger import TRACE, ColoredFormatter, setup_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    noisy_levels = {name: logging.getLogger(name).level for name in ("web3", "urllib3")}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, noisy_level in noisy_levels.items():
        logging.getLogger(name).setLevel(noisy_level)


def test_colored_formatter_restores_levelname():
    record = logging.LogRecord(
        "swap_bundler", logging.WARNING, __file__, 1, "hi", None, None
    )

    output = ColoredFormatter(fmt="%(levelname)s %(message)s").format(record)

    assert "\033[33m" in output
    assert output.endswith("hi")
    assert record.levelname == "WARNING"


def test_setup_logging_quiets_noisy_loggers(restore_root_logging):
    setup_logging("debug")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("web3").level == logging.WARNING


def test_setup_logging_trace_lets_everything_through(restore_root_logging):
    setup_logging("TRACE")

    assert logging.getLogger().level == TRACE
    assert logging.getLogger("urllib3").level == TRACE
