"""Logging setup tests."""

from __future__ import annotations

import logging

from rich.logging import RichHandler
from supaflat.logging_config import PACKAGE_LOGGER, configure_logging, get_logger


def test_loggers_live_under_the_package_namespace() -> None:
    assert get_logger("supaflat.core.flattener").name == "supaflat.core.flattener"
    assert get_logger("plugin").name == "supaflat.plugin"
    assert get_logger(PACKAGE_LOGGER).name == PACKAGE_LOGGER


def test_configure_logging_installs_one_rich_handler() -> None:
    configure_logging()
    configure_logging(verbose=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    rich_handlers = [h for h in package_logger.handlers if isinstance(h, RichHandler)]

    assert len(rich_handlers) == 1
    assert package_logger.level == logging.DEBUG

    configure_logging(verbose=False)
    assert package_logger.level == logging.INFO
