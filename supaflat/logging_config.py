"""Logging setup shared by every supaflat module.

Modules obtain their logger with::

    from .logging_config import get_logger
    logger = get_logger(__name__)

Handlers are only installed by ``configure_logging`` (called from the CLI), so
library users keep full control over their own logging configuration.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "supaflat"


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Attach a rich handler to the package logger.

    Safe to call multiple times; the handler is installed once and only the
    level changes on later calls.

    Args:
        verbose: Emit DEBUG records when True, INFO otherwise.
        console: Console to log to (defaults to stderr).
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    level = logging.DEBUG if verbose else logging.INFO

    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    package_logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package namespace."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
