"""Logging setup for the command line and the web server."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from accesshtml.config import LoggingConfig

_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(cfg: LoggingConfig, *, console: Console | None = None) -> logging.Logger:
    """Install handlers on the ``accesshtml`` logger according to *cfg*.

    Calling this again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger("accesshtml")
    for handler in list(logger.handlers):
        if getattr(handler, "_accesshtml", False):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(_LEVELS[cfg.level])

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    rich_handler._accesshtml = True  # type: ignore[attr-defined]
    logger.addHandler(rich_handler)

    if cfg.enable_file_logging:
        cfg.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(cfg.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler._accesshtml = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    return logger
