"""Centralized logging configuration for nesta.

Every module logs through a child of the ``nesta`` logger
(``nesta.sync``, ``nesta.database``, ...). The CLI calls setup_logging()
once at startup; library use leaves handler configuration to the host.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

__all__ = ["logger", "setup_logging"]

logger = logging.getLogger("nesta")

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: int = logging.WARNING,
    log_file: Path | None = None,
) -> None:
    """Configure the application logger.

    Args:
        level: Console logging level. The CLI prints its own results, so
            the default only surfaces warnings and errors.
        log_file: Optional path to a log file which receives everything
            at DEBUG level.
    """
    logger.setLevel(logging.DEBUG if log_file is not None else level)

    if logger.handlers:
        return

    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%H:%M:%S")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # urllib3 logs every connection at DEBUG, including the key in the query string
    logging.getLogger("urllib3").setLevel(logging.WARNING)
