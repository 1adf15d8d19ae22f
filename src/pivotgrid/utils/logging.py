"""
Logging utilities for the pivotgrid library.

Library code only ever calls ``get_logger(__name__)``; handlers are left to the
application embedding pivotgrid. Standalone scripts may call
``configure_logging()`` to get output from the ``pivotgrid`` logger:

    ```python
    from pivotgrid.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

The default level can also be set through the ``PIVOTGRID_LOG_LEVEL``
environment variable.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "pivotgrid"
LEVEL_ENV_VAR = "PIVOTGRID_LOG_LEVEL"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the ``pivotgrid`` logger (never the root logger).

    Parameters
    ----------
    level:
        Logging level (e.g. "DEBUG", "INFO"). Defaults to the
        PIVOTGRID_LOG_LEVEL env var, or "WARNING" if unset.
    fmt:
        Log message format. Defaults to ``DEFAULT_FMT``.
    datefmt:
        Date format. Defaults to ``DEFAULT_DATEFMT``.
    force:
        If True, remove existing handlers before adding a new one. If False,
        an already configured logger only gets its level updated.
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, "WARNING")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if force:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT))
        logger.addHandler(handler)

    # Records stay in the pivotgrid handler once it is configured.
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the ``pivotgrid`` namespace."""
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
