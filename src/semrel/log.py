"""Logging setup.

All modules log through the standard library under the ``semrel`` logger
hierarchy; a single rich handler on stderr renders the records.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from collections.abc import Iterator

ROOT_LOGGER = "semrel"

_configured = False


def configure_logging(level: str | int | None = None) -> None:
    """Attach the rich handler to the ``semrel`` logger.

    Args:
        level: Log level name or number. Falls back to ``SEMREL_LOG_LEVEL``
               and then ``INFO``.
    """
    global _configured
    if level is None:
        level = os.getenv("SEMREL_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    if _configured:
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


@contextmanager
def step_timer(logger: logging.Logger, step_name: str) -> Iterator[None]:
    """Log the start and duration of a pipeline step."""
    logger.debug("%s started", step_name)
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s finished in %.0f ms", step_name, elapsed_ms)
