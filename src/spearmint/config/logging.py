"""Logging setup for the spearmint CLI."""

from __future__ import annotations

import logging

_CLI_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for a sync run.

    Per-resource outcomes are logged at INFO, so the HTTP client libraries are
    held at WARNING unless ``level`` is already stricter. ``force`` replaces any
    handlers installed earlier, which tests rely on.
    """

    logging.basicConfig(level=level, format=_CLI_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
