"""Logging setup for the creatorsync command line."""

from __future__ import annotations

import logging

# HTTP stack loggers that report every request at INFO
HTTP_LOGGERS = ("httpx", "httpcore", "hishel")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    The HTTP stack is held at WARNING unless ``level`` asks for DEBUG, so a
    sync prints its summary rather than one line per platform request. Pass
    ``force=True`` to reconfigure an already configured root logger.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        force=force,
    )
    http_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
