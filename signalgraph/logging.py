"""Logging for signalgraph.

Each module logs through a child of the ``signalgraph`` logger named after
its component (``scanner``, ``graph``, ``graph.serializer``,
``clustering.community``, ``analysis.unused``, ``refactoring``,
``orchestrator``), so one ``configure_logging`` call governs the whole
package. Records go to stderr because stdout carries the CLI's JSON output.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "signalgraph"

_STREAM_FORMAT = "[signalgraph] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the logger for ``component``.

    Short component names and dotted module names (``__name__``) resolve to
    the same logger: ``get_logger("scanner")`` is
    ``get_logger("signalgraph.scanner")``.
    """
    if not component or component == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    prefix = f"{ROOT_LOGGER}."
    if component.startswith(prefix):
        component = component[len(prefix) :]
    return logging.getLogger(prefix + component)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route signalgraph records to stderr and, optionally, a log file.

    The stream shows INFO and above, DEBUG with ``verbose``. A log file
    always receives DEBUG records so a quiet run can still be diagnosed.
    Calling this again replaces the handlers of the previous call.
    """
    stream_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file is not None else stream_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_with_format(logging.StreamHandler(sys.stderr), _STREAM_FORMAT, stream_level))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _with_format(logging.FileHandler(log_file, encoding="utf-8"), _FILE_FORMAT, logging.DEBUG)
        )
    return logger


def _with_format(handler: logging.Handler, fmt: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger"]
