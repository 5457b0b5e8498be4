"""Logging setup shared by the nativestub pipeline stages."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "nativestub"

_CONSOLE_FORMAT = "[nativestub] %(levelname)s %(message)s"
# Verbose runs also name the stage (analysis.extractor, stubs.generator, ...).
_VERBOSE_FORMAT = "[nativestub] %(levelname)s %(stage)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(stage)s: %(message)s"


class _StageFilter(logging.Filter):
    """Expose the logger name relative to the package root as ``%(stage)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        stage = record.name
        if stage.startswith(f"{ROOT_LOGGER}."):
            stage = stage[len(ROOT_LOGGER) + 1 :]
        record.stage = stage
        return True


def get_logger(stage: str | None = None) -> logging.Logger:
    """Logger for one pipeline stage, e.g. ``get_logger("analysis.view")``."""
    if not stage:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{stage}")


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send nativestub records to stderr and, optionally, to ``log_file``.

    Calling this again replaces the handlers installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _CONSOLE_FORMAT))
    _attach(logger, console, level)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        _attach(logger, sink, level)

    return logger


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.addFilter(_StageFilter())
    logger.addHandler(handler)


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger"]
