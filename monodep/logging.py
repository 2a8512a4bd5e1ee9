"""Logging helpers shared by the CLI, the service and the analyzers."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_ROOT = "monodep"
_CONSOLE_FORMAT = "[monodep] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``monodep.<name>``; names already under ``monodep.`` are kept as is."""
    if not name:
        return logging.getLogger(_ROOT)
    if name.startswith(f"{_ROOT}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Send monodep diagnostics to ``stream`` (stderr by default).

    Reports are printed on stdout, so console logging never shares that
    stream. The console shows warnings unless ``verbose`` is set; a
    ``log_file`` always receives the full debug trace.
    """
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger"]
