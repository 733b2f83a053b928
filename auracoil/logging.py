"""Logging setup for auracoil commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

_LOGGER_NAME = "auracoil"
_CONSOLE_FORMAT = "[auracoil] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

Redactor = Callable[[str], str]


class RedactingFormatter(logging.Formatter):
    """Formatter that passes every rendered record through a redactor."""

    def __init__(self, fmt: str, redact: Optional[Redactor] = None) -> None:
        super().__init__(fmt)
        self._redact = redact

    def format(self, record: logging.LogRecord) -> str:
        rendered = super().format(record)
        if self._redact is None:
            return rendered
        return "\n".join(self._redact(line) for line in rendered.split("\n"))


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the auracoil hierarchy (`auracoil.<name>`)."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    redact: Optional[Redactor] = None,
) -> logging.Logger:
    """Install console and optional file handlers on the auracoil logger.

    `redact` is applied to each formatted line in both sinks, so secret-shaped
    values never reach the terminal or the log file.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated CLI invocations in one process would otherwise duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    sinks: list[logging.Handler] = [logging.StreamHandler()]
    formats = [_CONSOLE_FORMAT]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sinks.append(logging.FileHandler(log_file, encoding="utf-8"))
        formats.append(_FILE_FORMAT)

    for handler, fmt in zip(sinks, formats):
        handler.setLevel(level)
        handler.setFormatter(RedactingFormatter(fmt, redact))
        logger.addHandler(handler)

    return logger


__all__ = ["RedactingFormatter", "configure_logging", "get_logger"]
