"""Structured logging utilities.

Every record is written as ``timestamp | LEVEL | logger | message`` and
analytics events append ``key=value`` pairs to the message using the same
pipe separator, so a single line can be grepped by event name or by field.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

from capacity_engine.utils.config import get_settings


_LOGGER_INITIALIZED = False
_LINE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=resolved_level, format=_LINE_FORMAT, stream=sys.stdout)
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)


def format_event(event: str, **fields: Any) -> str:
    """Render ``event | a=1 | b=2`` with fields in call order."""
    parts = [event]
    parts.extend(f"{key}={value}" for key, value in fields.items())
    return " | ".join(parts)


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    if logger.isEnabledFor(level):
        logger.log(level, format_event(event, **fields))
