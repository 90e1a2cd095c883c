"""
Logging utilities for topic_serdes.

The library only emits records; handlers and formatters belong to the
application.
"""

import logging
from typing import Any

from topic_serdes.common.exceptions import classify_exception


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Additional context fields (topic, slot, serdes_mode, etc.)

    Example:
        log_with_context(
            logger, logging.DEBUG, "Resolved serdes",
            topic=serdes.topic,
            serdes_mode="builtin",
        )
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, msg, extra=kwargs)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Adds error_category from classify_exception (UNKNOWN for non-serdes errors).

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields
    """
    if not logger.isEnabledFor(level):
        return

    if kwargs.get("error_category") is None:
        kwargs["error_category"] = classify_exception(exc).value

    # Record payloads can end up in messages; keep them short
    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=kwargs)
    else:
        logger.log(level, msg, extra=kwargs)


def codec_name(codec: Any) -> str:
    """Readable class name for a codec, used as a log field."""
    wrapped = getattr(codec, "codec", None)
    if wrapped is not None:
        return type(wrapped).__name__
    inner = getattr(codec, "func", None)
    if inner is not None:
        return getattr(inner, "__qualname__", type(inner).__name__)
    return type(codec).__name__
