"""
Common exception types and error classification for topic_serdes.

Provides:
- ErrorCategory enum for handling decisions
- Typed exception hierarchy for serdes errors
- Error classification utilities
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        PERMANENT: Failures that won't succeed on retry
                   (e.g., unsupported codec type, malformed record bytes)
        UNKNOWN: Unclassified errors raised by third-party codecs
    """

    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class SerdesError(Exception):
    """
    Base exception for all serdes errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for handling decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging (topic, slot, ...)
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Permanent Errors (Don't Retry)
# =============================================================================


class PermanentError(SerdesError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


class ConfigurationError(PermanentError):
    """Invalid serdes construction arguments or configuration."""

    pass


class UnsupportedCodecType(ConfigurationError):
    """No built-in codec is registered for the requested type tag."""

    def __init__(self, type_tag: Any, cause: Optional[Exception] = None):
        super().__init__(
            f"Unsupported type for built-in serdes: {type_tag!r}",
            cause,
            {"type_tag": repr(type_tag)},
        )
        self.type_tag = type_tag


class MissingCodecError(ConfigurationError):
    """A codec slot could not be resolved from arguments or defaults."""

    def __init__(self, topic: str, slot: str):
        super().__init__(
            f"No {slot} configured for topic '{topic}'",
            context={"topic": topic, "slot": slot},
        )
        self.topic = topic
        self.slot = slot


class DecodeError(PermanentError):
    """Record bytes could not be interpreted by the bound deserializer."""

    @property
    def topic(self) -> Optional[str]:
        return self.context.get("topic")

    @property
    def slot(self) -> Optional[str]:
        return self.context.get("slot")


class SerializationError(PermanentError):
    """A serializer was handed a value its wire format cannot represent."""

    pass


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_exception(exc: Exception) -> ErrorCategory:
    """
    Classify an exception into error category.

    Args:
        exc: Exception to classify

    Returns:
        Appropriate ErrorCategory
    """
    if isinstance(exc, SerdesError):
        return exc.category
    return ErrorCategory.UNKNOWN


def wrap_decode_exception(
    exc: Exception,
    context: Optional[dict] = None,
) -> DecodeError:
    """
    Wrap a deserializer failure in DecodeError.

    A DecodeError is returned as-is with the context merged in, so the
    caller sees the original object.

    Args:
        exc: Exception raised by a deserializer
        context: Additional context to include

    Returns:
        DecodeError instance
    """
    if isinstance(exc, DecodeError):
        if context:
            exc.context.update(context)
        return exc

    return DecodeError(
        f"Failed to deserialize record: {type(exc).__name__}",
        cause=exc,
        context=context,
    )
