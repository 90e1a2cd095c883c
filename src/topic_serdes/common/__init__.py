"""Common infrastructure shared across topic_serdes modules."""

from topic_serdes.common.exceptions import (
    ConfigurationError,
    DecodeError,
    ErrorCategory,
    MissingCodecError,
    PermanentError,
    SerdesError,
    SerializationError,
    UnsupportedCodecType,
    classify_exception,
)

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "ErrorCategory",
    "MissingCodecError",
    "PermanentError",
    "SerdesError",
    "SerializationError",
    "UnsupportedCodecType",
    "classify_exception",
]
