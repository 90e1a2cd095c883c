"""
Built-in serdes for primitive record types.

Wire formats:
    STRING   UTF-8 bytes, no length prefix
    INTEGER  4-byte big-endian two's-complement
    LONG     8-byte big-endian two's-complement
    BYTES    raw bytes, unchanged

Every built-in codec passes ``None`` through unchanged in both directions
so tombstone records survive a round trip.
"""

import struct
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type

from topic_serdes.common.exceptions import (
    DecodeError,
    SerializationError,
    UnsupportedCodecType,
)
from topic_serdes.serialization import Deserializer, Serializer

_INT32 = struct.Struct(">i")
_INT64 = struct.Struct(">q")


class BuiltinType(str, Enum):
    """Logical record types with a canonical byte encoding."""

    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    BYTES = "bytes"


# =============================================================================
# Text
# =============================================================================


def _encoding_from_configs(
    configs: Dict[str, Any], is_key: bool, role: str, default: str
) -> str:
    scoped = "key" if is_key else "value"
    return (
        configs.get(f"{scoped}.{role}.encoding")
        or configs.get(f"{role}.encoding")
        or default
    )


class StringSerializer(Serializer[str]):
    """Encodes text with a configurable charset (UTF-8 by default)."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def configure(self, configs: Dict[str, Any], is_key: bool) -> None:
        self.encoding = _encoding_from_configs(
            configs, is_key, "serializer", self.encoding
        )

    def serialize(self, topic: str, data: Optional[str]) -> Optional[bytes]:
        if data is None:
            return None
        if not isinstance(data, str):
            raise SerializationError(
                f"StringSerializer expects str, got {type(data).__name__}",
                context={"topic": topic},
            )
        try:
            return data.encode(self.encoding)
        except UnicodeEncodeError as e:
            raise SerializationError(
                f"Error encoding string with {self.encoding}",
                cause=e,
                context={"topic": topic},
            ) from e


class StringDeserializer(Deserializer[str]):
    """Decodes text with a configurable charset (UTF-8 by default)."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def configure(self, configs: Dict[str, Any], is_key: bool) -> None:
        self.encoding = _encoding_from_configs(
            configs, is_key, "deserializer", self.encoding
        )

    def deserialize(self, topic: str, data: Optional[bytes]) -> Optional[str]:
        if data is None:
            return None
        try:
            return bytes(data).decode(self.encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(
                f"Error decoding bytes as {self.encoding}",
                cause=e,
                context={"topic": topic},
            ) from e


# =============================================================================
# Fixed-width integers
# =============================================================================


class _FixedIntSerializer(Serializer[int]):
    packer: struct.Struct
    min_value: int
    max_value: int

    def serialize(self, topic: str, data: Optional[int]) -> Optional[bytes]:
        if data is None:
            return None
        # bool is an int subclass but not a numeric record value
        if isinstance(data, bool) or not isinstance(data, int):
            raise SerializationError(
                f"{type(self).__name__} expects int, got {type(data).__name__}",
                context={"topic": topic},
            )
        if not self.min_value <= data <= self.max_value:
            raise SerializationError(
                f"{type(self).__name__} value {data} outside "
                f"[{self.min_value}, {self.max_value}]",
                context={"topic": topic},
            )
        return self.packer.pack(data)


class _FixedIntDeserializer(Deserializer[int]):
    packer: struct.Struct

    def deserialize(self, topic: str, data: Optional[bytes]) -> Optional[int]:
        if data is None:
            return None
        if len(data) != self.packer.size:
            raise DecodeError(
                f"Size of data received by {type(self).__name__} "
                f"is not {self.packer.size}",
                context={"topic": topic, "size": len(data)},
            )
        return self.packer.unpack(data)[0]


class IntegerSerializer(_FixedIntSerializer):
    """32-bit signed integer, big-endian."""

    packer = _INT32
    min_value = -(2**31)
    max_value = 2**31 - 1


class IntegerDeserializer(_FixedIntDeserializer):
    """32-bit signed integer, big-endian."""

    packer = _INT32


class LongSerializer(_FixedIntSerializer):
    """64-bit signed integer, big-endian."""

    packer = _INT64
    min_value = -(2**63)
    max_value = 2**63 - 1


class LongDeserializer(_FixedIntDeserializer):
    """64-bit signed integer, big-endian."""

    packer = _INT64


# =============================================================================
# Raw bytes
# =============================================================================


class ByteArraySerializer(Serializer[bytes]):
    def serialize(self, topic: str, data: Optional[bytes]) -> Optional[bytes]:
        if data is None:
            return None
        if isinstance(data, bytes):
            return data
        if isinstance(data, (bytearray, memoryview)):
            return bytes(data)
        raise SerializationError(
            f"ByteArraySerializer expects bytes, got {type(data).__name__}",
            context={"topic": topic},
        )


class ByteArrayDeserializer(Deserializer[bytes]):
    def deserialize(self, topic: str, data: Optional[bytes]) -> Optional[bytes]:
        if data is None or isinstance(data, bytes):
            return data
        return bytes(data)


# =============================================================================
# Registry
# =============================================================================

_REGISTRY: Dict[BuiltinType, Tuple[Type[Serializer], Type[Deserializer]]] = {
    BuiltinType.STRING: (StringSerializer, StringDeserializer),
    BuiltinType.INTEGER: (IntegerSerializer, IntegerDeserializer),
    BuiltinType.LONG: (LongSerializer, LongDeserializer),
    BuiltinType.BYTES: (ByteArraySerializer, ByteArrayDeserializer),
}

_ALIASES: Dict[str, BuiltinType] = {
    "string": BuiltinType.STRING,
    "str": BuiltinType.STRING,
    "integer": BuiltinType.INTEGER,
    "int": BuiltinType.INTEGER,
    "int32": BuiltinType.INTEGER,
    "long": BuiltinType.LONG,
    "int64": BuiltinType.LONG,
    "bytes": BuiltinType.BYTES,
    "bytearray": BuiltinType.BYTES,
    "byte_array": BuiltinType.BYTES,
}

# Ordered most-specific-first; bytearray and memoryview are not bytes subclasses
_PYTHON_TYPES: Tuple[Tuple[type, BuiltinType], ...] = (
    (str, BuiltinType.STRING),
    (bytes, BuiltinType.BYTES),
    (bytearray, BuiltinType.BYTES),
    (memoryview, BuiltinType.BYTES),
)


def resolve_builtin_type(type_tag: Any) -> BuiltinType:
    """
    Map a type tag onto a BuiltinType.

    Accepts a BuiltinType member, a case-insensitive name or alias
    ("string", "int32", "long", "bytes", ...), or a Python class. The
    ``int`` class is rejected because it does not say whether 32 or 64 bits
    are meant.

    Raises:
        UnsupportedCodecType: If the tag matches no built-in type
    """
    if isinstance(type_tag, BuiltinType):
        return type_tag
    if isinstance(type_tag, str):
        resolved = _ALIASES.get(type_tag.strip().lower())
        if resolved is not None:
            return resolved
        raise UnsupportedCodecType(type_tag)
    if isinstance(type_tag, type):
        for python_type, builtin_type in _PYTHON_TYPES:
            if issubclass(type_tag, python_type):
                return builtin_type
    raise UnsupportedCodecType(type_tag)


def serializer_for(type_tag: Any) -> Serializer:
    """Return a new canonical serializer for a built-in type tag."""
    return _REGISTRY[resolve_builtin_type(type_tag)][0]()


def deserializer_for(type_tag: Any) -> Deserializer:
    """Return a new canonical deserializer for a built-in type tag."""
    return _REGISTRY[resolve_builtin_type(type_tag)][1]()


def is_builtin_name(name: str) -> bool:
    """Whether a string names a built-in type."""
    return name.strip().lower() in _ALIASES


__all__ = [
    "BuiltinType",
    "StringSerializer",
    "StringDeserializer",
    "IntegerSerializer",
    "IntegerDeserializer",
    "LongSerializer",
    "LongDeserializer",
    "ByteArraySerializer",
    "ByteArrayDeserializer",
    "resolve_builtin_type",
    "serializer_for",
    "deserializer_for",
    "is_builtin_name",
]
