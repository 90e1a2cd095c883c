"""
Serializer and deserializer interfaces.

A serializer turns an in-memory value into record bytes for a topic, a
deserializer turns record bytes back into a value. Both receive the topic
name so one implementation can vary its format per topic.

Objects with a ``serialize``/``deserialize`` method and plain callables
taking ``(topic, data)`` are accepted wherever a codec is expected and are
wrapped by ``as_serializer`` / ``as_deserializer``.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from topic_serdes.common.exceptions import ConfigurationError

T = TypeVar("T")


class Serializer(ABC, Generic[T]):
    """Converts values of type T into record bytes."""

    def configure(self, configs: Dict[str, Any], is_key: bool) -> None:
        """
        Apply client configuration.

        Args:
            configs: Client configuration mapping
            is_key: Whether this serializer handles record keys
        """

    @abstractmethod
    def serialize(self, topic: str, data: Optional[T]) -> Optional[bytes]:
        """Serialize data for the given topic."""

    def close(self) -> None:
        """Release any resources held by the serializer."""


class Deserializer(ABC, Generic[T]):
    """Converts record bytes into values of type T."""

    def configure(self, configs: Dict[str, Any], is_key: bool) -> None:
        """
        Apply client configuration.

        Args:
            configs: Client configuration mapping
            is_key: Whether this deserializer handles record keys
        """

    @abstractmethod
    def deserialize(self, topic: str, data: Optional[bytes]) -> Optional[T]:
        """Deserialize record bytes from the given topic."""

    def close(self) -> None:
        """Release any resources held by the deserializer."""


class FunctionSerializer(Serializer[T]):
    """Serializer backed by a ``(topic, data) -> bytes`` callable."""

    def __init__(self, func: Callable[[str, Optional[T]], Optional[bytes]]):
        self.func = func

    def serialize(self, topic: str, data: Optional[T]) -> Optional[bytes]:
        return self.func(topic, data)

    def __repr__(self) -> str:
        return f"FunctionSerializer({self.func!r})"


class FunctionDeserializer(Deserializer[T]):
    """Deserializer backed by a ``(topic, bytes) -> value`` callable."""

    def __init__(self, func: Callable[[str, Optional[bytes]], Optional[T]]):
        self.func = func

    def deserialize(self, topic: str, data: Optional[bytes]) -> Optional[T]:
        return self.func(topic, data)

    def __repr__(self) -> str:
        return f"FunctionDeserializer({self.func!r})"


class ObjectSerializer(Serializer[T]):
    """
    Serializer wrapping an object that has a ``serialize(topic, data)`` method.

    ``configure`` and ``close`` are forwarded when the object defines them.
    """

    def __init__(self, codec: Any):
        self.codec = codec

    def configure(self, configs: Dict[str, Any], is_key: bool) -> None:
        _forward(self.codec, "configure", configs, is_key)

    def serialize(self, topic: str, data: Optional[T]) -> Optional[bytes]:
        return self.codec.serialize(topic, data)

    def close(self) -> None:
        _forward(self.codec, "close")

    def __repr__(self) -> str:
        return f"ObjectSerializer({self.codec!r})"


class ObjectDeserializer(Deserializer[T]):
    """
    Deserializer wrapping an object that has a ``deserialize(topic, data)`` method.

    ``configure`` and ``close`` are forwarded when the object defines them.
    """

    def __init__(self, codec: Any):
        self.codec = codec

    def configure(self, configs: Dict[str, Any], is_key: bool) -> None:
        _forward(self.codec, "configure", configs, is_key)

    def deserialize(self, topic: str, data: Optional[bytes]) -> Optional[T]:
        return self.codec.deserialize(topic, data)

    def close(self) -> None:
        _forward(self.codec, "close")

    def __repr__(self) -> str:
        return f"ObjectDeserializer({self.codec!r})"


def _forward(codec: Any, hook: str, *args: Any) -> None:
    method = getattr(codec, hook, None)
    if callable(method):
        method(*args)


def as_serializer(codec: Any, slot: str = "serializer") -> Serializer:
    """
    Normalize a codec argument to a Serializer.

    Args:
        codec: Serializer instance, object with a ``serialize`` method,
            or ``(topic, data)`` callable
        slot: Slot name used in the error message

    Returns:
        Serializer (the argument itself when it already is one)

    Raises:
        ConfigurationError: If codec is neither a serializer nor callable
    """
    if isinstance(codec, Serializer):
        return codec
    if isinstance(codec, type):
        raise ConfigurationError(
            f"{slot} must be an instance, got class {codec.__name__}",
            context={"slot": slot},
        )
    if callable(getattr(codec, "serialize", None)):
        return ObjectSerializer(codec)
    if callable(codec):
        return FunctionSerializer(codec)
    raise ConfigurationError(
        f"{slot} must be a Serializer or callable, got {type(codec).__name__}",
        context={"slot": slot},
    )


def as_deserializer(codec: Any, slot: str = "deserializer") -> Deserializer:
    """
    Normalize a codec argument to a Deserializer.

    Args:
        codec: Deserializer instance, object with a ``deserialize`` method,
            or ``(topic, bytes)`` callable
        slot: Slot name used in the error message

    Returns:
        Deserializer (the argument itself when it already is one)

    Raises:
        ConfigurationError: If codec is neither a deserializer nor callable
    """
    if isinstance(codec, Deserializer):
        return codec
    if isinstance(codec, type):
        raise ConfigurationError(
            f"{slot} must be an instance, got class {codec.__name__}",
            context={"slot": slot},
        )
    if callable(getattr(codec, "deserialize", None)):
        return ObjectDeserializer(codec)
    if callable(codec):
        return FunctionDeserializer(codec)
    raise ConfigurationError(
        f"{slot} must be a Deserializer or callable, got {type(codec).__name__}",
        context={"slot": slot},
    )


__all__ = [
    "Serializer",
    "Deserializer",
    "FunctionSerializer",
    "FunctionDeserializer",
    "ObjectSerializer",
    "ObjectDeserializer",
    "as_serializer",
    "as_deserializer",
]
