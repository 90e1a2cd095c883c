"""
Topic-scoped serialization context.

A Serdes binds one topic to a key serializer/deserializer pair and a value
serializer/deserializer pair. Producers call ``bytes_from_key`` and
``bytes_from_value``; consumers call ``key_from_bytes`` and
``value_from_bytes``.

Construction modes:
    Serdes(topic, ks, kd, vs, vd)                 all four codecs given
    Serdes.from_config(topic, config, ...)        missing codecs taken from
                                                  a DefaultSerdesSource
    Serdes.with_builtin_types(topic, kt, vt)      built-in codecs by type tag

Codecs are resolved once, at construction. A Serdes is immutable and holds
no external resources.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from topic_serdes.builtin import deserializer_for, resolve_builtin_type, serializer_for
from topic_serdes.common.exceptions import (
    ConfigurationError,
    MissingCodecError,
    wrap_decode_exception,
)
from topic_serdes.common.logging import (
    codec_name,
    get_logger,
    log_exception,
    log_with_context,
)
from topic_serdes.config import DefaultSerdesSource
from topic_serdes.metrics import record_context_created, record_decode_error
from topic_serdes.serialization import (
    Deserializer,
    Serializer,
    as_deserializer,
    as_serializer,
)

logger = get_logger(__name__)

K = TypeVar("K")
V = TypeVar("V")

KEY_SERIALIZER = "key-serializer"
KEY_DESERIALIZER = "key-deserializer"
VALUE_SERIALIZER = "value-serializer"
VALUE_DESERIALIZER = "value-deserializer"

MODE_EXPLICIT = "explicit"
MODE_CONFIG = "config"
MODE_BUILTIN = "builtin"

# (slot, attribute, DefaultSerdesSource accessor)
_SLOTS: Tuple[Tuple[str, str, str], ...] = (
    (KEY_SERIALIZER, "key_serializer", "default_key_serializer"),
    (KEY_DESERIALIZER, "key_deserializer", "default_key_deserializer"),
    (VALUE_SERIALIZER, "value_serializer", "default_value_serializer"),
    (VALUE_DESERIALIZER, "value_deserializer", "default_value_deserializer"),
)


@dataclass(frozen=True)
class Serdes(Generic[K, V]):
    """
    Serializers and deserializers for the keys and values of one topic.

    Every codec slot accepts a Serializer/Deserializer, an object with a
    ``serialize``/``deserialize`` method, or a ``(topic, data)`` callable.

    Usage:
        >>> serdes = Serdes.with_builtin_types("orders", str, "long")
        >>> raw = serdes.bytes_from_value(42)
        >>> serdes.value_from_bytes(raw)
        42

    Raises:
        ConfigurationError: If the topic is empty or a codec is not usable
        MissingCodecError: If a codec slot is None
    """

    topic: str
    key_serializer: Serializer[K]
    key_deserializer: Deserializer[K]
    value_serializer: Serializer[V]
    value_deserializer: Deserializer[V]
    _mode: str = field(default=MODE_EXPLICIT, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.topic, str) or not self.topic.strip():
            raise ConfigurationError(
                f"Topic name must be a non-empty string, got {self.topic!r}"
            )

        for slot, attr, _ in _SLOTS:
            codec = getattr(self, attr)
            if codec is None:
                raise MissingCodecError(self.topic, slot)
            if attr.endswith("_deserializer"):
                codec = as_deserializer(codec, slot)
            else:
                codec = as_serializer(codec, slot)
            object.__setattr__(self, attr, codec)

        record_context_created(self._mode)
        log_with_context(
            logger,
            logging.DEBUG,
            "Resolved serdes",
            topic=self.topic,
            serdes_mode=self._mode,
            key_serializer=codec_name(self.key_serializer),
            key_deserializer=codec_name(self.key_deserializer),
            value_serializer=codec_name(self.value_serializer),
            value_deserializer=codec_name(self.value_deserializer),
        )

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        topic: str,
        config: DefaultSerdesSource,
        key_serializer: Any = None,
        key_deserializer: Any = None,
        value_serializer: Any = None,
        value_deserializer: Any = None,
    ) -> "Serdes[K, V]":
        """
        Create a Serdes, filling omitted codecs from a default source.

        Each omitted codec is looked up once, now, on ``config``. The
        defaults must match the key and value types used on this topic.

        Args:
            topic: Topic name
            config: Source of default codecs (e.g. StreamingConfig)
            key_serializer: Serializer for keys, or None for the default
            key_deserializer: Deserializer for keys, or None for the default
            value_serializer: Serializer for values, or None for the default
            value_deserializer: Deserializer for values, or None for the default

        Raises:
            MissingCodecError: If a codec is omitted and config has no default
        """
        if config is None:
            raise ConfigurationError(
                f"A default serdes source is required for topic '{topic}'",
                context={"topic": topic},
            )

        explicit = {
            "key_serializer": key_serializer,
            "key_deserializer": key_deserializer,
            "value_serializer": value_serializer,
            "value_deserializer": value_deserializer,
        }
        resolved: Dict[str, Any] = {}
        for slot, attr, accessor in _SLOTS:
            codec = explicit[attr]
            if codec is None:
                codec = getattr(config, accessor)()
            if codec is None:
                raise MissingCodecError(topic, slot)
            resolved[attr] = codec

        return cls._build(topic, MODE_CONFIG, resolved)

    @classmethod
    def with_builtin_types(cls, topic: str, key_type: Any, value_type: Any) -> "Serdes[K, V]":
        """
        Create a Serdes using built-in codecs for the given type tags.

        Args:
            topic: Topic name
            key_type: Type tag for keys (BuiltinType, name, or str/bytes class)
            value_type: Type tag for values

        Raises:
            UnsupportedCodecType: If either tag has no built-in codec
        """
        key_tag = resolve_builtin_type(key_type)
        value_tag = resolve_builtin_type(value_type)
        return cls._build(
            topic,
            MODE_BUILTIN,
            {
                "key_serializer": serializer_for(key_tag),
                "key_deserializer": deserializer_for(key_tag),
                "value_serializer": serializer_for(value_tag),
                "value_deserializer": deserializer_for(value_tag),
            },
        )

    @classmethod
    def _build(cls, topic: str, mode: str, codecs: Dict[str, Any]) -> "Serdes[K, V]":
        # _mode is not an __init__ argument; it must be set before __post_init__ runs
        serdes = cls.__new__(cls)
        object.__setattr__(serdes, "topic", topic)
        for _, attr, _ in _SLOTS:
            object.__setattr__(serdes, attr, codecs[attr])
        object.__setattr__(serdes, "_mode", mode)
        serdes.__post_init__()
        return serdes

    # -------------------------------------------------------------------------
    # Record conversion
    # -------------------------------------------------------------------------

    def key_from_bytes(self, raw_key: Optional[bytes]) -> Optional[K]:
        """Deserialize a record key from this topic."""
        return self._decode(KEY_DESERIALIZER, self.key_deserializer, raw_key)

    def value_from_bytes(self, raw_value: Optional[bytes]) -> Optional[V]:
        """Deserialize a record value from this topic."""
        return self._decode(VALUE_DESERIALIZER, self.value_deserializer, raw_value)

    def bytes_from_key(self, key: Optional[K]) -> Optional[bytes]:
        """Serialize a record key for this topic."""
        return self.key_serializer.serialize(self.topic, key)

    def bytes_from_value(self, value: Optional[V]) -> Optional[bytes]:
        """Serialize a record value for this topic."""
        return self.value_serializer.serialize(self.topic, value)

    def _decode(self, slot: str, deserializer: Deserializer, raw: Optional[bytes]) -> Any:
        try:
            return deserializer.deserialize(self.topic, raw)
        except Exception as e:
            error = wrap_decode_exception(e, {"topic": self.topic, "slot": slot})
            record_decode_error(self.topic, slot)
            log_exception(
                logger,
                error,
                "Failed to deserialize record",
                level=logging.DEBUG,
                include_traceback=False,
                topic=self.topic,
                slot=slot,
                raw_size=None if raw is None else len(raw),
            )
            if error is e:
                raise
            raise error from e

    # -------------------------------------------------------------------------
    # Client integration
    # -------------------------------------------------------------------------

    def producer_kwargs(self) -> Dict[str, Callable[[Any], Optional[bytes]]]:
        """
        Single-argument serializers bound to this topic.

        The keys match the keyword arguments of aiokafka's AIOKafkaProducer.
        """
        return {
            "key_serializer": self.bytes_from_key,
            "value_serializer": self.bytes_from_value,
        }

    def consumer_kwargs(self) -> Dict[str, Callable[[Optional[bytes]], Any]]:
        """
        Single-argument deserializers bound to this topic.

        The keys match the keyword arguments of aiokafka's AIOKafkaConsumer.
        """
        return {
            "key_deserializer": self.key_from_bytes,
            "value_deserializer": self.value_from_bytes,
        }

    def close(self) -> None:
        """Close each distinct codec. The Serdes itself stays usable."""
        seen = set()
        for _, attr, _ in _SLOTS:
            codec = getattr(self, attr)
            # Wrapped objects are identified by the object they wrap
            target = id(getattr(codec, "codec", codec))
            if target in seen:
                continue
            seen.add(target)
            codec.close()


__all__ = [
    "Serdes",
    "KEY_SERIALIZER",
    "KEY_DESERIALIZER",
    "VALUE_SERIALIZER",
    "VALUE_DESERIALIZER",
]
