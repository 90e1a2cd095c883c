"""
Topic-scoped serializers and deserializers for Kafka records.

Modules:
    serialization.py  - Serializer/Deserializer interfaces and callable adapters
    builtin.py        - Built-in codecs for text, int32, int64 and raw bytes
    json_models.py    - JSON codecs for Pydantic message schemas
    config.py         - StreamingConfig, the shared source of default codecs
    serdes.py         - Serdes, the per-topic key/value codec context
    metrics.py        - Prometheus counters

Design Decisions:
    - Codecs resolved once per topic, never looked up per record
    - Default codecs injected, never read from module globals
    - Decode failures raised to the caller with topic and slot attached
"""

from topic_serdes.builtin import BuiltinType, deserializer_for, serializer_for
from topic_serdes.common.exceptions import (
    ConfigurationError,
    DecodeError,
    MissingCodecError,
    SerdesError,
    SerializationError,
    UnsupportedCodecType,
)
from topic_serdes.config import DefaultSerdesSource, StreamingConfig
from topic_serdes.serdes import Serdes
from topic_serdes.serialization import Deserializer, Serializer

__version__ = "0.1.0"

__all__ = [
    "BuiltinType",
    "ConfigurationError",
    "DecodeError",
    "DefaultSerdesSource",
    "Deserializer",
    "MissingCodecError",
    "SerdesError",
    "SerializationError",
    "Serdes",
    "Serializer",
    "StreamingConfig",
    "UnsupportedCodecType",
    "deserializer_for",
    "serializer_for",
]
