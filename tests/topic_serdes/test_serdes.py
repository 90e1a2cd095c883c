"""Tests for the topic-scoped Serdes context."""

import dataclasses
import logging

import pytest
from prometheus_client import REGISTRY

from topic_serdes.builtin import (
    IntegerDeserializer,
    IntegerSerializer,
    LongSerializer,
    StringDeserializer,
    StringSerializer,
)
from topic_serdes.common.exceptions import (
    ConfigurationError,
    DecodeError,
    MissingCodecError,
    SerializationError,
    UnsupportedCodecType,
)
from topic_serdes.config import StreamingConfig
from topic_serdes.serdes import Serdes
from topic_serdes.serialization import (
    Deserializer,
    FunctionDeserializer,
    ObjectDeserializer,
    ObjectSerializer,
    Serializer,
)


class FakeDefaults:
    """DefaultSerdesSource double that counts accessor calls."""

    def __init__(self, key_serializer=None, key_deserializer=None,
                 value_serializer=None, value_deserializer=None):
        self._codecs = {
            "key_serializer": key_serializer,
            "key_deserializer": key_deserializer,
            "value_serializer": value_serializer,
            "value_deserializer": value_deserializer,
        }
        self.calls = []

    def _get(self, name):
        self.calls.append(name)
        return self._codecs[name]

    def default_key_serializer(self):
        return self._get("key_serializer")

    def default_key_deserializer(self):
        return self._get("key_deserializer")

    def default_value_serializer(self):
        return self._get("value_serializer")

    def default_value_deserializer(self):
        return self._get("value_deserializer")


class ClosingSerializer(Serializer):
    def __init__(self):
        self.closed = 0

    def serialize(self, topic, data):
        return data

    def close(self):
        self.closed += 1


class ClosingDeserializer(Deserializer):
    def __init__(self):
        self.closed = 0

    def deserialize(self, topic, data):
        return data

    def close(self):
        self.closed += 1


class DuckCodec:
    """Codec object that does not subclass Serializer or Deserializer."""

    def __init__(self):
        self.configured = None
        self.closed = 0

    def configure(self, configs, is_key):
        self.configured = (configs, is_key)

    def serialize(self, topic, data):
        return data.encode()

    def deserialize(self, topic, data):
        return data.decode()

    def close(self):
        self.closed += 1


def string_defaults():
    return FakeDefaults(
        StringSerializer(), StringDeserializer(), StringSerializer(), StringDeserializer()
    )


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestExplicitConstruction:
    """Test Serdes(topic, ks, kd, vs, vd)."""

    def test_codecs_used_verbatim(self):
        """Codec instances are stored as given."""
        ks, kd = StringSerializer(), StringDeserializer()
        vs, vd = IntegerSerializer(), IntegerDeserializer()

        serdes = Serdes("orders", ks, kd, vs, vd)

        assert serdes.topic == "orders"
        assert serdes.key_serializer is ks
        assert serdes.key_deserializer is kd
        assert serdes.value_serializer is vs
        assert serdes.value_deserializer is vd

    def test_none_codec_raises_missing_codec(self):
        """A None slot is never accepted."""
        with pytest.raises(MissingCodecError) as exc_info:
            Serdes("orders", StringSerializer(), StringDeserializer(), None, StringDeserializer())

        assert exc_info.value.slot == "value-serializer"
        assert exc_info.value.topic == "orders"
        assert "value-serializer" in str(exc_info.value)
        assert "orders" in str(exc_info.value)

    @pytest.mark.parametrize("topic", ["", "   ", None, 42])
    def test_invalid_topic_rejected(self, topic):
        """Topic must be a non-empty string."""
        with pytest.raises(ConfigurationError, match="Topic name"):
            Serdes(topic, StringSerializer(), StringDeserializer(),
                   StringSerializer(), StringDeserializer())

    def test_callables_are_wrapped(self):
        """Plain (topic, data) functions work as codecs."""
        serdes = Serdes(
            "events",
            lambda topic, key: f"{topic}/{key}".encode(),
            lambda topic, raw: raw.decode().split("/", 1)[1],
            StringSerializer(),
            StringDeserializer(),
        )

        assert serdes.bytes_from_key("k1") == b"events/k1"
        assert serdes.key_from_bytes(b"events/k1") == "k1"
        assert isinstance(serdes.key_deserializer, FunctionDeserializer)

    def test_duck_typed_codec_objects(self):
        """Objects with serialize/deserialize methods are accepted."""

        class Upper:
            def serialize(self, topic, data):
                return data.upper().encode()

            def deserialize(self, topic, data):
                return data.decode().lower()

        codec = Upper()
        serdes = Serdes("t", codec, codec, codec, codec)

        assert serdes.bytes_from_value("abc") == b"ABC"
        assert serdes.value_from_bytes(b"ABC") == "abc"

    def test_duck_typed_codec_kept_whole(self):
        """Codec objects are wrapped with the object itself, not a bound method."""
        codec = DuckCodec()
        serdes = Serdes("t", codec, codec, codec, codec)

        assert isinstance(serdes.key_serializer, ObjectSerializer)
        assert isinstance(serdes.value_deserializer, ObjectDeserializer)
        assert serdes.key_serializer.codec is codec
        assert serdes.value_deserializer.codec is codec

    def test_codec_class_instead_of_instance_rejected(self):
        """Passing a codec class is a configuration error."""
        with pytest.raises(ConfigurationError, match="must be an instance"):
            Serdes("t", StringSerializer, StringDeserializer(),
                   StringSerializer(), StringDeserializer())

    def test_wrong_direction_codec_rejected(self):
        """A deserializer in a serializer slot is rejected."""
        with pytest.raises(ConfigurationError, match="key-serializer"):
            Serdes("t", StringDeserializer(), StringDeserializer(),
                   StringSerializer(), StringDeserializer())

    def test_non_callable_rejected(self):
        """Arbitrary objects are not codecs."""
        with pytest.raises(ConfigurationError):
            Serdes("t", StringSerializer(), "string",
                   StringSerializer(), StringDeserializer())


class TestConfigFallback:
    """Test Serdes.from_config()."""

    def test_explicit_key_serializer_with_default_key_deserializer(self):
        """Omitted key deserializer comes from the default source."""
        explicit = StringSerializer()
        default_decoder = StringDeserializer()
        defaults = FakeDefaults(
            key_deserializer=default_decoder,
            value_serializer=LongSerializer(),
            value_deserializer=IntegerDeserializer(),
        )

        serdes = Serdes.from_config("orders", defaults, key_serializer=explicit)

        assert serdes.key_serializer is explicit
        assert serdes.key_deserializer is default_decoder
        assert serdes.key_from_bytes(b"abc") == "abc"

    def test_key_from_bytes_uses_exactly_the_default(self):
        """The default deserializer object is the one invoked."""
        seen = []

        class Recording(Deserializer):
            def deserialize(self, topic, data):
                seen.append((topic, data))
                return "decoded"

        decoder = Recording()
        defaults = FakeDefaults(
            key_deserializer=decoder,
            value_serializer=StringSerializer(),
            value_deserializer=StringDeserializer(),
        )

        serdes = Serdes.from_config("orders", defaults, key_serializer=StringSerializer())

        assert serdes.key_from_bytes(b"\x01") == "decoded"
        assert seen == [("orders", b"\x01")]

    def test_accessors_called_only_for_omitted_slots(self):
        """Supplied codecs skip the default lookup."""
        defaults = string_defaults()

        Serdes.from_config(
            "orders",
            defaults,
            key_serializer=StringSerializer(),
            value_deserializer=StringDeserializer(),
        )

        assert defaults.calls == ["key_deserializer", "value_serializer"]

    def test_fallback_only(self):
        """With no explicit codecs all four come from the source."""
        defaults = string_defaults()

        serdes = Serdes.from_config("orders", defaults)

        assert defaults.calls == [
            "key_serializer",
            "key_deserializer",
            "value_serializer",
            "value_deserializer",
        ]
        assert serdes.bytes_from_value("v") == b"v"

    def test_lookup_happens_once_at_construction(self):
        """Encode/decode never go back to the source."""
        defaults = string_defaults()
        serdes = Serdes.from_config("orders", defaults)
        defaults.calls.clear()

        serdes.bytes_from_key("k")
        serdes.key_from_bytes(b"k")
        serdes.value_from_bytes(b"v")

        assert defaults.calls == []

    def test_missing_default_value_serializer(self):
        """An absent default fails construction naming the slot."""
        defaults = FakeDefaults(
            key_serializer=StringSerializer(),
            key_deserializer=StringDeserializer(),
            value_serializer=None,
            value_deserializer=StringDeserializer(),
        )

        with pytest.raises(MissingCodecError) as exc_info:
            Serdes.from_config("payments", defaults)

        assert exc_info.value.slot == "value-serializer"
        assert exc_info.value.topic == "payments"
        assert exc_info.value.context == {"topic": "payments", "slot": "value-serializer"}

    @pytest.mark.parametrize(
        "omitted,slot",
        [
            ("key_serializer", "key-serializer"),
            ("key_deserializer", "key-deserializer"),
            ("value_serializer", "value-serializer"),
            ("value_deserializer", "value-deserializer"),
        ],
    )
    def test_each_slot_named(self, omitted, slot):
        """Every slot has its own name in MissingCodecError."""
        codecs = {
            "key_serializer": StringSerializer(),
            "key_deserializer": StringDeserializer(),
            "value_serializer": StringSerializer(),
            "value_deserializer": StringDeserializer(),
        }
        codecs[omitted] = None

        with pytest.raises(MissingCodecError) as exc_info:
            Serdes.from_config("t", FakeDefaults(), **codecs)

        assert exc_info.value.slot == slot

    def test_none_source_rejected(self):
        """from_config needs a default source."""
        with pytest.raises(ConfigurationError, match="default serdes source"):
            Serdes.from_config("t", None)

    def test_with_streaming_config(self):
        """StreamingConfig works as the default source."""
        config = StreamingConfig(
            key_serializer="string",
            key_deserializer="string",
            value_serializer="long",
            value_deserializer="long",
        )

        serdes = Serdes.from_config("orders", config)

        assert serdes.key_serializer is config.default_key_serializer()
        assert serdes.value_from_bytes(serdes.bytes_from_value(123456789012345)) == 123456789012345


class TestBuiltinConstruction:
    """Test Serdes.with_builtin_types()."""

    def test_round_trips(self):
        """Built-in codecs round-trip their values."""
        serdes = Serdes.with_builtin_types("t", "string", "long")

        assert serdes.key_from_bytes(serdes.bytes_from_key("hello")) == "hello"
        assert serdes.value_from_bytes(serdes.bytes_from_value(123456789012345)) == 123456789012345

    def test_bytes_identity(self):
        """Raw bytes keys and values pass through."""
        serdes = Serdes.with_builtin_types("t", bytes, bytes)
        data = bytes([0x00, 0xFF, 0x10])

        assert serdes.bytes_from_value(data) == data
        assert serdes.value_from_bytes(data) == data

    @pytest.mark.parametrize("value", [-2147483648, 2147483647])
    def test_int32_boundaries(self, value):
        """int32 limits round-trip through 4 bytes."""
        serdes = Serdes.with_builtin_types("t", "integer", "integer")

        raw = serdes.bytes_from_key(value)

        assert len(raw) == 4
        assert serdes.key_from_bytes(raw) == value

    def test_unsupported_key_type(self):
        """An unsupported key tag fails construction."""
        with pytest.raises(UnsupportedCodecType):
            Serdes.with_builtin_types("t", float, "string")

    def test_unsupported_value_type(self):
        """An unsupported value tag fails construction."""
        with pytest.raises(UnsupportedCodecType) as exc_info:
            Serdes.with_builtin_types("t", "string", dict)

        assert exc_info.value.type_tag is dict

    def test_unsupported_type_creates_nothing(self):
        """Failed construction never records a context."""
        before = sample("serdes_contexts_created_total", mode="builtin")

        with pytest.raises(UnsupportedCodecType):
            Serdes.with_builtin_types("t", "string", "uuid")

        assert sample("serdes_contexts_created_total", mode="builtin") == before


class TestDecodeErrors:
    """Test decode failure propagation."""

    def test_builtin_decode_error_tagged_with_topic_and_slot(self):
        """DecodeError from the codec is re-raised with topic and slot."""
        serdes = Serdes.with_builtin_types("metrics.raw", "string", "integer")

        with pytest.raises(DecodeError) as exc_info:
            serdes.value_from_bytes(b"\x00\x01")

        assert exc_info.value.topic == "metrics.raw"
        assert exc_info.value.slot == "value-deserializer"
        assert "is not 4" in str(exc_info.value)

    def test_same_error_object_propagates(self):
        """A codec's DecodeError is not replaced."""
        original = DecodeError("bad header")

        def failing(topic, raw):
            raise original

        serdes = Serdes("t", StringSerializer(), failing, StringSerializer(), StringDeserializer())

        with pytest.raises(DecodeError) as exc_info:
            serdes.key_from_bytes(b"x")

        assert exc_info.value is original
        assert original.context == {"topic": "t", "slot": "key-deserializer"}

    def test_foreign_exception_wrapped(self):
        """Other codec exceptions become DecodeError with the cause chained."""

        def failing(topic, raw):
            raise ValueError("not json")

        serdes = Serdes("t", StringSerializer(), StringDeserializer(), StringSerializer(), failing)

        with pytest.raises(DecodeError) as exc_info:
            serdes.value_from_bytes(b"{")

        error = exc_info.value
        assert isinstance(error.cause, ValueError)
        assert error.__cause__ is error.cause
        assert error.topic == "t"
        assert error.slot == "value-deserializer"
        assert "not json" in str(error)

    def test_decode_error_counted(self):
        """Each failure increments the decode error counter."""
        serdes = Serdes.with_builtin_types("counted.topic", "long", "string")
        labels = {"topic": "counted.topic", "slot": "key-deserializer"}
        before = sample("serdes_decode_errors_total", **labels)

        for _ in range(2):
            with pytest.raises(DecodeError):
                serdes.key_from_bytes(b"\x01")

        assert sample("serdes_decode_errors_total", **labels) == before + 2

    def test_decode_error_logged_at_debug(self, caplog):
        """Failures are logged with topic and slot fields."""
        serdes = Serdes.with_builtin_types("logged.topic", "string", "integer")

        with caplog.at_level(logging.DEBUG, logger="topic_serdes.serdes"):
            with pytest.raises(DecodeError):
                serdes.value_from_bytes(b"\x01")

        records = [r for r in caplog.records if r.getMessage() == "Failed to deserialize record"]
        assert len(records) == 1
        assert records[0].topic == "logged.topic"
        assert records[0].slot == "value-deserializer"
        assert records[0].error_category == "permanent"
        assert records[0].raw_size == 1

    def test_serialization_errors_not_wrapped(self):
        """Encoding failures propagate untouched."""
        serdes = Serdes.with_builtin_types("t", "integer", "integer")

        with pytest.raises(SerializationError):
            serdes.bytes_from_key(2**40)


class TestImmutability:
    """Test that a Serdes never changes after construction."""

    def test_fields_cannot_be_reassigned(self):
        """Assignment raises FrozenInstanceError."""
        serdes = Serdes.with_builtin_types("t", "string", "string")

        with pytest.raises(dataclasses.FrozenInstanceError):
            serdes.topic = "other"
        with pytest.raises(dataclasses.FrozenInstanceError):
            serdes.value_serializer = StringSerializer()

    def test_repeated_calls_stable(self):
        """Same inputs always give the same outputs."""
        serdes = Serdes.with_builtin_types("t", "string", "long")

        assert {serdes.topic for _ in range(5)} == {"t"}
        assert {serdes.bytes_from_value(7) for _ in range(5)} == {b"\x00" * 7 + b"\x07"}
        assert {serdes.key_from_bytes(b"k") for _ in range(5)} == {"k"}

    def test_tombstones_pass_through(self):
        """None keys and values survive a round trip."""
        serdes = Serdes.with_builtin_types("t", "string", "long")

        assert serdes.bytes_from_value(None) is None
        assert serdes.value_from_bytes(None) is None


class TestClientIntegration:
    """Test producer/consumer helpers and close()."""

    def test_producer_kwargs(self):
        """Producer callables take a single value."""
        serdes = Serdes.with_builtin_types("t", "string", "integer")

        kwargs = serdes.producer_kwargs()

        assert set(kwargs) == {"key_serializer", "value_serializer"}
        assert kwargs["key_serializer"]("k") == b"k"
        assert kwargs["value_serializer"](1) == b"\x00\x00\x00\x01"

    def test_consumer_kwargs(self):
        """Consumer callables take raw bytes."""
        serdes = Serdes.with_builtin_types("t", "string", "integer")

        kwargs = serdes.consumer_kwargs()

        assert set(kwargs) == {"key_deserializer", "value_deserializer"}
        assert kwargs["key_deserializer"](b"k") == "k"
        assert kwargs["value_deserializer"](b"\x00\x00\x00\x01") == 1

    def test_close_each_codec_once(self):
        """Shared codec objects are closed once."""
        shared = ClosingSerializer()
        key_decoder = ClosingDeserializer()
        value_decoder = ClosingDeserializer()
        serdes = Serdes("t", shared, key_decoder, shared, value_decoder)

        serdes.close()

        assert shared.closed == 1
        assert key_decoder.closed == 1
        assert value_decoder.closed == 1
        assert serdes.bytes_from_key(b"still works") == b"still works"

    def test_close_reaches_duck_typed_codec_once(self):
        """One codec object in all four slots is closed exactly once."""
        codec = DuckCodec()
        serdes = Serdes("t", codec, codec, codec, codec)

        serdes.close()

        assert codec.closed == 1
        assert serdes.bytes_from_value("x") == b"x"

    def test_close_duck_typed_codec_without_close_method(self):
        """Codec objects without close() are skipped quietly."""

        class Plain:
            def serialize(self, topic, data):
                return data

            def deserialize(self, topic, data):
                return data

        codec = Plain()

        Serdes("t", codec, codec, codec, codec).close()

    def test_construction_counted_by_mode(self):
        """Each construction mode has its own counter."""
        before = {
            mode: sample("serdes_contexts_created_total", mode=mode)
            for mode in ("explicit", "config", "builtin")
        }

        Serdes("t", StringSerializer(), StringDeserializer(),
               StringSerializer(), StringDeserializer())
        Serdes.from_config("t", string_defaults())
        Serdes.with_builtin_types("t", "string", "string")

        for mode in ("explicit", "config", "builtin"):
            assert sample("serdes_contexts_created_total", mode=mode) == before[mode] + 1

    def test_mode_label_not_a_constructor_argument(self):
        """Callers cannot choose the mode label of an explicit Serdes."""
        before = sample("serdes_contexts_created_total", mode="builtin")

        with pytest.raises(TypeError):
            Serdes("t", StringSerializer(), StringDeserializer(),
                   StringSerializer(), StringDeserializer(), _mode="builtin")

        assert sample("serdes_contexts_created_total", mode="builtin") == before
