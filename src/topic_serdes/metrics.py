"""
Prometheus metrics for serdes resolution and decoding.

Provides instrumentation for:
- Serdes contexts created, by construction mode
- Decode failures, by topic and codec slot
"""

from prometheus_client import Counter

serdes_contexts_created_total = Counter(
    "serdes_contexts_created_total",
    "Total number of topic serdes contexts created",
    ["mode"],  # mode: explicit, config, builtin
)

serdes_decode_errors_total = Counter(
    "serdes_decode_errors_total",
    "Total number of records that failed to deserialize",
    ["topic", "slot"],  # slot: key-deserializer, value-deserializer
)


def record_context_created(mode: str) -> None:
    """
    Record creation of a serdes context.

    Args:
        mode: Construction mode (explicit, config, builtin)
    """
    serdes_contexts_created_total.labels(mode=mode).inc()


def record_decode_error(topic: str, slot: str) -> None:
    """
    Record a deserialization failure.

    Args:
        topic: Topic the record belongs to
        slot: Codec slot that failed
    """
    serdes_decode_errors_total.labels(topic=topic, slot=slot).inc()


__all__ = [
    "serdes_contexts_created_total",
    "serdes_decode_errors_total",
    "record_context_created",
    "record_decode_error",
]
