"""
JSON serdes for Pydantic message schemas.

Values are encoded with ``model_dump_json()`` as UTF-8 and decoded with
``model_validate_json()``, so schema validation runs on every consumed
record.

Example:
    >>> serdes = Serdes(
    ...     "orders.events",
    ...     StringSerializer(), StringDeserializer(),
    ...     JsonModelSerializer(), JsonModelDeserializer(OrderEvent),
    ... )
"""

from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from topic_serdes.common.exceptions import DecodeError, SerializationError
from topic_serdes.serialization import Deserializer, Serializer

M = TypeVar("M", bound=BaseModel)


class JsonModelSerializer(Serializer[BaseModel]):
    """Serializes any Pydantic model to JSON bytes."""

    def __init__(self, exclude_none: bool = False):
        self.exclude_none = exclude_none

    def serialize(self, topic: str, data: Optional[BaseModel]) -> Optional[bytes]:
        if data is None:
            return None
        if not isinstance(data, BaseModel):
            raise SerializationError(
                f"JsonModelSerializer expects a pydantic model, got {type(data).__name__}",
                context={"topic": topic},
            )
        return data.model_dump_json(exclude_none=self.exclude_none).encode("utf-8")


class JsonModelDeserializer(Deserializer[M], Generic[M]):
    """Deserializes JSON bytes into one Pydantic model class."""

    def __init__(self, model: Type[M]):
        self.model = model

    def deserialize(self, topic: str, data: Optional[bytes]) -> Optional[M]:
        if data is None:
            return None
        try:
            return self.model.model_validate_json(data)
        except ValidationError as e:
            raise DecodeError(
                f"Record does not match schema {self.model.__name__}",
                cause=e,
                context={"topic": topic, "error_count": e.error_count()},
            ) from e


__all__ = ["JsonModelSerializer", "JsonModelDeserializer"]
