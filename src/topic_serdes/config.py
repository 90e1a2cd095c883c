"""
Default serdes configuration.

StreamingConfig is the shared source of fallback codecs for topics that do
not name their own. Codec fields take either a codec object or a string
spec:

    string | integer | long | bytes      built-in codec (aliases accepted)
    package.module:ClassName             class imported and instantiated
    package.module.ClassName             same, dotted form

Configuration priority (highest to lowest):
    1. Environment variables
    2. config.yaml file (under 'serdes:' key)
    3. Dataclass defaults
"""

import importlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union

import yaml

from topic_serdes.builtin import deserializer_for, is_builtin_name, serializer_for
from topic_serdes.common.exceptions import ConfigurationError
from topic_serdes.serialization import (
    Deserializer,
    Serializer,
    as_deserializer,
    as_serializer,
)

# Default config path: config.yaml in the working directory
DEFAULT_CONFIG_PATH = Path("config.yaml")

CodecSpec = Union[str, Serializer, Deserializer, Any, None]

ENV_VARS = {
    "key_serializer": "SERDES_KEY_SERIALIZER",
    "key_deserializer": "SERDES_KEY_DESERIALIZER",
    "value_serializer": "SERDES_VALUE_SERIALIZER",
    "value_deserializer": "SERDES_VALUE_DESERIALIZER",
}


class DefaultSerdesSource(Protocol):
    """Read-only provider of fallback codecs.

    Each accessor returns a codec, or None when no default is configured.
    Results must be stable for the lifetime of the process.
    """

    def default_key_serializer(self) -> Optional[Serializer]: ...

    def default_key_deserializer(self) -> Optional[Deserializer]: ...

    def default_value_serializer(self) -> Optional[Serializer]: ...

    def default_value_deserializer(self) -> Optional[Deserializer]: ...


def _import_codec_class(spec: str) -> type:
    """Import a class from 'module:Class' or 'module.Class'."""
    if ":" in spec:
        module_name, _, attr = spec.partition(":")
    else:
        module_name, _, attr = spec.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(
            f"Codec spec '{spec}' is neither a built-in type nor an import path"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(
            f"Cannot import module '{module_name}' for codec spec '{spec}'",
            cause=e,
        ) from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise ConfigurationError(
            f"Module '{module_name}' has no attribute '{attr}'",
            cause=e,
        ) from e


def _resolve_codec(
    spec: CodecSpec,
    slot: str,
    configs: Dict[str, Any],
) -> Union[Serializer, Deserializer, None]:
    """Turn a field value into a configured codec instance (or None)."""
    if spec is None or (isinstance(spec, str) and not spec.strip()):
        return None

    is_key = slot.startswith("key")
    wants_serializer = slot.endswith("_serializer")

    if isinstance(spec, str):
        if is_builtin_name(spec):
            codec = serializer_for(spec) if wants_serializer else deserializer_for(spec)
        else:
            codec_class = _import_codec_class(spec.strip())
            try:
                codec = codec_class()
            except TypeError as e:
                raise ConfigurationError(
                    f"Codec class '{spec}' cannot be instantiated without arguments",
                    cause=e,
                    context={"slot": slot},
                ) from e
    else:
        codec = spec

    codec = as_serializer(codec, slot) if wants_serializer else as_deserializer(codec, slot)
    if configs:
        codec.configure(configs, is_key)
    return codec


def _check_configs(configs: Any) -> Mapping[str, Any]:
    if not isinstance(configs, Mapping):
        raise ConfigurationError(
            f"serializer_configs must be a mapping, got {type(configs).__name__}"
        )
    return configs


@dataclass
class StreamingConfig:
    """Shared default codecs for key and value serialization.

    Implements DefaultSerdesSource. Codecs are resolved once, when the
    config is created, so a bad spec fails immediately and every accessor
    call returns the same instance.

    Load from environment using StreamingConfig.from_env() or from
    config.yaml plus environment using StreamingConfig.load_config().
    """

    key_serializer: CodecSpec = None
    key_deserializer: CodecSpec = None
    value_serializer: CodecSpec = None
    value_deserializer: CodecSpec = None

    # Passed to each codec's configure() hook, e.g. {"serializer.encoding": "utf-16"}
    serializer_configs: Dict[str, Any] = field(default_factory=dict)

    _resolved: Dict[str, Any] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        _check_configs(self.serializer_configs)
        for slot in ENV_VARS:
            self._resolved[slot] = _resolve_codec(
                getattr(self, slot), slot, self.serializer_configs
            )

    def default_key_serializer(self) -> Optional[Serializer]:
        return self._resolved["key_serializer"]

    def default_key_deserializer(self) -> Optional[Deserializer]:
        return self._resolved["key_deserializer"]

    def default_value_serializer(self) -> Optional[Serializer]:
        return self._resolved["value_serializer"]

    def default_value_deserializer(self) -> Optional[Deserializer]:
        return self._resolved["value_deserializer"]

    @staticmethod
    def _env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(data)
        for slot, env_var in ENV_VARS.items():
            value = os.getenv(env_var)
            if value:
                merged[slot] = value

        configs = dict(_check_configs(merged.get("serializer_configs") or {}))
        encoding = os.getenv("SERDES_STRING_ENCODING")
        if encoding:
            configs["serializer.encoding"] = encoding
            configs["deserializer.encoding"] = encoding
        merged["serializer_configs"] = configs
        return merged

    @classmethod
    def from_env(cls) -> "StreamingConfig":
        """Load configuration from environment variables.

        Optional environment variables (unset means no default):
            SERDES_KEY_SERIALIZER: Codec spec for record keys
            SERDES_KEY_DESERIALIZER: Codec spec for record keys
            SERDES_VALUE_SERIALIZER: Codec spec for record values
            SERDES_VALUE_DESERIALIZER: Codec spec for record values
            SERDES_STRING_ENCODING: Charset for string codecs (default: utf-8)

        Raises:
            ConfigurationError: If a codec spec cannot be resolved
        """
        return cls(**cls._env_overrides({}))

    @classmethod
    def load_config(cls, config_path: Optional[Path] = None) -> "StreamingConfig":
        """Load configuration from config.yaml and environment variables.

        Expected YAML layout:

            serdes:
              key_serializer: string
              key_deserializer: string
              value_serializer: myapp.codecs:OrderSerializer
              value_deserializer: myapp.codecs:OrderDeserializer
              serializer_configs:
                serializer.encoding: utf-8

        A missing file is treated as empty.

        Raises:
            ConfigurationError: If the file is malformed or a codec spec
                cannot be resolved
        """
        config_path = config_path or DEFAULT_CONFIG_PATH

        serdes_data: Dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, "r") as f:
                try:
                    yaml_data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigurationError(
                        f"Invalid YAML in {config_path}",
                        cause=e,
                        context={"config_path": str(config_path)},
                    ) from e
            if not isinstance(yaml_data, dict):
                raise ConfigurationError(
                    f"Expected a mapping at the top of {config_path}",
                    context={"config_path": str(config_path)},
                )
            serdes_data = yaml_data.get("serdes") or {}
            if not isinstance(serdes_data, dict):
                raise ConfigurationError(
                    f"Expected a mapping under 'serdes' in {config_path}",
                    context={"config_path": str(config_path)},
                )

        known = set(ENV_VARS) | {"serializer_configs"}
        unknown = sorted(set(serdes_data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown serdes settings in {config_path}: {', '.join(unknown)}",
                context={"config_path": str(config_path)},
            )

        return cls(**cls._env_overrides(serdes_data))


__all__ = ["DefaultSerdesSource", "StreamingConfig", "DEFAULT_CONFIG_PATH"]
