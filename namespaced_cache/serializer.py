"""
Value codecs used by byte-oriented backends such as Redis.

Values are tagged on the way out (``{"__type__": ..., "value": ...}``) so that
datetimes, UUIDs, decimals, enums, pydantic models and dataclasses survive a
round trip through JSON or MessagePack.
"""

import dataclasses
import importlib
import json
import pickle
import warnings
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Union
from uuid import UUID

import msgpack
from pydantic import BaseModel


class SerializationFormat(str, Enum):
    """Supported serialization formats."""
    JSON = "json"
    PICKLE = "pickle"
    MSGPACK = "msgpack"


def _qualified_name(obj: Any) -> str:
    return f"{type(obj).__module__}.{type(obj).__qualname__}"


def _import_object(path: str) -> Any:
    module_path, name = path.rsplit(".", 1)
    return getattr(importlib.import_module(module_path), name)


class JSONEncoder(json.JSONEncoder):
    """
    JSON encoder that tags the non-JSON types a cached value commonly holds.
    """

    def default(self, obj: Any) -> Any:
        # datetime must be checked before its date base class
        if isinstance(obj, datetime):
            return {"__type__": "datetime", "value": obj.isoformat()}
        if isinstance(obj, date):
            return {"__type__": "date", "value": obj.isoformat()}
        if isinstance(obj, time):
            return {"__type__": "time", "value": obj.isoformat()}
        if isinstance(obj, timedelta):
            return {"__type__": "timedelta", "value": obj.total_seconds()}
        if isinstance(obj, (UUID, Decimal)):
            return {"__type__": type(obj).__name__.lower(), "value": str(obj)}
        if isinstance(obj, Enum):
            return {"__type__": "enum", "class": _qualified_name(obj), "value": obj.value}
        if isinstance(obj, bytes):
            return {"__type__": "bytes", "value": obj.decode("latin-1")}
        if isinstance(obj, (set, frozenset)):
            return {"__type__": type(obj).__name__, "value": sorted(obj, key=repr)}
        if isinstance(obj, BaseModel):
            return {"__type__": "pydantic", "class": _qualified_name(obj), "value": obj.model_dump()}
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {"__type__": "dataclass", "class": _qualified_name(obj), "value": dataclasses.asdict(obj)}

        return super().default(obj)


def _rebuild(obj: dict[str, Any], build: Callable[[Any, Any], Any]) -> Any:
    # Classes that can no longer be imported degrade to their raw value
    try:
        cls = _import_object(obj["class"])
    except (ImportError, AttributeError):
        return obj["value"]
    return build(cls, obj["value"])


_DECODERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    "datetime": lambda obj: datetime.fromisoformat(obj["value"]),
    "date": lambda obj: date.fromisoformat(obj["value"]),
    "time": lambda obj: time.fromisoformat(obj["value"]),
    "timedelta": lambda obj: timedelta(seconds=obj["value"]),
    "uuid": lambda obj: UUID(obj["value"]),
    "decimal": lambda obj: Decimal(obj["value"]),
    "bytes": lambda obj: obj["value"].encode("latin-1"),
    "set": lambda obj: set(obj["value"]),
    "frozenset": lambda obj: frozenset(obj["value"]),
    "enum": lambda obj: _rebuild(obj, lambda cls, value: cls(value)),
    "pydantic": lambda obj: _rebuild(obj, lambda cls, value: cls.model_validate(value)),
    "dataclass": lambda obj: _rebuild(obj, lambda cls, value: cls(**value)),
}


def _json_object_hook(obj: dict[str, Any]) -> Any:
    decoder = _DECODERS.get(obj.get("__type__"))  # type: ignore[arg-type]
    if decoder is None:
        return obj
    return decoder(obj)


def serialize_json(data: Any) -> bytes:
    """
    Serialize data to compact UTF-8 JSON.

    :param data: Data to serialize
    :return: Serialized bytes
    """
    return json.dumps(data, cls=JSONEncoder, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def deserialize_json(data: Union[bytes, str]) -> Any:
    # clients created with decode_responses=True hand back str
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    return json.loads(text, object_hook=_json_object_hook)


def serialize_pickle(data: Any) -> bytes:
    """
    Serialize data with pickle.

    Pickle is the most flexible but least secure format. Only use it with
    trusted backends.
    """
    warnings.warn(
        "Pickle serialization is unsafe for untrusted data. "
        "Only use with trusted cache backends.",
        RuntimeWarning,
        stacklevel=2,
    )
    return pickle.dumps(data, protocol=pickle.HIGHEST_PROTOCOL)


def deserialize_pickle(data: bytes) -> Any:
    return pickle.loads(data)


def serialize_msgpack(data: Any) -> bytes:
    """
    Serialize data with MessagePack, tagging custom types the same way as JSON.
    """
    tagged = json.loads(json.dumps(data, cls=JSONEncoder))
    return msgpack.packb(tagged, use_bin_type=True)


def deserialize_msgpack(data: bytes) -> Any:
    return msgpack.unpackb(data, raw=False, object_hook=_json_object_hook)


_DEFAULT_FORMAT = SerializationFormat.JSON

_CODECS: dict[SerializationFormat, tuple[Callable[[Any], bytes], Callable[[bytes], Any]]] = {
    SerializationFormat.JSON: (serialize_json, deserialize_json),
    SerializationFormat.PICKLE: (serialize_pickle, deserialize_pickle),
    SerializationFormat.MSGPACK: (serialize_msgpack, deserialize_msgpack),
}


def set_default_format(format: SerializationFormat) -> None:
    global _DEFAULT_FORMAT
    _DEFAULT_FORMAT = format


def get_default_format() -> SerializationFormat:
    return _DEFAULT_FORMAT


def register_serializer(
    format: Union[str, SerializationFormat],
    serializer: Callable[[Any], bytes],
    deserializer: Callable[[bytes], Any],
) -> None:
    """
    Replace the codec pair used for a format.

    :param format: Format identifier
    :param serializer: Serialization function
    :param deserializer: Deserialization function
    """
    _CODECS[SerializationFormat(format)] = (serializer, deserializer)


def _codec(format: Optional[SerializationFormat]) -> tuple[SerializationFormat, tuple[Callable[[Any], bytes], Callable[[bytes], Any]]]:
    format = format or _DEFAULT_FORMAT
    if format not in _CODECS:
        raise ValueError(f"Unsupported serialization format: {format}")
    return format, _CODECS[format]


def serialize(data: Any, format: Optional[SerializationFormat] = None) -> bytes:
    """
    Serialize data to bytes using the specified or default format.

    :raises ValueError: If the format is unknown or encoding fails
    """
    format, (serializer, _) = _codec(format)
    try:
        return serializer(data)
    except Exception as e:
        raise ValueError(f"Failed to serialize data with format {format}: {e}") from e


def deserialize(data: bytes, format: Optional[SerializationFormat] = None) -> Any:
    """
    Deserialize bytes using the specified or default format.

    :raises ValueError: If the format is unknown or decoding fails
    """
    format, (_, deserializer) = _codec(format)
    try:
        return deserializer(data)
    except Exception as e:
        raise ValueError(f"Failed to deserialize data with format {format}: {e}") from e


__all__ = [
    "serialize",
    "deserialize",
    "SerializationFormat",
    "set_default_format",
    "get_default_format",
    "register_serializer",
    "JSONEncoder",
]
