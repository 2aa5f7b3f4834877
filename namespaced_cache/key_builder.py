# namespaced_cache/key_builder.py

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Protocol
from uuid import UUID

from pydantic import BaseModel


class CacheKeyed(Protocol):
    """
    Objects that know their own cache identity.
    When a logical key implements this, ``cache_key()`` is used verbatim.
    Only a callable ``cache_key`` on an instance counts: a data field of that
    name, or a class whose instances define the method, does not.
    """

    def cache_key(self) -> Any:
        ...


def to_param(value: Any) -> str:
    """
    Convert a scalar into its parameter-string form.

    Byte strings are decoded as latin-1 so every byte maps to exactly one
    code point. ``b"\\xe9"`` and ``"\\xe9"`` therefore expand to the same key.
    """

    if value is None:
        return ""

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, Enum):
        return to_param(value.value)

    if isinstance(value, str):
        return value

    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    if isinstance(value, (UUID, Decimal)):
        return str(value)

    return str(value)


def _is_cache_keyed(key: Any) -> bool:
    return not isinstance(key, type) and callable(getattr(key, "cache_key", None))


def _as_mapping(key: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(key, BaseModel):
        return key.model_dump()

    if dataclasses.is_dataclass(key) and not isinstance(key, type):
        return dataclasses.asdict(key)

    return None


def expand_key(key: Any) -> str:
    """
    Expand a logical key into a stable string.

    - objects implementing ``cache_key()`` use that value
    - lists and tuples are expanded element-wise and joined with ``/``;
      a single-element sequence is unwrapped
    - mappings (and pydantic models / dataclasses via their fields) become
      ``key=value`` pairs sorted by key
    - anything else goes through :func:`to_param`

    :param key: The logical key.
    :return: The expanded key.
    """

    if _is_cache_keyed(key):
        return str(key.cache_key())

    fields = _as_mapping(key)
    if fields is not None:
        key = fields

    if isinstance(key, (set, frozenset)):
        key = sorted(key, key=expand_key)

    if isinstance(key, (list, tuple)):
        if len(key) == 1:
            return expand_key(key[0])
        return "/".join(expand_key(element) for element in key)

    if isinstance(key, Mapping):
        pairs = sorted(key.items(), key=lambda item: str(item[0]))
        return "/".join(f"{to_param(name)}={expand_key(value)}" for name, value in pairs)

    return to_param(key)


class KeyBuilder(Protocol):
    """
    Interface for building logical cache keys for decorated functions.
    """

    def build(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        """
        Build a logical key based on the function and its arguments.

        :param func: The target function being cached.
        :param args: Positional arguments passed to the function.
        :param kwargs: Keyword arguments passed to the function.
        :return: Any value :func:`expand_key` accepts.
        """
        ...


class DefaultKeyBuilder:
    """
    Default implementation of KeyBuilder.
    Produces ``[name, {bound arguments}]`` where ``name`` is the explicit key
    or the function's qualified name.
    """

    DEFAULT_EXCLUDED = frozenset({"request", "response", "db", "session", "self"})

    def __init__(
        self,
        key: Optional[str] = None,
        excluded_params: Optional[set[str]] = None,
    ) -> None:
        self.key = key
        self.excluded_params = (
            self.DEFAULT_EXCLUDED if excluded_params is None else frozenset(excluded_params)
        )

    def build(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        name = self.key or f"{func.__module__}.{func.__qualname__}"
        arguments = self._bind_arguments(func, args, kwargs)
        if not arguments:
            return name
        return [name, arguments]

    def _bind_arguments(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> dict[str, Any]:
        sig = inspect.signature(func)
        bound = sig.bind_partial(*args, **kwargs)
        bound.apply_defaults()

        return {
            name: value
            for name, value in bound.arguments.items()
            if name not in self.excluded_params
        }
