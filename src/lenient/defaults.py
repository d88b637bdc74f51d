"""Default values for wrapped field types.

A lenient field that fails to decode is replaced by its type's default. The
default is resolved once, when the wrapper is specialised, into a zero-argument
factory; calling the factory per fallback keeps mutable defaults unshared.

Resolution order:
  1. explicit registrations (``register_default``)
  2. a ``__lenient_default__`` classmethod on the type
  3. typing constructs (Annotated, unions with None, Literal, NewType, aliases)
  4. enums, containers, builtin scalars
  5. classes constructible without arguments (dataclasses, pydantic models, ...)
"""

from __future__ import annotations

import collections
import collections.abc
import dataclasses
import decimal
import enum
import inspect
import types
import typing
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from lenient.errors import NoDefaultError

DefaultFactory = Callable[[], Any]

_SCALARS: tuple[type, ...] = (int, float, complex, str, bytes, bool, decimal.Decimal)

_CONTAINER_ORIGINS: dict[Any, type] = {
    list: list,
    set: set,
    frozenset: frozenset,
    dict: dict,
    collections.deque: collections.deque,
    collections.OrderedDict: collections.OrderedDict,
    collections.defaultdict: dict,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
}

_REGISTRY: dict[Any, DefaultFactory] = {}


def register_default(tp: Any, factory: DefaultFactory) -> None:
    """Register *factory* as the default for *tp*, overriding inference.

    Meant for import-time setup; lookups during decoding only read.
    """
    if not callable(factory):
        msg = f"default factory for {tp!r} must be callable"
        raise TypeError(msg)
    _REGISTRY[tp] = factory


def unregister_default(tp: Any) -> None:
    """Remove a registration made with :func:`register_default`."""
    _REGISTRY.pop(tp, None)


def _none() -> None:
    return None


def _constant(value: Any) -> DefaultFactory:
    return lambda: value


def default_factory_for(tp: Any) -> DefaultFactory:
    """Return a factory producing the default value of *tp*.

    Raises:
        NoDefaultError: If *tp* has no default value.
    """
    try:
        registered = _REGISTRY.get(tp)
    except TypeError:
        registered = None
    if registered is not None:
        return registered

    hook = getattr(tp, "__lenient_default__", None)
    if hook is not None and callable(hook):
        return hook

    if tp is None or tp is types.NoneType or tp is typing.Any:
        return _none

    # `type X = ...` aliases and NewType("X", base)
    if isinstance(tp, typing.TypeAliasType):
        return default_factory_for(tp.__value__)
    supertype = getattr(tp, "__supertype__", None)
    if supertype is not None:
        base = default_factory_for(supertype)
        return lambda: tp(base())

    origin = typing.get_origin(tp)
    if origin is typing.Annotated:
        return default_factory_for(typing.get_args(tp)[0])
    if origin is typing.Union or origin is types.UnionType:
        if types.NoneType in typing.get_args(tp):
            return _none
        msg = f"union {tp!r} has no default; add None to it or register a default"
        raise NoDefaultError(msg)
    if origin is typing.Literal:
        return _constant(typing.get_args(tp)[0])
    if origin is tuple:
        return _tuple_factory(tp)
    if origin is not None:
        container = _CONTAINER_ORIGINS.get(origin)
        if container is not None:
            return container
        return default_factory_for(origin)

    if not isinstance(tp, type):
        msg = f"cannot determine a default value for {tp!r}"
        raise NoDefaultError(msg)

    if issubclass(tp, enum.Enum):
        members = list(tp)
        if not members:
            msg = f"enum {tp.__name__} has no members"
            raise NoDefaultError(msg)
        return _constant(members[0])
    if tp in _CONTAINER_ORIGINS:
        return _CONTAINER_ORIGINS[tp]
    if tp is tuple:
        return tuple
    if issubclass(tp, _SCALARS):
        return tp
    if _constructible_without_arguments(tp):
        return tp

    msg = f"{tp.__name__} has no default value; register one with register_default()"
    raise NoDefaultError(msg)


def _tuple_factory(tp: Any) -> DefaultFactory:
    args = typing.get_args(tp)
    if not args or (len(args) == 2 and args[1] is Ellipsis):
        return tuple
    if args == ((),):
        return tuple
    factories = [default_factory_for(arg) for arg in args]
    return lambda: tuple(f() for f in factories)


def _constructible_without_arguments(cls: type) -> bool:
    if dataclasses.is_dataclass(cls):
        return all(
            f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
            for f in dataclasses.fields(cls)
            if f.init
        )
    if issubclass(cls, BaseModel):
        return not any(info.is_required() for info in cls.model_fields.values())
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return False
    return all(
        p.default is not inspect.Parameter.empty
        or p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for p in signature.parameters.values()
    )


def default_for(tp: Any) -> Any:
    """Build a fresh default value of *tp*."""
    return default_factory_for(tp)()
