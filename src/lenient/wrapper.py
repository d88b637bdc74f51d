"""Decode-or-default wrappers.

``Lenient[T]`` decodes a ``T`` and, if that fails, holds ``T``'s default
instead of raising. ``Optional[T]`` is ``Lenient[T | None]``: absent, null
and malformed input all become ``None``.

The second parameter selects diagnostics for that specialisation::

    Lenient[int]          # fallbacks are reported (default)
    Lenient[int, False]   # fallbacks are silent

Wrappers plug into pydantic through ``__get_pydantic_core_schema__`` so they
can be used as field types of any pydantic model, not only of lenient records.
"""

from __future__ import annotations

import threading
import typing
from typing import Any, ClassVar

import pydantic_core
from pydantic import GetCoreSchemaHandler, TypeAdapter, ValidationError
from pydantic_core import core_schema

from lenient.defaults import DefaultFactory, default_factory_for
from lenient.diagnostics import FallbackEvent, report_fallback
from lenient.errors import format_validation_error

_cache: dict[tuple[type, Any, bool], type] = {}
_cache_lock = threading.Lock()


def _split_params(params: Any) -> tuple[Any, bool]:
    if not isinstance(params, tuple):
        return params, True
    if len(params) != 2:
        msg = f"expected [T] or [T, diagnostics], got {len(params)} parameters"
        raise TypeError(msg)
    inner, diagnostics = params
    if not isinstance(diagnostics, bool):
        msg = f"diagnostics parameter must be a bool, got {diagnostics!r}"
        raise TypeError(msg)
    return inner, diagnostics


def _type_repr(tp: Any) -> str:
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        return tp.__qualname__
    return repr(tp).replace("typing.", "")


class Lenient:
    """A single decoded value, or its type's default if decoding failed.

    Attribute reads and writes that are not the wrapper's own go to the
    contained value, so ``wrapper.attr`` behaves like ``wrapper.value.attr``.
    """

    __slots__ = ("value",)

    inner_type: ClassVar[Any] = None
    diagnostics: ClassVar[bool] = True
    _default_factory: ClassVar[DefaultFactory | None] = None
    _adapter: ClassVar[TypeAdapter[Any] | None] = None

    def __init__(self, value: Any) -> None:
        object.__setattr__(self, "value", value)

    def __class_getitem__(cls, params: Any) -> type[Lenient]:
        if cls.inner_type is not None:
            msg = f"{cls.__name__} is already specialised"
            raise TypeError(msg)
        inner, diagnostics = _split_params(params)
        key = (cls, inner, diagnostics)
        try:
            cached = _cache.get(key)
        except TypeError:
            return cls._specialise(inner, diagnostics)
        if cached is not None:
            return cached
        with _cache_lock:
            cached = _cache.get(key)
            if cached is None:
                cached = _cache[key] = cls._specialise(inner, diagnostics)
        return cached

    @classmethod
    def _specialise(cls, inner: Any, diagnostics: bool) -> type[Lenient]:
        name = f"{cls.__name__}[{_type_repr(inner)}]"
        if not diagnostics:
            name = f"{cls.__name__}[{_type_repr(inner)}, False]"
        namespace = {
            "__slots__": (),
            "__module__": cls.__module__,
            "__qualname__": name,
            "inner_type": inner,
            "diagnostics": diagnostics,
            "_default_factory": staticmethod(default_factory_for(inner)),
        }
        return type(name, (cls,), namespace)

    # -- construction -------------------------------------------------------

    @classmethod
    def _require_specialised(cls) -> None:
        if cls.inner_type is None:
            msg = f"{cls.__name__} must be parameterised, e.g. {cls.__name__}[int]"
            raise TypeError(msg)

    @classmethod
    def default(cls) -> Any:
        """A fresh default value of the inner type."""
        cls._require_specialised()
        assert cls._default_factory is not None
        return cls._default_factory()

    @classmethod
    def absent(cls) -> Lenient:
        """The wrapper used when the field is missing from the input."""
        return cls(cls.default())

    @classmethod
    def _fallback(cls, error: str, field: str | None) -> Lenient:
        default = cls.default()
        if cls.diagnostics:
            report_fallback(
                FallbackEvent(
                    wrapper=cls.__name__,
                    field=field,
                    error=error,
                    default=repr(default),
                )
            )
        return cls(default)

    @classmethod
    def _type_adapter(cls) -> TypeAdapter[Any]:
        if cls._adapter is None:
            cls._require_specialised()
            cls._adapter = TypeAdapter(cls)
        return cls._adapter

    @classmethod
    def decode(cls, data: Any) -> Lenient:
        """Decode *data*; never raises for malformed input."""
        return cls._type_adapter().validate_python(data)

    @classmethod
    def decode_json(cls, text: str | bytes) -> Lenient:
        """Decode JSON *text*; text that is not JSON counts as malformed."""
        try:
            data = pydantic_core.from_json(text)
        except ValueError as exc:
            return cls._fallback(str(exc), None)
        return cls.decode(data)

    # -- pydantic integration -----------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        cls._require_specialised()
        inner_schema = handler.generate_schema(cls.inner_type)

        def validate(
            value: Any,
            validator: core_schema.ValidatorFunctionWrapHandler,
            info: core_schema.ValidationInfo,
        ) -> Lenient:
            if isinstance(value, cls):
                return value
            try:
                return cls(validator(value))
            except ValidationError as exc:
                return cls._fallback(format_validation_error(exc), info.field_name)

        return core_schema.with_info_wrap_validator_function(
            validate,
            inner_schema,
            serialization=core_schema.wrap_serializer_function_ser_schema(
                lambda wrapped, serializer: serializer(wrapped.value),
                schema=inner_schema,
                info_arg=False,
            ),
        )

    # -- transparent access -------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        if name == "value" or name.startswith("__"):
            raise AttributeError(name)
        return getattr(self.value, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "value":
            object.__setattr__(self, name, value)
        else:
            setattr(self.value, name, value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Lenient):
            return bool(self.value == other.value)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class Optional:
    """``Optional[T]`` is ``Lenient[T | None]``; ``Optional[T, False]`` is silent."""

    def __new__(cls, *args: Any, **kwargs: Any) -> Optional:
        msg = "Optional cannot be instantiated; use Optional[T]"
        raise TypeError(msg)

    def __class_getitem__(cls, params: Any) -> type[Lenient]:
        inner, diagnostics = _split_params(params)
        return Lenient[typing.Union[inner, None], diagnostics]  # noqa: UP007
