"""Lenient records: per-field decode policies over dataclasses and pydantic models.

Fields opt into leniency with ``typing.Annotated`` markers::

    @lenient_record
    @dataclass
    class Offset:
        start: int                                  # strict
        size: Annotated[int, lenient]               # default on failure
        label: Annotated[str | None, optional]      # None on absence/failure

Decoding is two-phase. A shadow pydantic model is generated once, at
decoration time, with every field's type rewritten per its policy
(``T``, ``Lenient[T]`` or ``Optional[T]``). ``decode`` validates the input
against the shadow, then rebuilds the record field by field from it.

Only two failures reach the caller: ``StructuralError`` (the input is not a
mapping / not JSON) and ``RequiredFieldError`` (a strict field is absent or
malformed). Lenient and optional fields always decode.
"""

from __future__ import annotations

import dataclasses
import logging
import typing
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Self

import pydantic_core
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, create_model
from pydantic_core import PydanticUndefined, core_schema

from lenient.defaults import DefaultFactory, default_factory_for
from lenient.errors import DecodeError, RequiredFieldError, StructuralError
from lenient.wrapper import Lenient, Optional

logger = logging.getLogger(__name__)

PLAN_ATTRIBUTE = "__lenient_plan__"

# Marks a field without a record-level default.
NO_DEFAULT: Any = object()


# ---------------------------------------------------------------------------
# Field policies and markers
# ---------------------------------------------------------------------------


class FieldPolicy(StrEnum):
    """How a single record field reacts to bad input."""

    STRICT = "strict"
    LENIENT = "lenient"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class FieldMarker:
    """``Annotated`` metadata selecting a field's policy.

    Call it to choose diagnostics: ``Annotated[int, lenient(diagnostics=False)]``.
    """

    policy: FieldPolicy
    diagnostics: bool = True

    def __call__(self, *, diagnostics: bool = True) -> FieldMarker:
        return FieldMarker(self.policy, diagnostics)


lenient = FieldMarker(FieldPolicy.LENIENT)
optional = FieldMarker(FieldPolicy.OPTIONAL)


@dataclass(frozen=True)
class FieldDescriptor:
    """One record field as seen by the generator."""

    name: str
    declared_type: Any
    policy: FieldPolicy = FieldPolicy.STRICT
    diagnostics: bool = True
    alias: Any = None
    default: Any = NO_DEFAULT
    default_factory: Callable[[], Any] | None = None

    @property
    def required(self) -> bool:
        """A strict field with no record-level default must be present."""
        return self.default is NO_DEFAULT and self.default_factory is None

    @property
    def wrapped(self) -> bool:
        return self.policy is not FieldPolicy.STRICT

    def shadow_type(self) -> Any:
        """The field's type inside the shadow model."""
        if self.policy is FieldPolicy.LENIENT:
            return Lenient[self.declared_type, self.diagnostics]
        if self.policy is FieldPolicy.OPTIONAL:
            return Optional[self.declared_type, self.diagnostics]
        return self.declared_type

    def input_keys(self) -> list[str]:
        """Keys that may carry this field in the input, preferred first."""
        keys: list[str] = []
        if isinstance(self.alias, str):
            keys.append(self.alias)
        elif isinstance(self.alias, AliasChoices):
            keys.extend(c for c in self.alias.choices if isinstance(c, str))
        if self.name not in keys:
            keys.append(self.name)
        return keys


def _split_markers(tp: Any, extra: list[Any]) -> tuple[Any, FieldMarker | None]:
    """Strip policy markers from ``Annotated`` metadata, keeping the rest."""
    metadata = list(extra)
    if typing.get_origin(tp) is typing.Annotated:
        base, *inner = typing.get_args(tp)
        metadata = inner + metadata
        tp = base
    markers = [m for m in metadata if isinstance(m, FieldMarker)]
    others = [m for m in metadata if not isinstance(m, FieldMarker)]
    if len(markers) > 1:
        msg = f"conflicting policy markers: {', '.join(m.policy for m in markers)}"
        raise TypeError(msg)
    if others:
        tp = typing.Annotated[tp, *others]
    return tp, (markers[0] if markers else None)


def classify_fields(cls: type) -> tuple[FieldDescriptor, ...]:
    """Describe the decodable fields of *cls*, in declaration order."""
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return tuple(_classify_model(cls))
    if isinstance(cls, type) and dataclasses.is_dataclass(cls):
        return tuple(_classify_dataclass(cls))
    msg = f"lenient records must be dataclasses or pydantic models, got {cls!r}"
    raise TypeError(msg)


def _describe(
    name: str,
    tp: Any,
    extra: list[Any],
    *,
    alias: Any,
    default: Any,
    default_factory: Callable[[], Any] | None,
) -> FieldDescriptor:
    try:
        declared, marker = _split_markers(tp, extra)
    except TypeError as exc:
        msg = f"field {name!r}: {exc}"
        raise TypeError(msg) from exc
    if marker is None:
        return FieldDescriptor(
            name, declared, alias=alias, default=default, default_factory=default_factory
        )
    return FieldDescriptor(
        name,
        declared,
        marker.policy,
        marker.diagnostics,
        alias=alias,
        default=default,
        default_factory=default_factory,
    )


def _classify_dataclass(cls: type) -> list[FieldDescriptor]:
    hints = typing.get_type_hints(cls, include_extras=True)
    for name, hint in hints.items():
        if hint is dataclasses.InitVar or isinstance(hint, dataclasses.InitVar):
            msg = f"field {name!r}: InitVar fields cannot be decoded into lenient records"
            raise TypeError(msg)
    descriptors = []
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        default = NO_DEFAULT if f.default is dataclasses.MISSING else f.default
        factory = None if f.default_factory is dataclasses.MISSING else f.default_factory
        descriptors.append(
            _describe(
                f.name,
                hints[f.name],
                [],
                alias=None,
                default=default,
                default_factory=factory,
            )
        )
    return descriptors


def _classify_model(cls: type[BaseModel]) -> list[FieldDescriptor]:
    descriptors = []
    for name, info in cls.model_fields.items():
        alias = info.validation_alias if info.validation_alias is not None else info.alias
        default = NO_DEFAULT if info.default is PydanticUndefined else info.default
        descriptors.append(
            _describe(
                name,
                info.annotation,
                list(info.metadata),
                alias=alias,
                default=default,
                default_factory=info.default_factory,  # type: ignore[arg-type]
            )
        )
    return descriptors


# ---------------------------------------------------------------------------
# Plan: shadow model + reassembly
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Slot:
    key: str
    descriptor: FieldDescriptor
    fallback: DefaultFactory | None


class RecordPlan[R]:
    """Shadow model and reassembly for one record type."""

    def __init__(
        self,
        record: type[R],
        descriptors: tuple[FieldDescriptor, ...],
        shadow: type[BaseModel],
        slots: tuple[_Slot, ...],
    ) -> None:
        self.record = record
        self.descriptors = descriptors
        self.shadow = shadow
        self._slots = slots
        self._key_to_field = {
            key: slot.descriptor.name for slot in slots for key in slot.descriptor.input_keys()
        }

    @classmethod
    def build(cls, record: type[R], *, strict: bool = False) -> Self:
        """Classify *record*'s fields and generate its shadow model."""
        descriptors = classify_fields(record)
        fields: dict[str, Any] = {}
        slots: list[_Slot] = []
        names = {d.name for d in descriptors}
        for index, d in enumerate(descriptors):
            key = _shadow_key(d.name, index, names)
            fields[key] = (d.shadow_type(), _shadow_field(d))
            fallback = None
            if d.policy is FieldPolicy.OPTIONAL:
                fallback = default_factory_for(d.declared_type)
            slots.append(_Slot(key, d, fallback))

        shadow = create_model(  # type: ignore[call-overload]
            f"{record.__name__}Shadow",
            __config__=ConfigDict(
                extra="ignore",
                strict=strict,
                arbitrary_types_allowed=True,
            ),
            __module__=record.__module__,
            **fields,
        )
        logger.debug(
            "Built lenient plan for %s: %s",
            record.__qualname__,
            ", ".join(f"{d.name}={d.policy}" for d in descriptors),
        )
        return cls(record, descriptors, shadow, tuple(slots))

    @property
    def name(self) -> str:
        return self.record.__name__

    def decode(self, data: Any) -> R:
        """Decode a Python mapping into a record."""
        try:
            shadow = self.shadow.model_validate(data)
        except ValidationError as exc:
            raise self._translate(exc) from exc
        return self.reassemble(shadow)

    def decode_json(self, text: str | bytes) -> R:
        """Decode JSON text into a record."""
        try:
            shadow = self.shadow.model_validate_json(text)
        except ValidationError as exc:
            raise self._translate(exc) from exc
        return self.reassemble(shadow)

    def reassemble(self, shadow: BaseModel) -> R:
        """Rebuild the record from a validated shadow instance."""
        values: dict[str, Any] = {}
        for slot in self._slots:
            value = getattr(shadow, slot.key)
            policy = slot.descriptor.policy
            if policy is FieldPolicy.LENIENT:
                value = value.value
            elif policy is FieldPolicy.OPTIONAL:
                value = value.value
                if value is None:
                    assert slot.fallback is not None
                    value = slot.fallback()
            values[slot.descriptor.name] = value
        if issubclass(self.record, BaseModel):  # type: ignore[arg-type]
            return self.record.model_construct(**values)  # type: ignore[attr-defined,no-any-return]
        return self.record(**values)

    def to_mapping(self, record: R) -> dict[str, Any]:
        """Field values of *record* keyed by name, in declaration order."""
        return {d.name: getattr(record, d.name) for d in self.descriptors}

    def _translate(self, exc: ValidationError) -> DecodeError:
        error = exc.errors(include_url=False)[0]
        loc = error["loc"]
        if not loc:
            return StructuralError(self.name, error["msg"])
        head = loc[0]
        field = self._key_to_field.get(head, str(head)) if isinstance(head, str) else str(head)
        cause = error["msg"]
        if len(loc) > 1:
            cause = f"{'.'.join(str(part) for part in loc[1:])}: {cause}"
        return RequiredFieldError(
            self.name, field, cause, missing=len(loc) == 1 and error["type"] == "missing"
        )

    def pydantic_schema(self, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            self.reassemble,
            handler.generate_schema(self.shadow),
            serialization=core_schema.plain_serializer_function_ser_schema(
                self.to_mapping, info_arg=False
            ),
        )

    def __repr__(self) -> str:
        return f"RecordPlan({self.record.__qualname__}, fields={len(self.descriptors)})"


def _shadow_key(name: str, index: int, taken: set[str]) -> str:
    """Shadow attribute for a field; renamed when pydantic would reject *name*."""
    if not name.startswith(("_", "model_")) and not hasattr(BaseModel, name):
        return name
    key = f"field_{index}"
    while key in taken:
        key += "_"
    return key


def _shadow_field(d: FieldDescriptor) -> Any:
    keys = d.input_keys()
    alias: Any = keys[0] if len(keys) == 1 else AliasChoices(*keys)
    if d.wrapped:
        return Field(default_factory=d.shadow_type().absent, validation_alias=alias)
    if d.default_factory is not None:
        return Field(default_factory=d.default_factory, validation_alias=alias)
    if d.default is not NO_DEFAULT:
        return Field(default=d.default, validation_alias=alias)
    return Field(validation_alias=alias)


# ---------------------------------------------------------------------------
# Public surface
# ---------------------------------------------------------------------------


def plan_for[R](cls: type[R]) -> RecordPlan[R]:
    """Return the plan of a class decorated with :func:`lenient_record`."""
    plan = cls.__dict__.get(PLAN_ATTRIBUTE) if isinstance(cls, type) else None
    if plan is None:
        msg = f"{cls!r} is not a lenient record; decorate it with @lenient_record"
        raise TypeError(msg)
    return plan  # type: ignore[no-any-return]


def _decode(cls: type[Any], data: Any) -> Any:
    return plan_for(cls).decode(data)


def _decode_json(cls: type[Any], text: str | bytes) -> Any:
    return plan_for(cls).decode_json(text)


@typing.overload
def lenient_record[R](cls: type[R], /) -> type[R]: ...


@typing.overload
def lenient_record[R](*, strict: bool = False) -> Callable[[type[R]], type[R]]: ...


def lenient_record(cls: Any = None, /, *, strict: bool = False) -> Any:
    """Class decorator generating lenient ``decode`` / ``decode_json`` classmethods.

    Args:
        strict: Validate fields with pydantic strict mode (no coercion such
            as ``"5"`` -> ``5``).

    Decorated dataclasses also decode leniently wherever pydantic meets them
    (nested in other records, inside ``Lenient[...]``, via ``TypeAdapter``).
    """

    def wrap(record: type[Any]) -> type[Any]:
        plan = RecordPlan.build(record, strict=strict)
        setattr(record, PLAN_ATTRIBUTE, plan)
        setattr(record, "decode", classmethod(_decode))
        setattr(record, "decode_json", classmethod(_decode_json))
        if not issubclass(record, BaseModel):
            setattr(
                record,
                "__get_pydantic_core_schema__",
                staticmethod(lambda _source, handler: plan.pydantic_schema(handler)),
            )
        return record

    if cls is None:
        return wrap
    return wrap(cls)


def decode[R](cls: type[R], data: Any) -> R:
    """Decode *data* into the lenient record *cls*."""
    return plan_for(cls).decode(data)


def decode_json[R](cls: type[R], text: str | bytes) -> R:
    """Decode JSON *text* into the lenient record *cls*."""
    return plan_for(cls).decode_json(text)


def encode(record: Any) -> Any:
    """Convert a record to JSON-compatible Python data."""
    return pydantic_core.to_jsonable_python(record)


def encode_json(record: Any) -> bytes:
    """Serialise a record to JSON bytes."""
    return pydantic_core.to_json(record)
