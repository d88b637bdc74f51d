"""lenient: per-field decode-or-default decoding on top of pydantic."""

import logging
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("lenient")
except PackageNotFoundError:
    __version__ = "dev"

logging.getLogger("lenient").addHandler(logging.NullHandler())

from lenient.config import setup
from lenient.defaults import default_for, register_default
from lenient.diagnostics import FallbackEvent
from lenient.errors import (
    DecodeError,
    LenientError,
    NoDefaultError,
    RequiredFieldError,
    StructuralError,
)
from lenient.record import (
    FieldDescriptor,
    FieldPolicy,
    classify_fields,
    decode,
    decode_json,
    encode,
    encode_json,
    lenient,
    lenient_record,
    optional,
    plan_for,
)
from lenient.wrapper import Lenient, Optional

__all__ = [
    "__version__",
    "DecodeError",
    "FallbackEvent",
    "FieldDescriptor",
    "FieldPolicy",
    "Lenient",
    "LenientError",
    "NoDefaultError",
    "Optional",
    "RequiredFieldError",
    "StructuralError",
    "classify_fields",
    "decode",
    "decode_json",
    "default_for",
    "encode",
    "encode_json",
    "lenient",
    "lenient_record",
    "optional",
    "plan_for",
    "register_default",
    "setup",
]
