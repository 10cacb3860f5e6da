"""Schema validation and coercion for loosely typed (decoded JSON) data."""

from .result import Normalized, ValidationResult, Violation, ViolationKind, ViolationList
from .schema import (
    ArrayKind,
    BooleanKind,
    EnumKind,
    Field,
    NumberKind,
    ObjectKind,
    Schema,
    SchemaError,
    StringKind,
    array,
    boolean,
    enum,
    number,
    obj,
    string,
)
from .validator import DEFAULT_MAX_DEPTH, validate

__all__ = [
    "ArrayKind",
    "BooleanKind",
    "DEFAULT_MAX_DEPTH",
    "EnumKind",
    "Field",
    "Normalized",
    "NumberKind",
    "ObjectKind",
    "Schema",
    "SchemaError",
    "StringKind",
    "ValidationResult",
    "Violation",
    "ViolationKind",
    "ViolationList",
    "array",
    "boolean",
    "enum",
    "number",
    "obj",
    "string",
    "validate",
]
