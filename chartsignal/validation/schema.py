from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from typing import Any, Iterator, Optional, Tuple, Union


class SchemaError(ValueError):
    """Raised when a schema is malformed (caller bug, not bad input data)."""


ENUM_LITERAL_TYPES = (str, int, float, bool)


# ----------------------------
# Field kinds
# ----------------------------
@dataclass(frozen=True)
class StringKind:
    name = "string"


@dataclass(frozen=True)
class NumberKind:
    name = "number"


@dataclass(frozen=True)
class BooleanKind:
    name = "boolean"


@dataclass(frozen=True)
class EnumKind:
    values: Tuple[Any, ...]
    name = "enum"

    def __post_init__(self) -> None:
        if not self.values:
            raise SchemaError("enum kind needs at least one value")
        for i, v in enumerate(self.values):
            if v is not None and not isinstance(v, ENUM_LITERAL_TYPES):
                raise SchemaError(f"enum values must be JSON scalars, got {type(v).__name__}")
            # same rule as matching: type and value both equal
            if any(type(v) is type(w) and v == w for w in self.values[:i]):
                raise SchemaError(f"enum kind has duplicate values: {list(self.values)}")


@dataclass(frozen=True)
class ArrayKind:
    element: "Kind"
    name = "array"

    def __post_init__(self) -> None:
        if not isinstance(self.element, KIND_TYPES):
            raise SchemaError(f"array element must be a field kind, got {type(self.element).__name__}")


@dataclass(frozen=True)
class ObjectKind:
    schema: "Schema"
    name = "object"

    def __post_init__(self) -> None:
        if not isinstance(self.schema, Schema):
            raise SchemaError(f"object kind needs a Schema, got {type(self.schema).__name__}")


Kind = Union[StringKind, NumberKind, BooleanKind, EnumKind, ArrayKind, ObjectKind]
KIND_TYPES = (StringKind, NumberKind, BooleanKind, EnumKind, ArrayKind, ObjectKind)


def string() -> StringKind:
    return StringKind()


def number() -> NumberKind:
    return NumberKind()


def boolean() -> BooleanKind:
    return BooleanKind()


def enum(*values: Any) -> EnumKind:
    return EnumKind(tuple(values))


def array(element: Kind) -> ArrayKind:
    return ArrayKind(element)


def obj(*fields: "Field") -> ObjectKind:
    return ObjectKind(Schema(*fields))


# ----------------------------
# Field descriptor + schema
# ----------------------------
@dataclass(frozen=True)
class Field:
    """One named slot of a schema.

    ``default`` is only consulted for optional fields. ``range`` is an
    inclusive ``(min, max)`` pair and only applies to numbers; ``non_empty``
    only applies to strings and enums.
    """

    name: str
    kind: Kind
    required: bool = True
    default: Any = None
    range: Optional[Tuple[float, float]] = None
    non_empty: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise SchemaError(f"field name must be a non-empty string, got {self.name!r}")
        if not isinstance(self.kind, KIND_TYPES):
            raise SchemaError(f"field '{self.name}' has unknown kind {self.kind!r}")

        if self.range is not None:
            if not isinstance(self.kind, NumberKind):
                raise SchemaError(f"field '{self.name}': range only applies to number fields")
            if len(self.range) != 2:
                raise SchemaError(f"field '{self.name}': range must be a (min, max) pair")
            lo, hi = self.range
            if lo > hi:
                raise SchemaError(f"field '{self.name}': range min {lo} is greater than max {hi}")
            object.__setattr__(self, "range", (lo, hi))

        if self.non_empty and not isinstance(self.kind, (StringKind, EnumKind)):
            raise SchemaError(f"field '{self.name}': non_empty only applies to string/enum fields")

        if not self.required and self.default is not None:
            self._check_default()

    def _check_default(self) -> None:
        """The default must validate against this field and come back unchanged."""
        from .validator import validate

        slot = Field(self.name, self.kind, range=self.range, non_empty=self.non_empty)
        res = validate({self.name: self.default}, Schema(slot))
        if not res.ok:
            raise SchemaError(f"field '{self.name}': invalid default {self.default!r}: {res.summary()[0]}")
        if res.value[self.name] != self.default or type(res.value[self.name]) is not type(self.default):
            raise SchemaError(
                f"field '{self.name}': default {self.default!r} would be stored as {res.value[self.name]!r}"
            )


@dataclass(frozen=True, init=False)
class Schema:
    """Ordered, immutable collection of fields with unique names."""

    fields: Tuple[Field, ...] = dc_field(default=())

    def __init__(self, *fields: Field) -> None:
        seen: set[str] = set()
        for f in fields:
            if not isinstance(f, Field):
                raise SchemaError(f"schema entries must be Field, got {type(f).__name__}")
            if f.name in seen:
                raise SchemaError(f"duplicate field name '{f.name}' in schema")
            seen.add(f.name)
        object.__setattr__(self, "fields", tuple(fields))

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, name: str) -> Field:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self.fields)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def required_names(self) -> list[str]:
        return [f.name for f in self.fields if f.required]

    def depth(self) -> int:
        """Nesting depth of the schema tree (a flat schema is 1)."""
        deepest = 0
        for f in self.fields:
            deepest = max(deepest, _kind_depth(f.kind))
        return 1 + deepest


def _kind_depth(kind: Kind) -> int:
    if isinstance(kind, ObjectKind):
        return kind.schema.depth()
    if isinstance(kind, ArrayKind):
        return 1 + _kind_depth(kind.element)
    return 0
