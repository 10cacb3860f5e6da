from __future__ import annotations

import copy
import math
import re
from collections.abc import Mapping
from typing import Any, List, Tuple

from .result import Normalized, PathSegment, ValidationResult, Violation, ViolationKind, ViolationList, dotted
from .schema import (
    ArrayKind,
    BooleanKind,
    EnumKind,
    Field,
    Kind,
    NumberKind,
    ObjectKind,
    Schema,
    SchemaError,
    StringKind,
)

DEFAULT_MAX_DEPTH = 32

_NUMERIC_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_BRIEF_LEN = 60
_SOFT_FAILURES = (ViolationKind.TYPE_MISMATCH, ViolationKind.NOT_IN_ENUM)

Path = Tuple[PathSegment, ...]


def validate(raw: Any, schema: Schema, *, max_depth: int = DEFAULT_MAX_DEPTH) -> ValidationResult:
    """Coerce ``raw`` against ``schema``.

    Returns ``Normalized`` when every field passed, otherwise a
    ``ViolationList`` with every problem found, in schema order. Never
    raises for bad input data; raises ``SchemaError`` only for a bad
    ``schema`` or ``max_depth`` argument.
    """
    if not isinstance(schema, Schema):
        raise SchemaError(f"validate() needs a Schema, got {type(schema).__name__}")
    if max_depth < 1:
        raise SchemaError(f"max_depth must be >= 1, got {max_depth}")

    v = _Walker(max_depth)
    record = v.record(raw, schema, (), 0)
    if v.violations:
        return ViolationList(tuple(v.violations))
    return Normalized(record)


def _json_type(x: Any) -> str:
    if x is None:
        return "null"
    if isinstance(x, bool):
        return "boolean"
    if isinstance(x, (int, float)):
        return "number"
    if isinstance(x, str):
        return "string"
    if isinstance(x, (list, tuple)):
        return "array"
    if isinstance(x, Mapping):
        return "object"
    return type(x).__name__


def _fmt_num(x: float) -> str:
    if isinstance(x, float) and x.is_integer():
        x = int(x)
    try:
        return str(x)
    except ValueError:
        # int past sys.get_int_max_str_digits()
        return f"<{x.bit_length()}-bit integer>"


def _brief(x: Any) -> str:
    try:
        text = repr(x)
    except ValueError:
        return f"<{x.bit_length()}-bit integer>" if isinstance(x, int) else f"<{type(x).__name__}>"
    if len(text) > _BRIEF_LEN:
        return text[: _BRIEF_LEN - 3] + "..."
    return text


class _Walker:
    """Single-use state for one validate() call."""

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.violations: List[Violation] = []

    def _add(self, into: List[Violation], path: Path, kind: ViolationKind, received: Any, message: str) -> None:
        into.append(Violation(path=path, kind=kind, received=received, message=message))

    # ----------------------------
    # records / fields
    # ----------------------------
    def record(self, raw: Any, schema: Schema, path: Path, depth: int) -> dict:
        out: dict = {}
        mapping = raw if isinstance(raw, Mapping) else None

        for f in schema:
            fpath = path + (f.name,)
            if mapping is None or f.name not in mapping:
                if f.required:
                    self._add(
                        self.violations, fpath, ViolationKind.MISSING_REQUIRED, None,
                        f"missing required field `{dotted(fpath)}`",
                    )
                else:
                    out[f.name] = copy.deepcopy(f.default)
                continue

            ok, value = self.field(f, mapping[f.name], fpath, depth)
            if ok:
                out[f.name] = value
        return out

    def field(self, f: Field, raw: Any, path: Path, depth: int) -> Tuple[bool, Any]:
        found: List[Violation] = []
        ok, value = self.coerce(f.kind, raw, path, depth, found)

        if ok:
            if f.range is not None:
                lo, hi = f.range
                if not (lo <= value <= hi):
                    self._add(
                        found, path, ViolationKind.OUT_OF_RANGE, raw,
                        f"field `{dotted(path)}` must be between {_fmt_num(lo)} and {_fmt_num(hi)}, got {_fmt_num(value)}",
                    )
            if f.non_empty and isinstance(value, str) and not value.strip():
                self._add(found, path, ViolationKind.EMPTY_STRING, raw, f"field `{dotted(path)}` must not be empty")

        # optional field whose own value could not be coerced: fall back to its default
        if (
            not f.required
            and len(found) == 1
            and found[0].path == path
            and found[0].kind in _SOFT_FAILURES
        ):
            return True, copy.deepcopy(f.default)

        self.violations.extend(found)
        return not found, value

    # ----------------------------
    # kinds
    # ----------------------------
    def coerce(self, kind: Kind, raw: Any, path: Path, depth: int, found: List[Violation]) -> Tuple[bool, Any]:
        if isinstance(kind, StringKind):
            return self._string(raw, path, found)
        if isinstance(kind, NumberKind):
            return self._number(raw, path, found)
        if isinstance(kind, BooleanKind):
            return self._boolean(raw, path, found)
        if isinstance(kind, EnumKind):
            return self._enum(kind, raw, path, found)
        if isinstance(kind, ArrayKind):
            return self._array(kind, raw, path, depth, found)
        if isinstance(kind, ObjectKind):
            return self._object(kind, raw, path, depth, found)
        raise SchemaError(f"unknown field kind {kind!r}")

    def _mismatch(self, expected: str, raw: Any, path: Path, found: List[Violation]) -> Tuple[bool, Any]:
        self._add(
            found, path, ViolationKind.TYPE_MISMATCH, raw,
            f"field `{dotted(path)}` expected {expected}, got {_json_type(raw)}",
        )
        return False, None

    def _string(self, raw: Any, path: Path, found: List[Violation]) -> Tuple[bool, Any]:
        if isinstance(raw, str):
            return True, raw
        if isinstance(raw, bool):
            return True, "true" if raw else "false"
        if isinstance(raw, int):
            try:
                return True, str(raw)
            except ValueError:
                return self._mismatch("string", raw, path, found)
        if isinstance(raw, float) and math.isfinite(raw):
            return True, _fmt_num(raw)
        return self._mismatch("string", raw, path, found)

    def _number(self, raw: Any, path: Path, found: List[Violation]) -> Tuple[bool, Any]:
        if isinstance(raw, bool):
            return self._mismatch("number", raw, path, found)
        if isinstance(raw, int):
            return True, raw
        if isinstance(raw, float) and math.isfinite(raw):
            return True, raw
        if isinstance(raw, str):
            s = raw.strip()
            if _NUMERIC_RE.fullmatch(s):
                if any(c in s for c in ".eE"):
                    x = float(s)
                    if math.isfinite(x):
                        return True, x
                else:
                    try:
                        return True, int(s)
                    except ValueError:
                        pass
        return self._mismatch("number", raw, path, found)

    def _boolean(self, raw: Any, path: Path, found: List[Violation]) -> Tuple[bool, Any]:
        if isinstance(raw, bool):
            return True, raw
        if isinstance(raw, str):
            low = raw.strip().lower()
            if low == "true":
                return True, True
            if low == "false":
                return True, False
        return self._mismatch("boolean", raw, path, found)

    def _enum(self, kind: EnumKind, raw: Any, path: Path, found: List[Violation]) -> Tuple[bool, Any]:
        for v in kind.values:
            if type(raw) is type(v) and raw == v:
                return True, v
        allowed = ", ".join(str(v) for v in kind.values)
        self._add(
            found, path, ViolationKind.NOT_IN_ENUM, raw,
            f"field `{dotted(path)}` must be one of [{allowed}], got {_brief(raw)}",
        )
        return False, None

    def _too_deep(self, path: Path, depth: int, found: List[Violation]) -> bool:
        if depth + 1 <= self.max_depth:
            return False
        self._add(
            found, path, ViolationKind.MAX_DEPTH_EXCEEDED, None,
            f"field `{dotted(path)}` exceeds maximum nesting depth {self.max_depth}",
        )
        return True

    def _array(self, kind: ArrayKind, raw: Any, path: Path, depth: int, found: List[Violation]) -> Tuple[bool, Any]:
        if not isinstance(raw, (list, tuple)):
            return self._mismatch("array", raw, path, found)
        if self._too_deep(path, depth, found):
            return False, None

        items: list = []
        ok = True
        for i, el in enumerate(raw):
            el_ok, el_value = self.coerce(kind.element, el, path + (i,), depth + 1, found)
            if el_ok:
                items.append(el_value)
            else:
                ok = False
        return ok, (items if ok else None)

    def _object(self, kind: ObjectKind, raw: Any, path: Path, depth: int, found: List[Violation]) -> Tuple[bool, Any]:
        if not isinstance(raw, Mapping):
            return self._mismatch("object", raw, path, found)
        if self._too_deep(path, depth, found):
            return False, None

        # record() reports into self.violations; point it at this field's list
        outer = self.violations
        self.violations = found
        try:
            before = len(found)
            value = self.record(raw, kind.schema, path, depth + 1)
            return len(found) == before, value
        finally:
            self.violations = outer
