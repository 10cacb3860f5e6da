from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Tuple, Union

from pydantic import BaseModel, ConfigDict

PathSegment = Union[str, int]


def dotted(path: Tuple[PathSegment, ...]) -> str:
    """Render a path as ``sources[0].uri``."""
    out = ""
    for seg in path:
        if isinstance(seg, int):
            out += f"[{seg}]"
        else:
            out += f".{seg}" if out else seg
    return out or "<root>"


class ViolationKind(str, Enum):
    MISSING_REQUIRED = "MissingRequired"
    TYPE_MISMATCH = "TypeMismatch"
    OUT_OF_RANGE = "OutOfRange"
    NOT_IN_ENUM = "NotInEnum"
    EMPTY_STRING = "EmptyString"
    MAX_DEPTH_EXCEEDED = "MaxDepthExceeded"


class Violation(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Tuple[PathSegment, ...]
    kind: ViolationKind
    received: Any = None
    message: str

    @property
    def dotted_path(self) -> str:
        return dotted(self.path)


@dataclass(frozen=True)
class Normalized:
    """Successful result: every schema field present with a concrete value."""

    value: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ViolationList:
    """Failed result: the complete, ordered account of what failed and where."""

    violations: Tuple[Violation, ...]

    def __post_init__(self) -> None:
        if not self.violations:
            raise ValueError("ViolationList needs at least one violation")

    @property
    def ok(self) -> bool:
        return False

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)

    def __len__(self) -> int:
        return len(self.violations)

    def __getitem__(self, idx: int) -> Violation:
        return self.violations[idx]

    def kinds(self) -> List[ViolationKind]:
        return [v.kind for v in self.violations]

    def paths(self) -> List[Tuple[PathSegment, ...]]:
        return [v.path for v in self.violations]

    def summary(self) -> List[str]:
        return [v.message for v in self.violations]


ValidationResult = Union[Normalized, ViolationList]
