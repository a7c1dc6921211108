"""Arrow data structures: complex-valued nodes of a quiver."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .solver.model import ComplexHandle, ConstraintKind


class ArrowKind(enum.Enum):
    CONSTANT = "constant"
    VARIABLE = "variable"
    SUM = "sum"
    PRODUCT = "product"

    @classmethod
    def for_operation(cls, operation: ConstraintKind) -> "ArrowKind":
        return cls.SUM if operation is ConstraintKind.ADD else cls.PRODUCT

    @property
    def operation(self) -> Optional[ConstraintKind]:
        if self is ArrowKind.SUM:
            return ConstraintKind.ADD
        if self is ArrowKind.PRODUCT:
            return ConstraintKind.MULTIPLY
        return None

    @property
    def is_leaf(self) -> bool:
        return self in (ArrowKind.CONSTANT, ArrowKind.VARIABLE)


@dataclass(eq=False)
class Arrow:
    """A user-visible complex quantity backed by two wires.

    ``position`` is a cache of the wire values, refreshed by
    :meth:`Quiver.relax_and_sync` and by drags. Arrows compare by identity.
    """

    id: int
    kind: ArrowKind
    position: complex
    label: Optional[str] = None
    operands: Optional[Tuple["Arrow", "Arrow"]] = field(default=None, repr=False)
    handle: Optional[ComplexHandle] = None
    stay_pinned: bool = False
    merged_into: Optional["Arrow"] = field(default=None, repr=False)
    aliases: List["Arrow"] = field(default_factory=list, repr=False)

    @property
    def merged(self) -> bool:
        return self.merged_into is not None

    def representative(self) -> "Arrow":
        arrow = self
        while arrow.merged_into is not None:
            arrow = arrow.merged_into
        return arrow


@dataclass(frozen=True)
class ConstantSpec:
    value: complex
    label: Optional[str] = None


@dataclass(frozen=True)
class VariableSpec:
    position: complex
    label: Optional[str] = None


@dataclass(frozen=True)
class DerivedSpec:
    """``operation`` applied to two existing arrows.

    ``labelled=False`` creates an arrow with no label at all, used for the
    helper arrows that :meth:`Quiver.materialize_inverse` merges away.
    """

    operation: ConstraintKind
    a: Arrow
    b: Arrow
    label: Optional[str] = None
    labelled: bool = True


ArrowSpec = Union[ConstantSpec, VariableSpec, DerivedSpec]


@dataclass(frozen=True)
class InverseCandidate:
    """Where the inverse of ``source`` under ``operation`` would sit."""

    source: Arrow
    operation: ConstraintKind
    position: complex


@dataclass(frozen=True)
class QuiverEvent:
    tag: str
    arrow: Optional[Arrow] = None


__all__ = [
    "Arrow",
    "ArrowKind",
    "ArrowSpec",
    "ConstantSpec",
    "DerivedSpec",
    "InverseCandidate",
    "QuiverEvent",
    "VariableSpec",
]
