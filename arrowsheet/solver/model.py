"""Core data structures for the constraint network."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NamedTuple, NewType, Optional

WireHandle = NewType("WireHandle", int)


class ConstraintKind(enum.Enum):
    """Binary operator combining the first two wires of a constraint."""

    ADD = "+"
    MULTIPLY = "*"

    @property
    def symbol(self) -> str:
        return self.value


@dataclass(frozen=True)
class Wire:
    """Snapshot of one scalar node of the network."""

    value: float
    pinned: bool
    name: Optional[str] = None


@dataclass
class Constraint:
    """Soft equality ``a <kind> b == v`` between three wires."""

    kind: ConstraintKind
    a: WireHandle
    b: WireHandle
    v: WireHandle

    def references(self, handle: WireHandle) -> bool:
        return handle in (self.a, self.b, self.v)


class ComplexHandle(NamedTuple):
    """Pair of wires holding the real and imaginary part of a complex value."""

    re: WireHandle
    im: WireHandle


@dataclass
class SolverConfig:
    """Tunables shared by the network, the quiver and the drivers."""

    step_size: float = 0.01
    dedupe_constants: bool = False
    convergence_threshold: float = 1e-5
    relax_steps: int = 2000
    max_rounds: int = 50
    merge_tolerance: float = 0.1
    transitive_coincidences: bool = False


@dataclass
class SettleReport:
    """Outcome of driving relaxation until the error drops below a threshold."""

    rounds: int
    steps: int
    total_error: float
    converged: bool


__all__ = [
    "ComplexHandle",
    "Constraint",
    "ConstraintKind",
    "SettleReport",
    "SolverConfig",
    "Wire",
    "WireHandle",
]
