"""Scalar constraint network solved by gradient descent.

A network owns an append-only arena of *wires* (real values, optionally
pinned) and a list of ternary *constraints* ``a + b == v`` or ``a * b == v``.
Constraints are soft: :meth:`ConstraintNetwork.relax` minimises the total
squared residual ``sum(0.5 * r**2)`` by synchronous batch gradient steps.
Wire handles are plain integers and are never reused, so merging arrows only
rewrites constraint fields and leaves orphaned wires behind.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..errors import ProgrammingContractViolation
from ..logging_utils import apply_debug_logging
from .config import resolve_config
from .model import Constraint, ConstraintKind, SolverConfig, Wire, WireHandle

logger = logging.getLogger(__name__)


class ConstraintNetwork:
    def __init__(self, config: Optional[SolverConfig] = None) -> None:
        self.config = resolve_config(config)
        self._values: List[float] = []
        self._pinned: List[bool] = []
        self._names: List[Optional[str]] = []
        self._constraints: List[Constraint] = []
        self._constants: Dict[float, WireHandle] = {}
        self._gensym_count = 0
        # (kinds_is_mul, a, b, v) index arrays, rebuilt after structural edits
        self._compiled: Optional[Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]] = None

    # ------------------------------------------------------------------
    # Construction

    def create_variable(self, name: Optional[str], initial: float = 0.0) -> WireHandle:
        return self._append_wire(name, float(initial), pinned=False)

    def create_constant(self, value: float, *, dedupe: Optional[bool] = None) -> WireHandle:
        value = float(value)
        if dedupe is None:
            dedupe = self.config.dedupe_constants
        if dedupe:
            existing = self._constants.get(value)
            if existing is not None:
                logger.debug("Reusing constant wire %d for value %r", existing, value)
                return existing
        handle = self._append_wire(None, value, pinned=True)
        self._constants.setdefault(value, handle)
        return handle

    def gensym(self, stem: str, value: float = 0.0) -> WireHandle:
        """Create a free wire with a fresh name ``<stem>_<n>``."""

        name = f"{stem}_{self._gensym_count}"
        self._gensym_count += 1
        return self.create_variable(name, value)

    def add_constraint(self, kind: ConstraintKind, a: WireHandle, b: WireHandle, v: WireHandle) -> Constraint:
        if not isinstance(kind, ConstraintKind):
            raise ProgrammingContractViolation(f"unsupported constraint kind {kind!r}")
        for handle in (a, b, v):
            self._check_handle(handle)
        constraint = Constraint(kind, a, b, v)
        self._constraints.append(constraint)
        self._compiled = None
        return constraint

    def _append_wire(self, name: Optional[str], value: float, *, pinned: bool) -> WireHandle:
        handle = WireHandle(len(self._values))
        self._values.append(value)
        self._pinned.append(pinned)
        self._names.append(name)
        return handle

    def _check_handle(self, handle: WireHandle) -> None:
        if not 0 <= handle < len(self._values):
            raise ProgrammingContractViolation(f"wire handle {handle!r} is not part of this network")

    # ------------------------------------------------------------------
    # Wire access

    @property
    def wire_count(self) -> int:
        return len(self._values)

    @property
    def constraints(self) -> Sequence[Constraint]:
        return tuple(self._constraints)

    @property
    def step_size(self) -> float:
        return self.config.step_size

    def wire(self, handle: WireHandle) -> Wire:
        self._check_handle(handle)
        return Wire(self._values[handle], self._pinned[handle], self._names[handle])

    def value(self, handle: WireHandle) -> float:
        return self._values[handle]

    def set_value(self, handle: WireHandle, value: float) -> None:
        self._values[handle] = float(value)

    def is_pinned(self, handle: WireHandle) -> bool:
        return self._pinned[handle]

    def set_pinned(self, handle: WireHandle, pinned: bool) -> None:
        self._pinned[handle] = bool(pinned)

    def values(self) -> np.ndarray:
        return np.asarray(self._values, dtype=float)

    # ------------------------------------------------------------------
    # Solving

    def _compile(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        if self._compiled is None:
            count = len(self._constraints)
            is_mul = np.empty(count, dtype=bool)
            a = np.empty(count, dtype=np.intp)
            b = np.empty(count, dtype=np.intp)
            v = np.empty(count, dtype=np.intp)
            for idx, constraint in enumerate(self._constraints):
                if constraint.kind is ConstraintKind.MULTIPLY:
                    is_mul[idx] = True
                elif constraint.kind is ConstraintKind.ADD:
                    is_mul[idx] = False
                else:  # pragma: no cover - guarded in add_constraint
                    raise ProgrammingContractViolation(f"unsupported constraint kind {constraint.kind!r}")
                a[idx] = constraint.a
                b[idx] = constraint.b
                v[idx] = constraint.v
            self._compiled = (is_mul, a, b, v)
        return self._compiled

    @staticmethod
    def _residuals(values: np.ndarray, compiled) -> np.ndarray:
        is_mul, a, b, v = compiled
        av = values[a]
        bv = values[b]
        return np.where(is_mul, av * bv, av + bv) - values[v]

    def residuals(self) -> np.ndarray:
        """Return ``f(a, b) - v`` for every constraint, in insertion order."""

        return self._residuals(self.values(), self._compile())

    def gradient(self, values: Optional[np.ndarray] = None) -> np.ndarray:
        """Partial derivatives of the total error with respect to every wire.

        Pinned wires get their gradient computed like any other; :meth:`relax`
        simply never applies it.
        """

        if values is None:
            values = self.values()
        compiled = self._compile()
        is_mul, a, b, v = compiled
        size = values.shape[0]
        if is_mul.size == 0:
            return np.zeros(size, dtype=float)
        r = self._residuals(values, compiled)
        grad_a = np.where(is_mul, r * values[b], r)
        grad_b = np.where(is_mul, r * values[a], r)
        return (
            np.bincount(a, weights=grad_a, minlength=size)
            + np.bincount(b, weights=grad_b, minlength=size)
            - np.bincount(v, weights=r, minlength=size)
        )

    def relax(self, steps: int) -> None:
        """Run ``steps`` synchronous gradient-descent steps over all free wires."""

        if steps <= 0 or not self._constraints:
            return
        values = self.values()
        free = ~np.asarray(self._pinned, dtype=bool)
        rate = self.config.step_size * free
        for _ in range(int(steps)):
            values -= rate * self.gradient(values)
        self._values = values.tolist()
        logger.debug("Relaxed %d steps; total error %.6g", steps, self.total_error())

    def total_error(self) -> float:
        if not self._constraints:
            return 0.0
        r = self.residuals()
        return float(0.5 * np.dot(r, r))

    # ------------------------------------------------------------------
    # Unification

    def substitute_wires(self, mapping: Mapping[WireHandle, WireHandle]) -> int:
        """Rewrite constraint fields per ``mapping``; return how many fields changed."""

        if not mapping:
            return 0
        for target in mapping.values():
            self._check_handle(target)
        changed = 0
        for constraint in self._constraints:
            for field_name in ("a", "b", "v"):
                current = getattr(constraint, field_name)
                replacement = mapping.get(current)
                if replacement is not None and replacement != current:
                    setattr(constraint, field_name, replacement)
                    changed += 1
        self._compiled = None
        logger.debug("Substituted %d wire reference(s) using %d mapping(s)", changed, len(mapping))
        return changed

    def describe(self, constraint: Constraint) -> str:
        def _name(handle: WireHandle) -> str:
            name = self._names[handle]
            return name if name else f"{self._values[handle]:.6g}"

        return f"{_name(constraint.a)} {constraint.kind.symbol} {_name(constraint.b)} = {_name(constraint.v)}"


apply_debug_logging(
    globals(),
    logger=logger,
    skip={
        "ConstraintNetwork.value",
        "ConstraintNetwork.set_value",
        "ConstraintNetwork.is_pinned",
        "ConstraintNetwork.set_pinned",
        "ConstraintNetwork.values",
        "ConstraintNetwork.gradient",
        "ConstraintNetwork.residuals",
        "ConstraintNetwork.describe",
    },
)
