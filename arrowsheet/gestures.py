"""Model-side halves of the interactive gestures: dragging and operating.

Pointer decoding and drawing belong to the view; these helpers only decide
what gets pinned, moved, created and merged.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, TypeVar

from .arrows import Arrow, ArrowKind, DerivedSpec
from .errors import ProgrammingContractViolation
from .quiver import Quiver
from .solver.model import ConstraintKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DragSession:
    """Pins for the duration of one drag of ``arrow``.

    Dragging a variable while nothing constrains any result pins every
    variable, so results simply follow. Otherwise the other variables are
    released and only the dragged arrow is held, letting relaxation move the
    rest to keep merged and sticky-pinned results satisfied.
    """

    def __init__(self, quiver: Quiver, arrow: Arrow) -> None:
        if arrow.kind is ArrowKind.CONSTANT:
            raise ProgrammingContractViolation(f"constant {arrow.label!r} cannot be dragged")
        self.quiver = quiver
        self.arrow = arrow.representative()
        self.start = self.arrow.position
        self.pin_everything = self.arrow.kind is ArrowKind.VARIABLE and not quiver.has_constrained_result()
        self.active = True
        quiver.pin_variables(self.pin_everything)
        if not self.pin_everything:
            quiver.pin(self.arrow, True)
        logger.debug("Drag of %r started (pin_everything=%s)", self.arrow.label, self.pin_everything)

    def move_by(self, offset: complex) -> None:
        self.move_to(self.start + offset)

    def move_to(self, position: complex) -> None:
        if not self.active:
            raise ProgrammingContractViolation("drag session already ended")
        self.quiver.move(self.arrow, position)

    def end(self) -> None:
        if not self.active:
            return
        self.active = False
        self.quiver.pin_variables(not self.pin_everything)
        if not self.pin_everything and not self.arrow.stay_pinned:
            self.quiver.pin(self.arrow, False)
        logger.debug("Drag of %r ended at %s", self.arrow.label, self.arrow.position)

    def __enter__(self) -> "DragSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.end()


def pick_target(at: complex, candidates: Iterable[T], radius: float) -> Optional[T]:
    """Return the candidate whose ``position`` is closest to ``at`` and within ``radius``."""

    best: Optional[T] = None
    best_distance = radius
    for candidate in candidates:
        distance = abs(at - candidate.position)  # type: ignore[attr-defined]
        if distance <= best_distance and (best is None or distance < best_distance):
            best = candidate
            best_distance = distance
    return best


def operate(
    quiver: Quiver,
    operation: ConstraintKind,
    selection: Sequence[Arrow],
    at: complex,
    radius: float,
) -> List[Arrow]:
    """Apply ``operation`` to each selected arrow and the arrow dropped on at ``at``.

    If no arrow is near ``at`` but an inverse candidate is, the inverse is
    materialized first and used as the second operand. Returns the new
    arrows (empty when nothing was hit).
    """

    target = pick_target(at, quiver.arrows, radius)
    if target is None:
        candidate = pick_target(at, quiver.compute_inverse_candidates(operation), radius)
        if candidate is None:
            logger.debug("Nothing to %s near %s", operation.name.lower(), at)
            return []
        target = quiver.materialize_inverse(candidate)
    results = [quiver.add(DerivedSpec(operation, argument, target)) for argument in selection]
    quiver.pin_variables(True)
    return results


__all__ = ["DragSession", "operate", "pick_target"]
