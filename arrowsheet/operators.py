"""Per-kind behaviour of arrows.

Each :class:`ArrowKind` maps to one :class:`Operator` in :data:`OPERATORS`.
The quiver never branches on the kind itself; it asks the operator to label
an arrow, compute its position from its operands, bind it into the
constraint network, describe its provenance and build inverses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from .arrows import Arrow, ArrowKind, DerivedSpec, InverseCandidate, VariableSpec
from .errors import ProgrammingContractViolation
from .evaluate import spiral_arc
from .labels import constant_label, negation_label, reciprocal_label
from .solver.model import ComplexHandle, ConstraintKind

if TYPE_CHECKING:  # pragma: no cover
    from .quiver import Quiver

logger = logging.getLogger(__name__)

Polyline = List[complex]


def _operands(arrow: Arrow):
    if arrow.operands is None:
        raise ProgrammingContractViolation(f"{arrow.kind.name.lower()} arrow #{arrow.id} has no operands")
    a, b = arrow.operands
    return a.representative(), b.representative()


class Operator:
    kind: ArrowKind
    operation: Optional[ConstraintKind] = None

    def label(self, quiver: "Quiver", arrow: Arrow) -> Optional[str]:
        raise NotImplementedError

    def recompute(self, arrow: Arrow) -> complex:
        """Return the arrow's position as a function of its operands' positions."""

        return arrow.position

    def make_constraint(self, quiver: "Quiver", arrow: Arrow) -> ComplexHandle:
        raise NotImplementedError

    def provenance(self, arrow: Arrow, at: Optional[complex] = None) -> List[Polyline]:
        return []

    def inverse(self, position: complex) -> Optional[complex]:
        return None

    def materialize_inverse(self, quiver: "Quiver", candidate: InverseCandidate) -> Arrow:
        raise ProgrammingContractViolation(f"{self.kind.name.lower()} arrows have no inverse")


class ConstantOperator(Operator):
    kind = ArrowKind.CONSTANT

    def label(self, quiver: "Quiver", arrow: Arrow) -> Optional[str]:
        return constant_label(arrow.position)

    def make_constraint(self, quiver: "Quiver", arrow: Arrow) -> ComplexHandle:
        return quiver.binding.bind_constant(arrow.position)


class VariableOperator(Operator):
    kind = ArrowKind.VARIABLE

    def label(self, quiver: "Quiver", arrow: Arrow) -> Optional[str]:
        return quiver.name_next_variable()

    def make_constraint(self, quiver: "Quiver", arrow: Arrow) -> ComplexHandle:
        return quiver.binding.bind_variable(arrow.label or f"v{arrow.id}", arrow.position)


class SumOperator(Operator):
    kind = ArrowKind.SUM
    operation = ConstraintKind.ADD

    def label(self, quiver: "Quiver", arrow: Arrow) -> Optional[str]:
        a, b = _operands(arrow)
        return quiver.labels.sum_label(arrow.id, a, b)

    def recompute(self, arrow: Arrow) -> complex:
        a, b = _operands(arrow)
        return a.position + b.position

    def make_constraint(self, quiver: "Quiver", arrow: Arrow) -> ComplexHandle:
        a, b = _operands(arrow)
        handle = quiver.binding.bind_result("+", self.recompute(arrow))
        quiver.binding.compile_add(a.handle, b.handle, handle)
        return handle

    def provenance(self, arrow: Arrow, at: Optional[complex] = None) -> List[Polyline]:
        a, b = _operands(arrow)
        tip = arrow.position if at is None else at
        return [[a.position, tip], [b.position, tip]]

    def inverse(self, position: complex) -> Optional[complex]:
        return -position

    def materialize_inverse(self, quiver: "Quiver", candidate: InverseCandidate) -> Arrow:
        inverse = quiver.add(VariableSpec(candidate.position, label=negation_label(candidate.source)))
        total = quiver.add(DerivedSpec(ConstraintKind.ADD, candidate.source, inverse, labelled=False))
        quiver.merge([total, quiver.zero])
        logger.info("Materialized additive inverse %r of %r", inverse.label, candidate.source.label)
        return inverse


class ProductOperator(Operator):
    kind = ArrowKind.PRODUCT
    operation = ConstraintKind.MULTIPLY

    def label(self, quiver: "Quiver", arrow: Arrow) -> Optional[str]:
        a, b = _operands(arrow)
        return quiver.labels.product_label(arrow.id, a, b)

    def recompute(self, arrow: Arrow) -> complex:
        a, b = _operands(arrow)
        return a.position * b.position

    def make_constraint(self, quiver: "Quiver", arrow: Arrow) -> ComplexHandle:
        a, b = _operands(arrow)
        handle = quiver.binding.bind_result("*", self.recompute(arrow))
        quiver.binding.compile_multiply(a.handle, b.handle, handle)
        return handle

    def provenance(self, arrow: Arrow, at: Optional[complex] = None) -> List[Polyline]:
        a, b = _operands(arrow)
        tip = arrow.position if at is None else at
        return [spiral_arc(a.position, b.position, tip)]

    def inverse(self, position: complex) -> Optional[complex]:
        if position == 0:
            return None
        return 1 / position

    def materialize_inverse(self, quiver: "Quiver", candidate: InverseCandidate) -> Arrow:
        if candidate.source.position == 0:
            raise ProgrammingContractViolation(
                f"arrow {candidate.source.label!r} sits at zero and has no multiplicative inverse"
            )
        inverse = quiver.add(VariableSpec(candidate.position, label=reciprocal_label(candidate.source)))
        product = quiver.add(DerivedSpec(ConstraintKind.MULTIPLY, candidate.source, inverse, labelled=False))
        quiver.merge([product, quiver.one])
        logger.info("Materialized reciprocal %r of %r", inverse.label, candidate.source.label)
        return inverse


OPERATORS: Dict[ArrowKind, Operator] = {
    ArrowKind.CONSTANT: ConstantOperator(),
    ArrowKind.VARIABLE: VariableOperator(),
    ArrowKind.SUM: SumOperator(),
    ArrowKind.PRODUCT: ProductOperator(),
}


def operator_for(operation: ConstraintKind) -> Operator:
    if not isinstance(operation, ConstraintKind):
        raise ProgrammingContractViolation(f"unsupported operation {operation!r}")
    return OPERATORS[ArrowKind.for_operation(operation)]


__all__ = [
    "ConstantOperator",
    "OPERATORS",
    "Operator",
    "ProductOperator",
    "SumOperator",
    "VariableOperator",
    "operator_for",
]
