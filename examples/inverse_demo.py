"""Example: build a small diagram, synthesize inverses and watch them follow a drag."""

from arrowsheet import DerivedSpec, DragSession, Quiver, VariableSpec
from arrowsheet.logging_utils import format_complex
from arrowsheet.solver import ConstraintKind


def main() -> None:
    quiver = Quiver.with_anchors()
    a = quiver.add(VariableSpec(1 + 1j))
    b = quiver.add(VariableSpec(2 - 0.5j))
    quiver.add(DerivedSpec(ConstraintKind.MULTIPLY, a, b))

    for operation in (ConstraintKind.ADD, ConstraintKind.MULTIPLY):
        candidate = next(c for c in quiver.compute_inverse_candidates(operation) if c.source is a)
        quiver.materialize_inverse(candidate)

    with DragSession(quiver, a) as drag:
        drag.move_to(0.5 + 2j)
        report = quiver.settle()

    print(f"Settled in {report.rounds} round(s), error {report.total_error:.3e}")
    for arrow in quiver:
        print(f"{arrow.label:>12}  {format_complex(arrow.position, digits=4)}")


if __name__ == "__main__":
    main()
