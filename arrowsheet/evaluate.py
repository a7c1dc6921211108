"""Evaluate arrows as functions of one another.

:func:`as_function` turns the operand DAG between an input arrow and an
output arrow into a plain callable, so a view can plot the output as a
field over the input. Only the DAG is used; the constraint network is not
consulted.
"""

from __future__ import annotations

import cmath
import logging
from typing import Any, Callable, Dict, List, Tuple

import numpy as np

from .arrows import Arrow, ArrowKind
from .errors import ProgrammingContractViolation

logger = logging.getLogger(__name__)

_INPUT = "input"
_LEAF = "leaf"


def as_function(input_arrow: Arrow, output_arrow: Arrow) -> Callable[[Any], Any]:
    """Return ``f`` with ``f(z)`` the value of ``output_arrow`` when ``input_arrow`` is ``z``.

    Every other leaf is frozen at its current position. ``z`` may be a
    numpy array of complex values, in which case ``f`` works elementwise.
    """

    if not input_arrow.kind.is_leaf:
        raise ProgrammingContractViolation(
            f"input arrow must be a constant or variable, got {input_arrow.kind.name.lower()}"
        )
    source = input_arrow.representative()
    program: List[Tuple[str, Any, Any]] = []
    slots: Dict[int, int] = {}

    def emit(arrow: Arrow) -> int:
        slot = slots.get(arrow.id)
        if slot is not None:
            return slot
        if arrow.representative() is source:
            step: Tuple[str, Any, Any] = (_INPUT, None, None)
        elif arrow.operands is not None:
            a, b = arrow.operands
            step = (arrow.kind.value, emit(a), emit(b))
        else:
            step = (_LEAF, arrow.representative().position, None)
        slots[arrow.id] = len(program)
        program.append(step)
        return slots[arrow.id]

    out = emit(output_arrow)
    logger.debug("Compiled %d-step evaluator for %r", len(program), output_arrow.label)

    def evaluate(z: Any) -> Any:
        registers: List[Any] = []
        for op, x, y in program:
            if op == _INPUT:
                registers.append(z)
            elif op == _LEAF:
                registers.append(x)
            elif op == ArrowKind.SUM.value:
                registers.append(registers[x] + registers[y])
            else:
                registers.append(registers[x] * registers[y])
        return registers[out]

    return evaluate


def sample_field(
    f: Callable[[Any], Any],
    re_range: Tuple[float, float] = (-4.0, 4.0),
    im_range: Tuple[float, float] = (-4.0, 4.0),
    spacing: float = 0.5,
) -> Tuple[np.ndarray, np.ndarray]:
    """Evaluate ``f`` on a regular grid; return ``(grid, values)`` as complex arrays."""

    if spacing <= 0:
        raise ValueError("spacing must be positive")
    xs = np.arange(re_range[0], re_range[1] + spacing / 2, spacing)
    ys = np.arange(im_range[0], im_range[1] + spacing / 2, spacing)
    grid_x, grid_y = np.meshgrid(xs, ys)
    grid = grid_x + 1j * grid_y
    values = np.broadcast_to(np.asarray(f(grid), dtype=complex), grid.shape)
    return grid, values


def spiral_arc(u: complex, v: complex, uv: complex) -> List[complex]:
    """Points along a logarithmic spiral from ``u`` to ``uv`` (ideally ``u * v``).

    The spiral takes sixteen equal steps of ``v ** (1/16)``; the last point is
    ``uv`` itself so the arc always ends on the product as drawn.
    """

    step = complex(v)
    for _ in range(4):
        step = cmath.sqrt(step)
    points: List[complex] = []
    factor = 1 + 0j
    for _ in range(16):
        points.append(u * factor)
        factor *= step
    points.append(complex(uv))
    return points


__all__ = ["as_function", "sample_field", "spiral_arc"]
