"""Complex quantities as pairs of wires."""

from __future__ import annotations

import logging
from typing import Dict

from ..errors import ProgrammingContractViolation
from .model import ComplexHandle, ConstraintKind, WireHandle
from .network import ConstraintNetwork

logger = logging.getLogger(__name__)


class ComplexBinding:
    """Compile complex arithmetic into real constraints on a :class:`ConstraintNetwork`."""

    def __init__(self, network: ConstraintNetwork) -> None:
        self.network = network
        self._constants: Dict[complex, ComplexHandle] = {}

    def bind_variable(self, name: str, initial: complex = 0j) -> ComplexHandle:
        initial = complex(initial)
        return ComplexHandle(
            self.network.create_variable(f"{name}.x", initial.real),
            self.network.create_variable(f"{name}.y", initial.imag),
        )

    def bind_constant(self, value: complex) -> ComplexHandle:
        """Pin a pair of wires at ``value``.

        With ``dedupe_constants`` the pair is shared by equal complex values
        only; the real and imaginary parts never share a wire with another
        constant's other part.
        """

        value = complex(value)
        dedupe = self.network.config.dedupe_constants
        if dedupe and value in self._constants:
            return self._constants[value]
        handle = ComplexHandle(
            self.network.create_constant(value.real, dedupe=False),
            self.network.create_constant(value.imag, dedupe=False),
        )
        if dedupe:
            self._constants[value] = handle
        return handle

    def bind_result(self, stem: str, initial: complex = 0j) -> ComplexHandle:
        """Allocate a free, uniquely named pair for the value of a derived arrow."""

        initial = complex(initial)
        return ComplexHandle(
            self.network.gensym(f"{stem}x", initial.real),
            self.network.gensym(f"{stem}y", initial.imag),
        )

    def compile_add(self, a: ComplexHandle, b: ComplexHandle, v: ComplexHandle) -> None:
        self.network.add_constraint(ConstraintKind.ADD, a.re, b.re, v.re)
        self.network.add_constraint(ConstraintKind.ADD, a.im, b.im, v.im)

    def compile_multiply(self, a: ComplexHandle, b: ComplexHandle, v: ComplexHandle) -> None:
        """Constrain ``v == a * b``.

        With ``x1 = a.re*b.re``, ``x2 = a.im*b.im``, ``y1 = a.im*b.re`` and
        ``y2 = a.re*b.im`` the product is ``(x1 - x2) + (y1 + y2)i``. Each
        auxiliary starts at its current true value so relaxation begins at a
        consistent point.
        """

        net = self.network
        a_re, a_im = net.value(a.re), net.value(a.im)
        b_re, b_im = net.value(b.re), net.value(b.im)
        x1 = net.gensym("x1", a_re * b_re)
        x2 = net.gensym("x2", a_im * b_im)
        y1 = net.gensym("y1", a_im * b_re)
        y2 = net.gensym("y2", a_re * b_im)
        net.add_constraint(ConstraintKind.MULTIPLY, a.re, b.re, x1)
        net.add_constraint(ConstraintKind.MULTIPLY, a.im, b.im, x2)
        net.add_constraint(ConstraintKind.ADD, v.re, x2, x1)
        net.add_constraint(ConstraintKind.MULTIPLY, a.im, b.re, y1)
        net.add_constraint(ConstraintKind.MULTIPLY, a.re, b.im, y2)
        net.add_constraint(ConstraintKind.ADD, y1, y2, v.im)
        logger.debug("Compiled complex product %s * %s -> %s via wires %s", a, b, v, (x1, x2, y1, y2))

    def compile(self, kind: ConstraintKind, a: ComplexHandle, b: ComplexHandle, v: ComplexHandle) -> None:
        if kind is ConstraintKind.ADD:
            self.compile_add(a, b, v)
        elif kind is ConstraintKind.MULTIPLY:
            self.compile_multiply(a, b, v)
        else:
            raise ProgrammingContractViolation(f"unsupported constraint kind {kind!r}")

    def read(self, handle: ComplexHandle) -> complex:
        return complex(self.network.value(handle.re), self.network.value(handle.im))

    def write(self, handle: ComplexHandle, value: complex) -> None:
        value = complex(value)
        self.network.set_value(handle.re, value.real)
        self.network.set_value(handle.im, value.imag)

    def pin(self, handle: ComplexHandle, on: bool) -> None:
        self.network.set_pinned(handle.re, on)
        self.network.set_pinned(handle.im, on)

    def is_pinned(self, handle: ComplexHandle) -> bool:
        return self.network.is_pinned(handle.re) and self.network.is_pinned(handle.im)

    @staticmethod
    def substitution(old: ComplexHandle, new: ComplexHandle) -> Dict[WireHandle, WireHandle]:
        return {old.re: new.re, old.im: new.im}
