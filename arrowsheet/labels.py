"""Display labels for arrows.

Labels are cosmetic. The solver never reads them; the only state kept here
is a side-table remembering that an arrow's label was collapsed from a
coefficient or a power of some base arrow, so that ``(2a) + a`` reads as
``3a`` and ``(a^2) * a`` as ``a^3``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Protocol


class Labelled(Protocol):
    id: int
    label: Optional[str]


@dataclass(frozen=True)
class LabelOrigin:
    base_id: int
    coeff: Optional[float] = None
    power: Optional[int] = None


def format_real(x: float) -> str:
    if math.isfinite(x) and float(x).is_integer() and abs(x) < 1e16:
        return str(int(x))
    return repr(float(x))


def _format_imag(im: float) -> str:
    if im == 1:
        return "i"
    if im == -1:
        return "-i"
    return format_real(im) + "i"


def constant_label(value: complex) -> str:
    value = complex(value)
    if value.imag == 0:
        return format_real(value.real)
    if value.real == 0:
        return _format_imag(value.imag)
    imag = _format_imag(value.imag)
    sign = "" if imag.startswith("-") else "+"
    return format_real(value.real) + sign + imag


def parenthesize(label: Optional[str]) -> str:
    if label is None:
        return "(?)"
    return label if len(label) == 1 else f"({label})"


def as_number(label: Optional[str]) -> Optional[float]:
    """Return the real number a label spells, or ``None``."""

    if not label:
        return None
    try:
        value = float(label)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def variable_name(index: int) -> str:
    """``a``, ``b``, ... ``z``, then ``a1``, ``b1``, ..."""

    letter = chr(ord("a") + index % 26)
    return letter if index < 26 else f"{letter}{index // 26}"


def negation_label(source: Labelled) -> str:
    return "-" + parenthesize(source.label)


def reciprocal_label(source: Labelled) -> str:
    return "1/" + parenthesize(source.label)


class LabelBook:
    """Side-table of label provenance keyed by arrow id."""

    def __init__(self) -> None:
        self._origins: Dict[int, LabelOrigin] = {}

    def origin(self, arrow_id: int) -> Optional[LabelOrigin]:
        return self._origins.get(arrow_id)

    def sum_label(self, arrow_id: int, a: Labelled, b: Labelled) -> str:
        na, nb = as_number(a.label), as_number(b.label)
        if na is not None and nb is not None:
            return format_real(na + nb)
        if a is b:
            self._origins[arrow_id] = LabelOrigin(base_id=a.id, coeff=2)
            return "2" + parenthesize(a.label)
        prior = self._origins.get(a.id)
        if prior is not None and prior.coeff is not None and prior.base_id == b.id:
            coeff = prior.coeff + 1
            self._origins[arrow_id] = LabelOrigin(base_id=b.id, coeff=coeff)
            return format_real(coeff) + parenthesize(b.label)
        return parenthesize(a.label) + "+" + parenthesize(b.label)

    def product_label(self, arrow_id: int, a: Labelled, b: Labelled) -> str:
        na, nb = as_number(a.label), as_number(b.label)
        if na is not None and nb is not None:
            return format_real(na * nb)
        if na is not None:
            self._origins[arrow_id] = LabelOrigin(base_id=b.id, coeff=na)
            return format_real(na) + parenthesize(b.label)
        if a is b:
            self._origins[arrow_id] = LabelOrigin(base_id=a.id, power=2)
            return parenthesize(a.label) + "^2"
        prior = self._origins.get(a.id)
        if prior is not None and prior.power is not None and prior.base_id == b.id:
            power = prior.power + 1
            self._origins[arrow_id] = LabelOrigin(base_id=b.id, power=power)
            return parenthesize(b.label) + f"^{power}"
        return parenthesize(a.label) + parenthesize(b.label)


__all__ = [
    "LabelBook",
    "LabelOrigin",
    "as_number",
    "constant_label",
    "format_real",
    "negation_label",
    "parenthesize",
    "reciprocal_label",
    "variable_name",
]
