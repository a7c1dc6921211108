"""A quiver: the active collection of arrows and the operations keeping it consistent.

Arrows are complex quantities. Constants and variables are leaves; sums and
products depend on two earlier arrows. Every arrow is bound to two wires of
one :class:`ConstraintNetwork`, so that relaxing the network moves arrows
towards a state where every sum and product holds. Merging identifies
arrows by rewriting constraint references, which is also how inverses are
synthesized: ``a + x`` merged with the zero arrow forces ``x == -a``.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .arrows import (
    Arrow,
    ArrowKind,
    ArrowSpec,
    ConstantSpec,
    DerivedSpec,
    InverseCandidate,
    QuiverEvent,
    VariableSpec,
)
from .coincidence import scan_clusters, transitive_clusters
from .errors import ProgrammingContractViolation
from .labels import LabelBook, variable_name
from .operators import OPERATORS, Operator, operator_for
from .solver.binding import ComplexBinding
from .solver.model import ConstraintKind, SettleReport, SolverConfig, WireHandle
from .solver.network import ConstraintNetwork

logger = logging.getLogger(__name__)

Watcher = Callable[[QuiverEvent], None]

_IDENTITY_VALUES = {ConstraintKind.ADD: 0j, ConstraintKind.MULTIPLY: 1 + 0j}


class Quiver:
    def __init__(
        self,
        network: Optional[ConstraintNetwork] = None,
        *,
        config: Optional[SolverConfig] = None,
    ) -> None:
        if network is None:
            network = ConstraintNetwork(config)
        elif config is not None and config is not network.config:
            raise ProgrammingContractViolation("pass either a network or a config, not both")
        self.config = network.config
        self.network = network
        self.binding = ComplexBinding(network)
        self.labels = LabelBook()
        self._arrows: List[Arrow] = []
        self._by_id: Dict[int, Arrow] = {}
        self._identities: Dict[ConstraintKind, Arrow] = {}
        self._watchers: List[Watcher] = []
        self._next_id = 0

    @classmethod
    def with_anchors(cls, config: Optional[SolverConfig] = None) -> "Quiver":
        """Return a quiver holding the constants ``0``, ``1`` and ``-1``."""

        quiver = cls(config=config)
        quiver.identity(ConstraintKind.ADD)
        quiver.identity(ConstraintKind.MULTIPLY)
        quiver.add(ConstantSpec(-1 + 0j))
        return quiver

    # ------------------------------------------------------------------
    # Read access

    @property
    def arrows(self) -> Tuple[Arrow, ...]:
        return tuple(self._arrows)

    def __len__(self) -> int:
        return len(self._arrows)

    def __iter__(self):
        return iter(tuple(self._arrows))

    def is_empty(self) -> bool:
        return not self._arrows

    def get(self, arrow_id: int) -> Arrow:
        return self._by_id[arrow_id]

    def free_arrows(self) -> List[Arrow]:
        return [arrow for arrow in self._arrows if arrow.kind is not ArrowKind.CONSTANT]

    def independent_variable(self) -> Optional[Arrow]:
        for arrow in self._arrows:
            if arrow.kind is ArrowKind.VARIABLE:
                return arrow
        return None

    def find_label(self, label: str) -> Optional[Arrow]:
        for arrow in self._arrows:
            if arrow.label == label:
                return arrow
        return None

    def label(self, arrow: Arrow) -> Optional[str]:
        return arrow.label

    def position(self, arrow: Arrow) -> complex:
        return arrow.position

    def is_pinned(self, arrow: Arrow) -> bool:
        return self.binding.is_pinned(self._handle(arrow.representative()))

    def total_error(self) -> float:
        return self.network.total_error()

    def name_next_variable(self) -> str:
        used = {arrow.label for arrow in self._arrows}
        index = sum(1 for arrow in self._arrows if arrow.kind is ArrowKind.VARIABLE)
        while variable_name(index) in used:
            index += 1
        return variable_name(index)

    def has_constrained_result(self) -> bool:
        """True if some merge or sticky pin constrains a result beyond its definition."""

        for arrow in self._arrows:
            if arrow.aliases or (arrow.kind is not ArrowKind.VARIABLE and arrow.stay_pinned):
                return True
        return False

    # ------------------------------------------------------------------
    # Watchers

    def add_watcher(self, watcher: Watcher) -> None:
        self._watchers.append(watcher)

    def _notify(self, tag: str, arrow: Optional[Arrow] = None) -> None:
        event = QuiverEvent(tag, arrow)
        for watcher in list(self._watchers):
            watcher(event)

    # ------------------------------------------------------------------
    # Building

    def add(self, spec: ArrowSpec) -> Arrow:
        """Create an arrow from ``spec``, bind it to the network and activate it.

        Derived arrows start at the value computed from their operands, so a
        new arrow never adds residual error by itself.
        """

        arrow_id = self._next_id
        if isinstance(spec, ConstantSpec):
            arrow = Arrow(arrow_id, ArrowKind.CONSTANT, complex(spec.value), label=spec.label)
            label_wanted = spec.label is None
        elif isinstance(spec, VariableSpec):
            arrow = Arrow(arrow_id, ArrowKind.VARIABLE, complex(spec.position), label=spec.label)
            label_wanted = spec.label is None
        elif isinstance(spec, DerivedSpec):
            a = self._active(spec.a)
            b = self._active(spec.b)
            arrow = Arrow(arrow_id, ArrowKind.for_operation(spec.operation), 0j, label=spec.label, operands=(a, b))
            label_wanted = spec.labelled and spec.label is None
        else:
            raise ProgrammingContractViolation(f"unsupported arrow spec {spec!r}")

        op = OPERATORS[arrow.kind]
        arrow.position = op.recompute(arrow)
        if label_wanted:
            arrow.label = op.label(self, arrow)
        arrow.handle = op.make_constraint(self, arrow)

        self._next_id += 1
        self._arrows.append(arrow)
        self._by_id[arrow.id] = arrow
        logger.info("Added %s arrow #%d %r at %s", arrow.kind.value, arrow.id, arrow.label, arrow.position)
        self._notify("add", arrow)
        return arrow

    def _active(self, arrow: Arrow) -> Arrow:
        if self._by_id.get(arrow.id) is not arrow:
            raise ProgrammingContractViolation(f"arrow #{arrow.id} does not belong to this quiver")
        return arrow.representative()

    def _handle(self, arrow: Arrow):
        if arrow.handle is None:
            raise ProgrammingContractViolation(f"arrow #{arrow.id} is not bound to the network")
        return arrow.handle

    def identity(self, operation: ConstraintKind) -> Arrow:
        """The constant arrow ``0`` (for ``ADD``) or ``1`` (for ``MULTIPLY``), created on first use."""

        anchor = self._identities.get(operation)
        if anchor is None:
            value = _IDENTITY_VALUES[operation]
            anchor = next(
                (
                    arrow
                    for arrow in self._arrows
                    if arrow.kind is ArrowKind.CONSTANT and arrow.position == value
                ),
                None,
            )
            if anchor is None:
                anchor = self.add(ConstantSpec(value))
            self._identities[operation] = anchor
        return anchor.representative()

    @property
    def zero(self) -> Arrow:
        return self.identity(ConstraintKind.ADD)

    @property
    def one(self) -> Arrow:
        return self.identity(ConstraintKind.MULTIPLY)

    def rename(self, old: str, new: str) -> Optional[Arrow]:
        arrow = self.find_label(old)
        new = new.strip()
        if arrow is None or not new:
            return None
        arrow.label = new
        logger.info("Renamed arrow #%d %r -> %r", arrow.id, old, new)
        return arrow

    # ------------------------------------------------------------------
    # Pinning and dragging

    def pin(self, arrow: Arrow, on: bool) -> None:
        arrow = arrow.representative()
        if arrow.kind is ArrowKind.CONSTANT and not on:
            logger.debug("Ignoring request to unpin constant %r", arrow.label)
            return
        self.binding.pin(self._handle(arrow), on)

    def pin_all(self, on: bool) -> None:
        """Pin (or unpin) every non-constant arrow that is not sticky-pinned."""

        for arrow in self._arrows:
            if arrow.kind is not ArrowKind.CONSTANT and not arrow.stay_pinned:
                self.pin(arrow, on)

    def pin_variables(self, on: bool) -> None:
        for arrow in self._arrows:
            if arrow.kind is ArrowKind.VARIABLE and not arrow.stay_pinned:
                self.pin(arrow, on)

    def set_stay_pinned(self, arrow: Arrow, on: bool) -> None:
        if arrow.kind is ArrowKind.CONSTANT:
            return
        arrow.stay_pinned = bool(on)
        self.pin(arrow, on)

    def move(self, arrow: Arrow, position: complex) -> None:
        """Put ``arrow`` at ``position`` directly, bypassing relaxation."""

        arrow = arrow.representative()
        arrow.position = complex(position)
        self.binding.write(self._handle(arrow), arrow.position)
        self._notify("move", arrow)

    # ------------------------------------------------------------------
    # Solving

    def relax_and_sync(self, steps: int) -> None:
        self.network.relax(steps)
        for arrow in self._arrows:
            arrow.position = self.binding.read(self._handle(arrow))

    def settle(
        self,
        steps: Optional[int] = None,
        threshold: Optional[float] = None,
        max_rounds: Optional[int] = None,
    ) -> SettleReport:
        """Relax in rounds of ``steps`` until the total error is at most ``threshold``.

        Stops after ``max_rounds`` rounds whether or not it converged; the
        report says which.
        """

        steps = self.config.relax_steps if steps is None else steps
        threshold = self.config.convergence_threshold if threshold is None else threshold
        max_rounds = self.config.max_rounds if max_rounds is None else max_rounds

        rounds = 0
        error = self.total_error()
        while error > threshold and rounds < max_rounds:
            self.relax_and_sync(steps)
            rounds += 1
            error = self.total_error()
        report = SettleReport(rounds=rounds, steps=rounds * steps, total_error=error, converged=error <= threshold)
        if report.converged:
            logger.info("Settled after %d round(s); total error %.3e", rounds, error)
        else:
            logger.warning("Did not settle after %d round(s); total error %.3e", rounds, error)
        return report

    # ------------------------------------------------------------------
    # Unification

    def find_coincidences(
        self, tolerance: Optional[float] = None, *, transitive: Optional[bool] = None
    ) -> List[List[Arrow]]:
        tolerance = self.config.merge_tolerance if tolerance is None else tolerance
        transitive = self.config.transitive_coincidences if transitive is None else transitive
        if transitive:
            return transitive_clusters(self._arrows, tolerance)
        return scan_clusters(self._arrows, tolerance)

    def merge(self, cluster: Sequence[Arrow]) -> Arrow:
        """Identify every arrow of ``cluster`` with one representative and return it.

        The representative is the last constant in the cluster, else the first
        variable, else the first arrow. The others leave the active list and
        are kept in the representative's ``aliases``. Wires of a constant
        shared with arrows outside the cluster are left alone.
        """

        if not cluster:
            raise ProgrammingContractViolation("merge requires a non-empty cluster")
        members: List[Arrow] = []
        for arrow in cluster:
            resolved = self._active(arrow)
            if resolved not in members:
                members.append(resolved)

        representative = members[0]
        for arrow in members[1:]:
            if arrow.kind is ArrowKind.CONSTANT or (
                arrow.kind is ArrowKind.VARIABLE
                and representative.kind not in (ArrowKind.CONSTANT, ArrowKind.VARIABLE)
            ):
                representative = arrow

        mapping: Dict[WireHandle, WireHandle] = {}
        target = self._handle(representative)
        for arrow in members:
            if arrow is representative:
                continue
            handle = self._handle(arrow)
            if self._shares_handle(arrow, members):
                # deduplicated constant pair also used outside the cluster
                logger.debug("Keeping shared constant wires of #%d %r", arrow.id, arrow.label)
            else:
                mapping.update(self.binding.substitution(handle, target))
            arrow.merged_into = representative
            representative.aliases.append(arrow)
            if arrow.label is not None:
                if representative.label is None:
                    representative.label = arrow.label
                else:
                    representative.label = f"{representative.label} = {arrow.label}"

        if len(members) > 1:
            self.network.substitute_wires(mapping)
            self._arrows = [arrow for arrow in self._arrows if arrow.merged_into is None]
            logger.info(
                "Merged %d arrow(s) into #%d %r", len(members) - 1, representative.id, representative.label
            )
            self._notify("merge", representative)
        return representative

    def _shares_handle(self, arrow: Arrow, members: Sequence[Arrow]) -> bool:
        return any(
            other.handle == arrow.handle and other not in members
            for other in self._by_id.values()
        )

    def merge_coincidences(self, tolerance: Optional[float] = None) -> List[Arrow]:
        return [self.merge(cluster) for cluster in self.find_coincidences(tolerance)]

    # ------------------------------------------------------------------
    # Inverses

    def compute_inverse_candidates(self, operation: ConstraintKind) -> List[InverseCandidate]:
        op = operator_for(operation)
        candidates: List[InverseCandidate] = []
        for arrow in self._arrows:
            position = op.inverse(arrow.position)
            if position is None:
                continue
            candidates.append(InverseCandidate(source=arrow, operation=operation, position=position))
        return candidates

    def materialize_inverse(self, candidate: InverseCandidate) -> Arrow:
        return operator_for(candidate.operation).materialize_inverse(self, candidate)

    # ------------------------------------------------------------------
    # Display support

    def operator(self, arrow: Arrow) -> Operator:
        return OPERATORS[arrow.kind]

    def provenance(self, arrow: Arrow) -> List[List[complex]]:
        """Polylines showing how ``arrow`` and its labelled aliases were built."""

        polylines = OPERATORS[arrow.kind].provenance(arrow)
        for alias in _labelled(arrow.aliases):
            polylines.extend(OPERATORS[alias.kind].provenance(alias, at=arrow.position))
        return polylines


def _labelled(arrows: Iterable[Arrow]) -> List[Arrow]:
    return [arrow for arrow in arrows if arrow.label is not None]


__all__ = ["Quiver", "Watcher"]
