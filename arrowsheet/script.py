"""Execute scene scripts against a quiver."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .arrows import Arrow, ConstantSpec, DerivedSpec, VariableSpec
from .ast import Script, Stmt
from .gestures import DragSession
from .quiver import Quiver
from .solver.model import ConstraintKind, SettleReport, SolverConfig

logger = logging.getLogger(__name__)

_OPERATIONS = {"+": ConstraintKind.ADD, "*": ConstraintKind.MULTIPLY}


@dataclass
class ScriptResult:
    quiver: Quiver
    names: Dict[str, Arrow] = field(default_factory=dict)
    reports: List[SettleReport] = field(default_factory=list)

    def arrow(self, name: str) -> Arrow:
        return self.names[name].representative()


class ScriptRunner:
    def __init__(self, quiver: Quiver) -> None:
        self.result = ScriptResult(quiver)

    @property
    def quiver(self) -> Quiver:
        return self.result.quiver

    def _lookup(self, stmt: Stmt, name: str) -> Arrow:
        arrow = self.result.names.get(name)
        if arrow is None:
            arrow = self.quiver.find_label(name)
        if arrow is None:
            raise SyntaxError(f"[line {stmt.span.line}, col {stmt.span.col}] unknown arrow '{name}'")
        return arrow.representative()

    def _bind(self, name: Optional[str], arrow: Arrow) -> None:
        if name:
            self.result.names[name] = arrow

    def execute(self, stmt: Stmt) -> None:
        handler = getattr(self, f"_exec_{stmt.kind}", None)
        if handler is None:
            raise SyntaxError(f"[line {stmt.span.line}, col {stmt.span.col}] unsupported statement '{stmt.kind}'")
        logger.debug("Executing line %d: %s %s", stmt.span.line, stmt.kind, stmt.data)
        handler(stmt)

    def _exec_var(self, stmt: Stmt) -> None:
        name = stmt.data["name"]
        self._bind(name, self.quiver.add(VariableSpec(stmt.data["value"], label=name)))

    def _exec_const(self, stmt: Stmt) -> None:
        name = stmt.data.get("name")
        self._bind(name, self.quiver.add(ConstantSpec(stmt.data["value"], label=name)))

    def _exec_derive(self, stmt: Stmt) -> None:
        a = self._lookup(stmt, stmt.data["a"])
        b = self._lookup(stmt, stmt.data["b"])
        name = stmt.data["name"]
        spec = DerivedSpec(_OPERATIONS[stmt.data["op"]], a, b, label=name)
        self._bind(name, self.quiver.add(spec))

    def _exec_pin(self, stmt: Stmt) -> None:
        self.quiver.set_stay_pinned(self._lookup(stmt, stmt.data["target"]), True)

    def _exec_unpin(self, stmt: Stmt) -> None:
        self.quiver.set_stay_pinned(self._lookup(stmt, stmt.data["target"]), False)

    def _exec_invert(self, stmt: Stmt) -> None:
        source = self._lookup(stmt, stmt.data["target"])
        operation = _OPERATIONS[stmt.data["op"]]
        candidate = next(
            (c for c in self.quiver.compute_inverse_candidates(operation) if c.source is source),
            None,
        )
        if candidate is None:
            raise SyntaxError(
                f"[line {stmt.span.line}, col {stmt.span.col}] '{stmt.data['target']}' has no "
                f"{'additive' if operation is ConstraintKind.ADD else 'multiplicative'} inverse"
            )
        inverse = self.quiver.materialize_inverse(candidate)
        alias = stmt.data.get("alias")
        if alias:
            inverse.label = alias
        self._bind(alias or inverse.label, inverse)

    def _exec_merge(self, stmt: Stmt) -> None:
        merged = self.quiver.merge_coincidences(stmt.data.get("tolerance"))
        logger.info("Line %d merged %d cluster(s)", stmt.span.line, len(merged))

    def _exec_relax(self, stmt: Stmt) -> None:
        self.quiver.relax_and_sync(stmt.data["steps"])

    def _exec_settle(self, stmt: Stmt) -> None:
        self.result.reports.append(self.quiver.settle())

    def _exec_rename(self, stmt: Stmt) -> None:
        arrow = self._lookup(stmt, stmt.data["old"])
        old_label = arrow.label
        arrow.label = stmt.data["new"]
        self._bind(stmt.data["new"], arrow)
        logger.info("Renamed %r -> %r", old_label, arrow.label)

    def _exec_drag(self, stmt: Stmt) -> None:
        with DragSession(self.quiver, self._lookup(stmt, stmt.data["target"])) as session:
            session.move_to(stmt.data["to"])
            self.result.reports.append(self.quiver.settle())


def run_script(
    script: Script,
    quiver: Optional[Quiver] = None,
    *,
    config: Optional[SolverConfig] = None,
) -> ScriptResult:
    """Run ``script`` on ``quiver`` (a fresh anchored quiver by default)."""

    if quiver is None:
        quiver = Quiver.with_anchors(config)
    runner = ScriptRunner(quiver)
    logger.info("Running script with %d statement(s)", len(script.stmts))
    for stmt in script.stmts:
        runner.execute(stmt)
    return runner.result


__all__ = ["ScriptResult", "ScriptRunner", "run_script"]
