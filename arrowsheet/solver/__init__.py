"""Constraint network façade: scalar wires, complex bindings and configuration."""

from __future__ import annotations

from .binding import ComplexBinding
from .config import get_solver_config, resolve_config, set_solver_config
from .model import (
    ComplexHandle,
    Constraint,
    ConstraintKind,
    SettleReport,
    SolverConfig,
    Wire,
    WireHandle,
)
from .network import ConstraintNetwork

__all__ = [
    "ComplexBinding",
    "ComplexHandle",
    "Constraint",
    "ConstraintKind",
    "ConstraintNetwork",
    "SettleReport",
    "SolverConfig",
    "Wire",
    "WireHandle",
    "get_solver_config",
    "resolve_config",
    "set_solver_config",
]
