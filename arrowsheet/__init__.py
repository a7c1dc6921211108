from .arrows import (
    Arrow,
    ArrowKind,
    ConstantSpec,
    DerivedSpec,
    InverseCandidate,
    QuiverEvent,
    VariableSpec,
)
from .errors import ProgrammingContractViolation
from .evaluate import as_function, sample_field, spiral_arc
from .gestures import DragSession, operate, pick_target
from .labels import LabelBook, constant_label
from .parser import parse_script
from .quiver import Quiver
from .script import ScriptResult, run_script
from .solver import (
    ComplexBinding,
    ComplexHandle,
    ConstraintKind,
    ConstraintNetwork,
    SettleReport,
    SolverConfig,
    get_solver_config,
    set_solver_config,
)

__all__ = [
    'Arrow',
    'ArrowKind',
    'ConstantSpec',
    'DerivedSpec',
    'InverseCandidate',
    'QuiverEvent',
    'VariableSpec',
    'ProgrammingContractViolation',
    'as_function',
    'sample_field',
    'spiral_arc',
    'DragSession',
    'operate',
    'pick_target',
    'LabelBook',
    'constant_label',
    'parse_script',
    'Quiver',
    'ScriptResult',
    'run_script',
    'ComplexBinding',
    'ComplexHandle',
    'ConstraintKind',
    'ConstraintNetwork',
    'SettleReport',
    'SolverConfig',
    'get_solver_config',
    'set_solver_config',
]
