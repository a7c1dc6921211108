from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Span:
    line: int
    col: int


@dataclass
class Stmt:
    kind: str
    span: Span
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Script:
    stmts: List[Stmt] = field(default_factory=list)
