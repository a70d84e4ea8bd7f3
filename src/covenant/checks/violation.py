"""
Violation record shared by every evaluator.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from covenant.codes import category_of, is_suppressible
from covenant.config import AnalysisConfig
from covenant.program.model import (
    Expr,
    FuncDecl,
    Module,
    Node,
    SourceFile,
    Stmt,
    VarSpec,
    walk_exprs,
    walk_stmts,
)


@dataclass(frozen=True)
class Violation:
    code: str
    pos: int
    message: str
    type_name: str = ""
    line: int = 0
    file: str = ""

    @classmethod
    def at(cls, code: str, node: Node, message: str, type_name: str = "",
           source: Optional[SourceFile] = None) -> "Violation":
        return cls(
            code=code,
            pos=node.pos,
            message=message,
            type_name=type_name,
            line=node.line,
            file=source.name if source is not None else "",
        )

    @property
    def category(self) -> str:
        return category_of(self.code) or self.code

    @property
    def suppressible(self) -> bool:
        return is_suppressible(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def checked_files(module: Module, config: AnalysisConfig) -> List[SourceFile]:
    """Files of *module* that the configuration does not exclude."""
    return [f for f in module.files if not config.should_skip_file(f.name, f.is_test)]


def sort_violations(violations: List[Violation]) -> List[Violation]:
    return sorted(violations, key=lambda v: (v.file, v.pos, v.code))


def iter_statements(source: SourceFile) -> Iterator[Tuple[Optional[FuncDecl], Stmt]]:
    """Every statement of a file with its enclosing function (None at module level)."""
    for decl in source.decls:
        if isinstance(decl, FuncDecl):
            for stmt in walk_stmts(decl.body):
                yield decl, stmt
        elif isinstance(decl, VarSpec) and decl.stmt is not None:
            yield None, decl.stmt


def iter_exprs(stmt: Stmt) -> Iterator[Expr]:
    """Every expression of a single statement, nested ones included."""
    for expr in stmt.exprs():
        yield from walk_exprs(expr)
