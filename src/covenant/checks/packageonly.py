"""
PackageOnly checker - @packageonly items used from modules not listed.

A use is allowed from the declaring module, and from any module whose full
path or last path element appears in the annotation's list.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional

from covenant import codes
from covenant.checks.violation import Violation, checked_files, iter_exprs, iter_statements
from covenant.config import AnalysisConfig
from covenant.facts.index import FactIndex
from covenant.program.model import (
    CompositeLit,
    DeclKind,
    FuncDecl,
    Ident,
    Module,
    Node,
    Selector,
    SourceFile,
    TypeDecl,
    TypeExpr,
    TypeRef,
    VarDecl,
)
from covenant.program.provider import normalize_module_path

logger = logging.getLogger(__name__)


def _allowed_list(modules: FrozenSet[str]) -> str:
    return "[" + ", ".join(sorted(modules)) + "]"


class _UsageCheck:
    def __init__(self, module_path: str, facts: FactIndex):
        self.module_path = module_path
        self.short_name = module_path.rsplit("/", 1)[-1]
        self.facts = facts
        self.source: Optional[SourceFile] = None
        self.violations: List[Violation] = []

    def allowed(self, owner: str, modules: Optional[FrozenSet[str]]) -> bool:
        if modules is None or normalize_module_path(owner) == self.module_path:
            return True
        return self.module_path in modules or self.short_name in modules

    def type_usage(self, type_ref: Optional[TypeRef], node: Node) -> None:
        if type_ref is None:
            return
        type_ref = type_ref.elem()
        modules = self.facts.packageonly_type(type_ref)
        if self.allowed(type_ref.owning_module, modules):
            return
        self.violations.append(Violation.at(
            codes.PACKAGEONLY_TYPE_USAGE, node,
            f"{type_ref.base_name} type is @packageonly and cannot be used from {self.module_path}. "
            f"Allowed packages: {_allowed_list(modules)}",
            type_ref.base_name, self.source,
        ))

    def reference(self, expr) -> None:
        ref = expr.ref
        if ref is None:
            if isinstance(expr, Selector) and expr.target is not None and expr.target.type is not None:
                target = expr.target.type.elem()
                if target.is_named:
                    self.method_usage(target.owning_module, target.base_name, expr.name, expr)
            return
        if ref.kind == DeclKind.TYPE:
            self.type_usage(TypeRef(ref.name, ref.module_path), expr)
        elif ref.kind == DeclKind.FUNC:
            modules = self.facts.packageonly_func(ref)
            if self.allowed(ref.module_path, modules):
                return
            self.violations.append(Violation.at(
                codes.PACKAGEONLY_FUNCTION_CALL, expr,
                f"{ref.name} function is @packageonly and cannot be used from {self.module_path}. "
                f"Allowed packages: {_allowed_list(modules)}",
                "", self.source,
            ))
        elif ref.kind == DeclKind.METHOD:
            self.method_usage(ref.module_path, ref.receiver, ref.name, expr)

    def method_usage(self, owner: str, receiver: str, name: str, node: Node) -> None:
        modules = self.facts.packageonly_method(owner, receiver, name)
        if self.allowed(owner, modules):
            return
        self.violations.append(Violation.at(
            codes.PACKAGEONLY_METHOD_CALL, node,
            f"{receiver}.{name} method is @packageonly and cannot be used from {self.module_path}. "
            f"Allowed packages: {_allowed_list(modules)}",
            receiver, self.source,
        ))


def check_packageonly(module: Module, facts: FactIndex,
                      config: Optional[AnalysisConfig] = None) -> List[Violation]:
    config = config or AnalysisConfig()
    check = _UsageCheck(normalize_module_path(module.path), facts)

    for source in checked_files(module, config):
        check.source = source
        for decl in source.decls:
            if isinstance(decl, FuncDecl):
                for param in decl.params:
                    check.type_usage(param.type, param)
                for result in decl.results:
                    check.type_usage(result, decl)
            elif isinstance(decl, TypeDecl):
                for fld in decl.fields:
                    check.type_usage(fld.type, fld)

        for _, stmt in iter_statements(source):
            if isinstance(stmt, VarDecl):
                check.type_usage(stmt.declared_type, stmt)
            for expr in iter_exprs(stmt):
                if isinstance(expr, (Ident, Selector)):
                    check.reference(expr)
                elif isinstance(expr, (CompositeLit, TypeExpr)):
                    check.type_usage(expr.type, expr)

    if check.violations:
        logger.debug("%s: %d packageonly violations", module.path, len(check.violations))
    return check.violations
