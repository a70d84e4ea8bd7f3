"""
TestOnly checker - @testonly items used from production files.

    calling a @testonly function         TONL02
    calling a @testonly method           TONL03
    using a @testonly type               TONL01  (once per type per file)

Test files are never checked, nor are the bodies of @testonly functions and
methods themselves.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from covenant import codes
from covenant.checks.violation import Violation, checked_files, iter_exprs
from covenant.config import AnalysisConfig
from covenant.facts.index import FactIndex
from covenant.program.model import (
    Call,
    CompositeLit,
    DeclKind,
    DeclRef,
    FuncDecl,
    Ident,
    Module,
    Node,
    Selector,
    SourceFile,
    TypeDecl,
    TypeRef,
    VarDecl,
    VarSpec,
    walk_stmts,
)
from covenant.program.provider import normalize_module_path

logger = logging.getLogger(__name__)


class _FileCheck:
    def __init__(self, module_path: str, facts: FactIndex, source: SourceFile):
        self.module_path = module_path
        self.facts = facts
        self.source = source
        self.reported_types: Set[str] = set()
        self.violations: List[Violation] = []

    def in_testonly_context(self, func: FuncDecl) -> bool:
        if func.is_method:
            return self.facts.is_testonly_method(self.module_path, func.receiver_type_name, func.name)
        return self.facts.is_testonly_func(DeclRef(self.module_path, func.name, DeclKind.FUNC))

    def type_usage(self, type_ref: Optional[TypeRef], node: Node) -> None:
        if type_ref is None:
            return
        type_ref = type_ref.elem()
        if not self.facts.is_testonly_type(type_ref):
            return
        key = f"{type_ref.owning_module}.{type_ref.base_name}"
        if key in self.reported_types:
            return
        self.reported_types.add(key)
        self.violations.append(Violation.at(
            codes.TESTONLY_TYPE_USAGE, node,
            f"type {type_ref.base_name} is marked @testonly and can only be used in test files",
            type_ref.base_name, self.source,
        ))

    def call(self, call: Call) -> None:
        func = call.func
        if isinstance(func, Ident):
            ref = func.ref or DeclRef(self.module_path, func.name, DeclKind.FUNC)
            if ref.kind == DeclKind.FUNC and self.facts.is_testonly_func(ref):
                self._function(call, ref.name)
            return
        if not isinstance(func, Selector):
            return

        ref = func.ref
        if ref is not None and ref.kind == DeclKind.FUNC:
            if self.facts.is_testonly_func(ref):
                self._function(call, ref.name)
            return
        if ref is not None and ref.kind == DeclKind.METHOD and ref.receiver:
            module_path, receiver = ref.module_path, ref.receiver
        else:
            target_type = func.target.type if func.target is not None else None
            if target_type is None or not target_type.is_named:
                return
            module_path, receiver = target_type.owning_module, target_type.base_name
        if self.facts.is_testonly_method(module_path, receiver, func.name):
            self.violations.append(Violation.at(
                codes.TESTONLY_METHOD_CALL, call,
                f"method {func.name} on {receiver} is marked @testonly and can only be called in test files",
                receiver, self.source,
            ))

    def _function(self, call: Call, name: str) -> None:
        self.violations.append(Violation.at(
            codes.TESTONLY_FUNCTION_CALL, call,
            f"function {name} is marked @testonly and can only be called in test files",
            "", self.source,
        ))

    def statements(self, stmts) -> None:
        for stmt in stmts:
            if isinstance(stmt, VarDecl):
                self.type_usage(stmt.declared_type, stmt)
            for expr in iter_exprs(stmt):
                if isinstance(expr, Call):
                    self.call(expr)
                elif isinstance(expr, CompositeLit):
                    self.type_usage(expr.type, expr)


def check_testonly(module: Module, facts: FactIndex,
                   config: Optional[AnalysisConfig] = None) -> List[Violation]:
    config = config or AnalysisConfig()
    module_path = normalize_module_path(module.path)
    violations: List[Violation] = []

    for source in checked_files(module, config):
        if source.is_test:
            continue
        check = _FileCheck(module_path, facts, source)
        for decl in source.decls:
            if isinstance(decl, FuncDecl):
                if check.in_testonly_context(decl):
                    continue
                for param in decl.params:
                    check.type_usage(param.type, param)
                for result in decl.results:
                    check.type_usage(result, decl)
                check.statements(walk_stmts(decl.body))
            elif isinstance(decl, TypeDecl):
                for fld in decl.fields:
                    check.type_usage(fld.type, fld)
            elif isinstance(decl, VarSpec) and decl.stmt is not None:
                check.statements([decl.stmt])
        violations.extend(check.violations)

    if violations:
        logger.debug("%s: %d testonly violations", module.path, len(violations))
    return violations
