"""
Construction checker - instances of @constructor types made elsewhere.

    T{...}        CTOR01
    new(T)        CTOR02
    var x T       CTOR03   (no initializer, not indirect)
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional

from covenant import codes
from covenant.checks.violation import Violation, checked_files, iter_exprs, iter_statements
from covenant.config import AnalysisConfig
from covenant.facts.index import FactIndex
from covenant.program.model import Call, CompositeLit, Ident, Module, TypeExpr, TypeRef, VarDecl
from covenant.program.provider import normalize_module_path

logger = logging.getLogger(__name__)


def _allowed_list(names: FrozenSet[str]) -> str:
    return "[" + ", ".join(sorted(names)) + "]"


def _restricted(facts: FactIndex, module_path: str, function: str,
                type_ref: Optional[TypeRef]) -> Optional[FrozenSet[str]]:
    """Allowed constructors when *function* may not build *type_ref*, else None."""
    if type_ref is None:
        return None
    type_ref = type_ref.elem()
    allowed = facts.constructor_names(type_ref)
    if allowed is None:
        return None
    if function in allowed and normalize_module_path(type_ref.owning_module) == module_path:
        return None
    return allowed


def check_constructor(module: Module, facts: FactIndex,
                      config: Optional[AnalysisConfig] = None) -> List[Violation]:
    config = config or AnalysisConfig()
    module_path = normalize_module_path(module.path)
    violations: List[Violation] = []

    for source in checked_files(module, config):
        for func, stmt in iter_statements(source):
            function = func.name if func is not None else ""

            if isinstance(stmt, VarDecl) and not stmt.values:
                declared = stmt.declared_type
                if declared is not None and not declared.is_indirect:
                    allowed = _restricted(facts, module_path, function, declared)
                    if allowed is not None:
                        for name in stmt.names:
                            if name.name == "_":
                                continue
                            violations.append(Violation.at(
                                codes.CONSTRUCTOR_VAR_DECLARATION, name,
                                "zero-initialized variable declaration must be in constructor "
                                f"(allowed: {_allowed_list(allowed)})",
                                declared.base_name, source,
                            ))

            for expr in iter_exprs(stmt):
                if isinstance(expr, CompositeLit):
                    allowed = _restricted(facts, module_path, function, expr.type)
                    if allowed is None:
                        continue
                    violations.append(Violation.at(
                        codes.CONSTRUCTOR_COMPOSITE_LITERAL, expr,
                        f"type instantiation must be in constructor (allowed: {_allowed_list(allowed)})",
                        expr.type.base_name, source,
                    ))
                elif isinstance(expr, Call):
                    if not (isinstance(expr.func, Ident) and expr.func.name == "new" and len(expr.args) == 1):
                        continue
                    arg = expr.args[0]
                    if not isinstance(arg, TypeExpr):
                        continue
                    allowed = _restricted(facts, module_path, function, arg.type)
                    if allowed is None:
                        continue
                    violations.append(Violation.at(
                        codes.CONSTRUCTOR_NEW_CALL, expr,
                        "type instantiation with new() must be in constructor "
                        f"(allowed: {_allowed_list(allowed)})",
                        arg.type.base_name, source,
                    ))

    if violations:
        logger.debug("%s: %d construction violations", module.path, len(violations))
    return violations
