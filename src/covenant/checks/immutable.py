"""
Mutation Detector - writes to @immutable types outside their constructors.

Shapes (IMM codes):
    x.f = v          IMM01     *recv = v    IMM01
    x.f += v         IMM02
    x.f++            IMM03     *recv++      IMM03
    x.f[i] = v       IMM04

Plain and compound assignments are split by operator, so a single statement
is never reported twice. A write is authorized only inside a function named
by the type's @constructor that lives in the type's own module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from covenant import codes
from covenant.checks.violation import Violation, checked_files
from covenant.config import AnalysisConfig
from covenant.facts.index import FactIndex
from covenant.program.model import (
    Assign,
    Expr,
    FuncDecl,
    Ident,
    IncDec,
    Index,
    Module,
    Selector,
    SourceFile,
    Star,
    TypeRef,
    walk_stmts,
)
from covenant.program.provider import normalize_module_path

logger = logging.getLogger(__name__)


@dataclass
class _Receiver:
    name: str
    type_ref: TypeRef


class _Context:
    def __init__(self, module: Module, facts: FactIndex):
        self.module_path = normalize_module_path(module.path)
        self.facts = facts
        self.source: Optional[SourceFile] = None
        self.function = ""
        self.receiver: Optional[_Receiver] = None
        self.violations: List[Violation] = []

    def enter(self, func: FuncDecl) -> None:
        self.function = func.name
        self.receiver = None
        recv = func.receiver
        if recv is not None and recv.name and recv.type is not None:
            type_ref = recv.type.elem()
            if not type_ref.owning_module:
                type_ref = TypeRef(type_ref.base_name, self.module_path)
            self.receiver = _Receiver(recv.name, type_ref)

    def authorized(self, type_ref: TypeRef) -> bool:
        allowed = self.facts.constructor_names(type_ref)
        if not allowed or self.function not in allowed:
            return False
        return normalize_module_path(type_ref.owning_module) == self.module_path

    def immutable_owner(self, target: Optional[Expr]) -> Optional[TypeRef]:
        """Immutable named type of *target* (one indirection unwrapped) unless writes are authorized."""
        if target is None or target.type is None:
            return None
        type_ref = target.type.elem()
        if not self.facts.is_immutable(type_ref):
            return None
        if self.authorized(type_ref):
            return None
        return type_ref

    def receiver_target(self, star: Star) -> Optional[TypeRef]:
        if self.receiver is None:
            return None
        if not isinstance(star.target, Ident) or star.target.name != self.receiver.name:
            return None
        type_ref = self.receiver.type_ref
        if not self.facts.is_immutable(type_ref) or self.authorized(type_ref):
            return None
        return type_ref

    def report(self, code: str, node, message: str, type_ref: TypeRef) -> None:
        self.violations.append(Violation.at(code, node, message, type_ref.base_name, self.source))


def _check_assign(ctx: _Context, stmt: Assign) -> None:
    for target in stmt.targets:
        if isinstance(target, Selector):
            owner = ctx.immutable_owner(target.target)
            if owner is None or ctx.facts.is_mutable_field(owner, target.name):
                continue
            ctx.report(codes.IMMUTABLE_FIELD_ASSIGNMENT, target,
                       f'cannot assign to field "{target.name}" of immutable type', owner)
        elif isinstance(target, Index):
            selector = target.target
            if not isinstance(selector, Selector):
                continue
            owner = ctx.immutable_owner(selector.target)
            if owner is None or ctx.facts.is_mutable_field(owner, selector.name):
                continue
            ctx.report(codes.IMMUTABLE_INDEX_ASSIGNMENT, target,
                       f'cannot modify element of field "{selector.name}" of immutable type', owner)
        elif isinstance(target, Star):
            owner = ctx.receiver_target(target)
            if owner is None:
                continue
            ctx.report(codes.IMMUTABLE_FIELD_ASSIGNMENT, target,
                       "cannot reassign immutable receiver (outside constructor)", owner)


def _check_compound(ctx: _Context, stmt: Assign) -> None:
    for target in stmt.targets:
        if not isinstance(target, Selector):
            continue
        owner = ctx.immutable_owner(target.target)
        if owner is None or ctx.facts.is_mutable_field(owner, target.name):
            continue
        ctx.report(codes.IMMUTABLE_FIELD_COMPOUND_ASSIGN, target,
                   f'cannot use {stmt.op} on field "{target.name}" of immutable type (outside constructor)',
                   owner)


def _check_incdec(ctx: _Context, stmt: IncDec) -> None:
    target = stmt.target
    if isinstance(target, Selector):
        owner = ctx.immutable_owner(target.target)
        if owner is None or ctx.facts.is_mutable_field(owner, target.name):
            return
        ctx.report(codes.IMMUTABLE_FIELD_INC_DEC, stmt,
                   f'cannot use {stmt.op} on field "{target.name}" of immutable type (outside constructor)',
                   owner)
    elif isinstance(target, Star):
        owner = ctx.receiver_target(target)
        if owner is None:
            return
        ctx.report(codes.IMMUTABLE_FIELD_INC_DEC, target,
                   f"cannot use {stmt.op} on immutable receiver (outside constructor)", owner)


def check_immutable(module: Module, facts: FactIndex,
                    config: Optional[AnalysisConfig] = None) -> List[Violation]:
    """Report every mutation of an @immutable type in *module*."""
    config = config or AnalysisConfig()
    ctx = _Context(module, facts)

    for source in checked_files(module, config):
        ctx.source = source
        for decl in source.decls:
            if not isinstance(decl, FuncDecl):
                continue
            ctx.enter(decl)
            for stmt in walk_stmts(decl.body):
                if isinstance(stmt, Assign):
                    if stmt.is_compound:
                        _check_compound(ctx, stmt)
                    else:
                        _check_assign(ctx, stmt)
                elif isinstance(stmt, IncDec):
                    _check_incdec(ctx, stmt)

    if ctx.violations:
        logger.debug("%s: %d immutability violations", module.path, len(ctx.violations))
    return ctx.violations
