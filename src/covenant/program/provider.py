"""
Program Model interface.

The rule engine consumes an already parsed and type-checked program through
this interface. ``InMemoryProgram`` implements it over ``covenant.program.model``
nodes; a host integration may implement it directly over its own compiler data.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from covenant.program.model import (
    Comment,
    Decl,
    Expr,
    FuncDecl,
    MethodSignature,
    Module,
    ReceiverKind,
    TypeDecl,
    TypeRef,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodEntry:
    """One method of a named type, with its receiver kind."""
    signature: MethodSignature
    receiver_kind: ReceiverKind

    @property
    def name(self) -> str:
        return self.signature.name


def normalize_module_path(path: str) -> str:
    """Canonical form of a module path used for cache keys and comparisons."""
    norm = path.strip().replace("\\", "/")
    while "//" in norm:
        norm = norm.replace("//", "/")
    return norm.rstrip("/")


class ProgramModel(ABC):
    """Read-only view of a parsed, type-checked program."""

    @abstractmethod
    def module(self, module_path: str) -> Optional[Module]:
        """Resolve a module by path, or None if unknown."""

    @abstractmethod
    def module_paths(self) -> List[str]:
        """All module paths available for analysis."""

    def resolve_import(self, module_path: str, alias: str) -> Optional[str]:
        """
        Resolve an import alias used inside *module_path* to a full module path.

        An empty alias means the current module.
        """
        if not alias:
            return normalize_module_path(module_path)
        mod = self.module(module_path)
        if mod is None:
            return None
        target = mod.imports.get(alias)
        if target is None:
            return None
        return normalize_module_path(target)

    def lookup(self, module_path: str, name: str) -> Optional[Decl]:
        """Resolve *name* to zero or one top-level declaration of *module_path*."""
        mod = self.module(module_path)
        if mod is None:
            return None
        for _, decl in mod.iter_decls():
            if decl.name == name and not (isinstance(decl, FuncDecl) and decl.is_method):
                return decl
        return None

    def type_of(self, module_path: str, expr: Optional[Expr]) -> Optional[TypeRef]:
        """Type the host type checker inferred for *expr*, or None when unknown."""
        if expr is None:
            return None
        return expr.type

    def method_set(self, module_path: str, type_name: str) -> Optional[List[MethodEntry]]:
        """Declared methods of a named type, or None when the type is unknown."""
        decl = self.lookup(module_path, type_name)
        if not isinstance(decl, TypeDecl):
            return None
        mod = self.module(module_path)
        entries = []
        for func in mod.func_decls():
            if func.is_method and func.receiver_type_name == type_name:
                entries.append(MethodEntry(func.signature(), func.receiver.kind))
        return entries

    def comments(self, module_path: str) -> List[Comment]:
        """All comments of a module in position order."""
        mod = self.module(module_path)
        if mod is None:
            return []
        result = [c for f in mod.files for c in f.comments]
        result.sort(key=lambda c: c.pos)
        return result


class InMemoryProgram(ProgramModel):
    """Program Model backed by a dict of Module nodes."""

    def __init__(self, modules: Iterable[Module] = ()):
        self._modules: Dict[str, Module] = {}
        for mod in modules:
            self.add(mod)

    def add(self, module: Module) -> None:
        key = normalize_module_path(module.path)
        if key in self._modules:
            logger.warning("Replacing module %s in program model", key)
        self._modules[key] = module

    def module(self, module_path: str) -> Optional[Module]:
        return self._modules.get(normalize_module_path(module_path))

    def module_paths(self) -> List[str]:
        return sorted(self._modules)

    def __len__(self) -> int:
        return len(self._modules)
