"""
Fact lookups keyed by declaration identity.

Evaluators ask questions such as "is example.com/shop.Order immutable" about
declarations in any module. FactIndex answers them from the Fact Store,
building one small lookup table per module on first use. Facts of a module
that cannot be resolved are treated as empty.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Set, Tuple

from covenant.facts.model import ContractFacts, TestOnlyKind
from covenant.facts.store import FactStore
from covenant.program.model import DeclKind, DeclRef, TypeRef
from covenant.program.provider import normalize_module_path

logger = logging.getLogger(__name__)


@dataclass
class _ModuleTable:
    immutable: Set[str] = field(default_factory=set)
    constructors: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    mutable_fields: Set[Tuple[str, str]] = field(default_factory=set)
    testonly_types: Set[str] = field(default_factory=set)
    testonly_funcs: Set[str] = field(default_factory=set)
    # (receiver type, method name)
    testonly_methods: Set[Tuple[str, str]] = field(default_factory=set)
    packageonly_types: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    packageonly_funcs: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    packageonly_methods: Dict[Tuple[str, str], FrozenSet[str]] = field(default_factory=dict)

    @classmethod
    def build(cls, facts: ContractFacts) -> "_ModuleTable":
        table = cls()
        for fact in facts.immutables():
            table.immutable.add(fact.type_ref.name)
        for fact in facts.constructors():
            name = fact.type_ref.name
            table.constructors[name] = table.constructors.get(name, frozenset()) | fact.allowed_names
        for fact in facts.mutable_fields():
            table.mutable_fields.add((fact.type_ref.name, fact.field_name))
        for fact in facts.testonly():
            if fact.kind == TestOnlyKind.TYPE:
                table.testonly_types.add(fact.object_ref.name)
            elif fact.kind == TestOnlyKind.FUNCTION:
                table.testonly_funcs.add(fact.object_ref.name)
            else:
                table.testonly_methods.add((fact.receiver_type, fact.object_ref.name))
        for fact in facts.packageonly():
            ref = fact.object_ref
            if ref.kind == DeclKind.TYPE:
                target = table.packageonly_types
                key = ref.name
            elif ref.kind == DeclKind.METHOD:
                target = table.packageonly_methods
                key = (ref.receiver, ref.name)
            else:
                target = table.packageonly_funcs
                key = ref.name
            target[key] = target.get(key, frozenset()) | fact.allowed_modules
        return table


class FactIndex:
    """Per-run view over the Fact Store used by every evaluator."""

    def __init__(self, store: FactStore):
        self.store = store
        self._tables: Dict[str, _ModuleTable] = {}
        self._lock = threading.Lock()

    def _table(self, module_path: str) -> _ModuleTable:
        key = normalize_module_path(module_path)
        table = self._tables.get(key)
        if table is None:
            table = _ModuleTable.build(self.store.facts_or_empty(key))
            with self._lock:
                table = self._tables.setdefault(key, table)
        return table

    # --- types ---------------------------------------------------------------

    def is_immutable(self, type_ref: Optional[TypeRef]) -> bool:
        if type_ref is None or not type_ref.is_named:
            return False
        return type_ref.base_name in self._table(type_ref.owning_module).immutable

    def constructor_names(self, type_ref: Optional[TypeRef]) -> Optional[FrozenSet[str]]:
        """Allowed constructors of a type, or None when it has no @constructor."""
        if type_ref is None or not type_ref.is_named:
            return None
        return self._table(type_ref.owning_module).constructors.get(type_ref.base_name)

    def is_mutable_field(self, type_ref: TypeRef, field_name: str) -> bool:
        if not type_ref.is_named:
            return False
        return (type_ref.base_name, field_name) in self._table(type_ref.owning_module).mutable_fields

    def is_testonly_type(self, type_ref: Optional[TypeRef]) -> bool:
        if type_ref is None or not type_ref.is_named:
            return False
        return type_ref.base_name in self._table(type_ref.owning_module).testonly_types

    def packageonly_type(self, type_ref: Optional[TypeRef]) -> Optional[FrozenSet[str]]:
        if type_ref is None or not type_ref.is_named:
            return None
        return self._table(type_ref.owning_module).packageonly_types.get(type_ref.base_name)

    # --- functions and methods -----------------------------------------------

    def is_testonly_func(self, ref: DeclRef) -> bool:
        return ref.name in self._table(ref.module_path).testonly_funcs

    def is_testonly_method(self, module_path: str, receiver_type: str, name: str) -> bool:
        return (receiver_type, name) in self._table(module_path).testonly_methods

    def packageonly_func(self, ref: DeclRef) -> Optional[FrozenSet[str]]:
        return self._table(ref.module_path).packageonly_funcs.get(ref.name)

    def packageonly_method(self, module_path: str, receiver_type: str, name: str) -> Optional[FrozenSet[str]]:
        return self._table(module_path).packageonly_methods.get((receiver_type, name))
