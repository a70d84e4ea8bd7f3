"""
Conformance Checker - structural check of @implements requirements.

For every requirement declared in a module:

    IMPL01  the interface's module cannot be resolved
    IMPL02  the module resolves but declares no such interface
    IMPL03  the type lacks (or mismatches) one or more interface methods

Methods match on name, parameter and result counts, and element-wise TypeRef
equality. A plain requirement only sees value-receiver methods; ``&`` admits
pointer receivers as well. Conformance violations are never suppressible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from covenant import codes
from covenant.checks.violation import Violation, checked_files
from covenant.config import AnalysisConfig
from covenant.errors import UnresolvedModuleError
from covenant.facts.model import ContractFacts, InterfaceRequirement
from covenant.facts.store import FactStore
from covenant.program.model import MethodSignature, Module, ReceiverKind, SourceFile, TypeDecl, TypeKind
from covenant.program.provider import ProgramModel, normalize_module_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterfaceShape:
    name: str
    module_path: str
    methods: Tuple[MethodSignature, ...] = ()


@dataclass(frozen=True)
class TypeShape:
    name: str
    module_path: str
    methods: Tuple[Tuple[MethodSignature, ReceiverKind], ...] = ()

    def candidates(self, pointer_required: bool) -> Dict[str, MethodSignature]:
        """Methods visible to a requirement, by name."""
        return {
            sig.name: sig
            for sig, kind in self.methods
            if pointer_required or kind == ReceiverKind.VALUE
        }


def load_interface(program: ProgramModel, module_path: str, name: str) -> Optional[InterfaceShape]:
    decl = program.lookup(module_path, name)
    if not isinstance(decl, TypeDecl) or decl.kind != TypeKind.INTERFACE:
        return None
    return InterfaceShape(name, normalize_module_path(module_path), tuple(decl.methods))


def load_type(program: ProgramModel, module_path: str, name: str) -> Optional[TypeShape]:
    entries = program.method_set(module_path, name)
    if entries is None:
        return None
    methods = tuple((entry.signature, entry.receiver_kind) for entry in entries)
    return TypeShape(name, normalize_module_path(module_path), methods)


def signatures_match(have: MethodSignature, want: MethodSignature) -> bool:
    if len(have.params) != len(want.params) or len(have.results) != len(want.results):
        return False
    return have.params == want.params and have.results == want.results


def missing_methods(shape: TypeShape, interface: InterfaceShape,
                    pointer_required: bool) -> List[MethodSignature]:
    candidates = shape.candidates(pointer_required)
    missing = []
    for want in interface.methods:
        have = candidates.get(want.name)
        if have is None or not signatures_match(have, want):
            missing.append(want)
    return missing


def format_signature(signature: MethodSignature) -> str:
    """Read(...byte) (int, error) style rendering."""
    return str(signature)


def _display_name(requirement: InterfaceRequirement) -> str:
    alias = requirement.module_alias
    if alias:
        return f"{alias}.{requirement.interface_ref.name}"
    return requirement.interface_ref.name


def check_requirement(program: ProgramModel, store: FactStore, module_path: str,
                      requirement: InterfaceRequirement, decl: TypeDecl,
                      source: Optional[SourceFile] = None) -> Optional[Violation]:
    """Evaluate one requirement; None when it is satisfied."""
    type_name = requirement.type_ref.name

    if not requirement.module_found:
        return Violation.at(
            codes.IMPLEMENTS_MODULE_NOT_FOUND, decl,
            f'module "{requirement.module_alias}" referenced in @implements annotation '
            f'on type "{type_name}" is not imported',
            type_name, source,
        )

    target = requirement.interface_ref.module_path
    try:
        store.require(target)
    except UnresolvedModuleError:
        return Violation.at(
            codes.IMPLEMENTS_MODULE_NOT_FOUND, decl,
            f'module "{requirement.module_alias or target}" referenced in @implements annotation '
            f'on type "{type_name}" could not be resolved',
            type_name, source,
        )

    interface = load_interface(program, target, requirement.interface_ref.name)
    if interface is None:
        return Violation.at(
            codes.IMPLEMENTS_INTERFACE_NOT_FOUND, decl,
            f'interface "{_display_name(requirement)}" not found for type "{type_name}"',
            type_name, source,
        )

    shape = load_type(program, module_path, type_name)
    if shape is None:
        logger.debug("No method set for %s.%s, skipping conformance", module_path, type_name)
        return None

    missing = missing_methods(shape, interface, requirement.pointer_required)
    if not missing:
        return None
    lines = "\n".join("  " + format_signature(sig) for sig in missing)
    return Violation.at(
        codes.IMPLEMENTS_MISSING_METHODS, decl,
        f'type "{type_name}" does not implement interface "{_display_name(requirement)}"\n'
        f"missing methods:\n{lines}",
        type_name, source,
    )


def check_implements(module: Module, facts: ContractFacts, program: ProgramModel, store: FactStore,
                     config: Optional[AnalysisConfig] = None) -> List[Violation]:
    """One violation per unmet requirement declared in *module*."""
    config = config or AnalysisConfig()
    module_path = normalize_module_path(module.path)

    decls: Dict[str, Tuple[SourceFile, TypeDecl]] = {}
    for source in checked_files(module, config):
        for decl in source.decls:
            if isinstance(decl, TypeDecl):
                decls[decl.name] = (source, decl)

    violations = []
    for requirement in facts.requirements():
        found = decls.get(requirement.type_ref.name)
        if found is None:
            continue
        source, decl = found
        violation = check_requirement(program, store, module_path, requirement, decl, source)
        if violation is not None:
            violations.append(violation)

    if violations:
        logger.debug("%s: %d conformance violations", module.path, len(violations))
    return violations
