"""
Annotation extraction - doc comments -> Contract Facts.

Recognized annotations (comment marker ``//`` or ``#`` optional):

    @immutable
    @constructor New, NewDefault
    @implements &io.Reader          (& = pointer receivers allowed/required)
    @testonly
    @packageonly billing, example.com/shop/admin
    @mutable                         (on a struct field)

An annotation whose payload is required but missing (``@constructor`` or
``@packageonly`` with no names) is dropped silently; it is not a directive.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from covenant.facts.model import (
    Constructor,
    ContractFact,
    ContractFacts,
    Immutable,
    InterfaceRequirement,
    MutableField,
    PackageOnly,
    TestOnly,
    TestOnlyKind,
)
from covenant.program.model import Comment, DeclKind, DeclRef, FuncDecl, Module, TypeDecl, TypeKind
from covenant.program.provider import normalize_module_path

logger = logging.getLogger(__name__)

_PREFIX = r"^\s*(?://+|#+)?\s*"

_IMPLEMENTS_RX = re.compile(_PREFIX + r"@implements\s+(&)?(?:([\w]+)\.)?(\w+)(?:\s+.*)?$")
#                                                      ^1     ^2          ^3
# 1: pointer marker, 2: module alias, 3: interface name

_CONSTRUCTOR_RX = re.compile(
    _PREFIX + r"@constructor(?:\s+([A-Za-z_]\w*(?:\s*,\s*[A-Za-z_]\w*)*(?:\s*,)?))?(?:\s+.*)?$"
)
_PACKAGEONLY_RX = re.compile(
    _PREFIX + r"@packageonly(?:\s+([\w./-]+(?:\s*,\s*[\w./-]+)*(?:\s*,)?))?(?:\s+.*)?$"
)
_IMMUTABLE_RX = re.compile(_PREFIX + r"@immutable(?:\s+.*)?$")
_TESTONLY_RX = re.compile(_PREFIX + r"@testonly(?:\s+.*)?$")
_MUTABLE_RX = re.compile(_PREFIX + r"@mutable(?:\s+.*)?$")


def split_names(payload: Optional[str]) -> List[str]:
    """Split a comma-separated payload into trimmed, non-empty names."""
    if not payload:
        return []
    return [part.strip() for part in payload.split(",") if part.strip()]


def _lines(comments: Iterable[Comment]) -> List[str]:
    result = []
    for comment in comments:
        result.extend(comment.text.splitlines() or [""])
    return result


def _type_facts(module: Module, decl: TypeDecl) -> List[ContractFact]:
    facts: List[ContractFact] = []
    ref = DeclRef(normalize_module_path(module.path), decl.name, DeclKind.TYPE, pos=decl.pos)

    for text in _lines(decl.doc):
        if _IMMUTABLE_RX.match(text):
            facts.append(Immutable(ref))
            continue

        match = _CONSTRUCTOR_RX.match(text)
        if match:
            names = split_names(match.group(1))
            if names:
                facts.append(Constructor(ref, frozenset(names)))
            else:
                logger.debug("Dropping @constructor without names on %s.%s", module.path, decl.name)
            continue

        match = _IMPLEMENTS_RX.match(text)
        if match:
            facts.append(_requirement(module, ref, match))
            continue

        if _TESTONLY_RX.match(text):
            facts.append(TestOnly(TestOnlyKind.TYPE, ref))
            continue

        match = _PACKAGEONLY_RX.match(text)
        if match:
            fact = _packageonly(module, ref, match)
            if fact is not None:
                facts.append(fact)

    if decl.kind == TypeKind.STRUCT:
        for fld in decl.fields:
            if any(_MUTABLE_RX.match(text) for text in _lines(fld.doc)):
                facts.append(MutableField(ref, fld.name))
    return facts


def _func_facts(module: Module, decl: FuncDecl) -> List[ContractFact]:
    facts: List[ContractFact] = []
    if decl.is_method:
        receiver = decl.receiver_type_name
        ref = DeclRef(normalize_module_path(module.path), decl.name, DeclKind.METHOD, receiver=receiver, pos=decl.pos)
        kind = TestOnlyKind.METHOD
    else:
        receiver = ""
        ref = DeclRef(normalize_module_path(module.path), decl.name, DeclKind.FUNC, pos=decl.pos)
        kind = TestOnlyKind.FUNCTION

    for text in _lines(decl.doc):
        if _TESTONLY_RX.match(text):
            facts.append(TestOnly(kind, ref, receiver))
            continue
        match = _PACKAGEONLY_RX.match(text)
        if match:
            fact = _packageonly(module, ref, match)
            if fact is not None:
                facts.append(fact)
    return facts


def _requirement(module: Module, ref: DeclRef, match: re.Match) -> InterfaceRequirement:
    pointer, alias, name = match.group(1), match.group(2) or "", match.group(3)
    if not alias:
        target: Optional[str] = module.path
    else:
        target = module.imports.get(alias)
    found = target is not None
    interface_ref = DeclRef(normalize_module_path(target) if found else "", name, DeclKind.TYPE)
    if not found:
        logger.debug("@implements on %s references unknown module alias %r", ref.name, alias)
    return InterfaceRequirement(
        type_ref=ref,
        interface_ref=interface_ref,
        pointer_required=pointer == "&",
        module_alias=alias,
        module_found=found,
    )


def _packageonly(module: Module, ref: DeclRef, match: re.Match) -> Optional[PackageOnly]:
    names = split_names(match.group(1))
    if not names:
        logger.debug("Dropping @packageonly without modules on %s.%s", module.path, ref.name)
        return None
    return PackageOnly(ref, frozenset(names))


def extract_facts(module: Module) -> ContractFacts:
    """Scan every declaration's doc comments and return the module's facts."""
    facts: List[ContractFact] = []
    for _, decl in module.iter_decls():
        if isinstance(decl, TypeDecl):
            facts.extend(_type_facts(module, decl))
        elif isinstance(decl, FuncDecl):
            facts.extend(_func_facts(module, decl))
    logger.debug("Extracted %d facts from %s", len(facts), module.path)
    return ContractFacts(normalize_module_path(module.path), tuple(facts))
