"""
Violation Code Registry - Single Source of Truth for check codes.

Code Format: CATEGORY + two digits (e.g. IMM01, CTOR02).
    Categories: IMM, CTOR, TONL, PKGO, IMPL

Suppression hierarchy for a code such as IMM01:
    ALL   -> suppresses every code
    IMM   -> suppresses every IMMnn code
    IMM01 -> suppresses only IMM01

Rules:
    - Never reuse codes
    - Never change semantics of an existing code
    - IMPL codes are never suppressible by @ignore
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional


ALL = "ALL"

IMMUTABLE_CATEGORY = "IMM"
CONSTRUCTOR_CATEGORY = "CTOR"
TESTONLY_CATEGORY = "TONL"
PACKAGEONLY_CATEGORY = "PKGO"
IMPLEMENTS_CATEGORY = "IMPL"

# Immutable
IMMUTABLE_FIELD_ASSIGNMENT = "IMM01"
IMMUTABLE_FIELD_COMPOUND_ASSIGN = "IMM02"
IMMUTABLE_FIELD_INC_DEC = "IMM03"
IMMUTABLE_INDEX_ASSIGNMENT = "IMM04"

# Constructor
CONSTRUCTOR_COMPOSITE_LITERAL = "CTOR01"
CONSTRUCTOR_NEW_CALL = "CTOR02"
CONSTRUCTOR_VAR_DECLARATION = "CTOR03"

# TestOnly
TESTONLY_TYPE_USAGE = "TONL01"
TESTONLY_FUNCTION_CALL = "TONL02"
TESTONLY_METHOD_CALL = "TONL03"

# PackageOnly
PACKAGEONLY_TYPE_USAGE = "PKGO01"
PACKAGEONLY_FUNCTION_CALL = "PKGO02"
PACKAGEONLY_METHOD_CALL = "PKGO03"

# Implements (not suppressible)
IMPLEMENTS_MODULE_NOT_FOUND = "IMPL01"
IMPLEMENTS_INTERFACE_NOT_FOUND = "IMPL02"
IMPLEMENTS_MISSING_METHODS = "IMPL03"

_CODE_RX = re.compile(r"^([A-Z]+)(\d+)$")


@dataclass(frozen=True)
class CheckCode:
    """Definition of a check code in the registry."""
    code: str
    category: str
    description: str
    suppressible: bool = True


_REGISTRY_LIST: List[CheckCode] = [
    CheckCode(IMMUTABLE_FIELD_ASSIGNMENT, IMMUTABLE_CATEGORY,
              "Field of immutable type is being assigned"),
    CheckCode(IMMUTABLE_FIELD_COMPOUND_ASSIGN, IMMUTABLE_CATEGORY,
              "Compound assignment to immutable field (e.g., +=, -=)"),
    CheckCode(IMMUTABLE_FIELD_INC_DEC, IMMUTABLE_CATEGORY,
              "Increment/decrement of immutable field (e.g., ++, --)"),
    CheckCode(IMMUTABLE_INDEX_ASSIGNMENT, IMMUTABLE_CATEGORY,
              "Element assignment through a field of an immutable type"),

    CheckCode(CONSTRUCTOR_COMPOSITE_LITERAL, CONSTRUCTOR_CATEGORY,
              "Composite literal used outside allowed constructor functions"),
    CheckCode(CONSTRUCTOR_NEW_CALL, CONSTRUCTOR_CATEGORY,
              "new() call used outside allowed constructor functions"),
    CheckCode(CONSTRUCTOR_VAR_DECLARATION, CONSTRUCTOR_CATEGORY,
              "Zero-initialized variable declaration outside allowed constructor functions"),

    CheckCode(TESTONLY_TYPE_USAGE, TESTONLY_CATEGORY,
              "TestOnly type used outside test context"),
    CheckCode(TESTONLY_FUNCTION_CALL, TESTONLY_CATEGORY,
              "TestOnly function called outside test context"),
    CheckCode(TESTONLY_METHOD_CALL, TESTONLY_CATEGORY,
              "TestOnly method called outside test context"),

    CheckCode(PACKAGEONLY_TYPE_USAGE, PACKAGEONLY_CATEGORY,
              "PackageOnly type used outside its allowed modules"),
    CheckCode(PACKAGEONLY_FUNCTION_CALL, PACKAGEONLY_CATEGORY,
              "PackageOnly function used outside its allowed modules"),
    CheckCode(PACKAGEONLY_METHOD_CALL, PACKAGEONLY_CATEGORY,
              "PackageOnly method used outside its allowed modules"),

    CheckCode(IMPLEMENTS_MODULE_NOT_FOUND, IMPLEMENTS_CATEGORY,
              "Module referenced in @implements could not be resolved", suppressible=False),
    CheckCode(IMPLEMENTS_INTERFACE_NOT_FOUND, IMPLEMENTS_CATEGORY,
              "Interface referenced in @implements not found", suppressible=False),
    CheckCode(IMPLEMENTS_MISSING_METHODS, IMPLEMENTS_CATEGORY,
              "Type does not implement the required interface", suppressible=False),
]


REGISTRY: Dict[str, CheckCode] = {}
CODES_BY_CATEGORY: Dict[str, List[CheckCode]] = {}


def _build_registry() -> None:
    """Build the registry dicts from the list, validating uniqueness and format."""
    for entry in _REGISTRY_LIST:
        if entry.code in REGISTRY:
            raise ValueError(f"Duplicate check code in registry: {entry.code}")
        if category_of(entry.code) != entry.category:
            raise ValueError(f"Code {entry.code} does not belong to category {entry.category}")
        REGISTRY[entry.code] = entry
        CODES_BY_CATEGORY.setdefault(entry.category, []).append(entry)


def category_of(code: str) -> Optional[str]:
    """Return the non-numeric prefix of a CATEGORY+digits code, or None."""
    match = _CODE_RX.match(code)
    if match is None:
        return None
    return match.group(1)


def codes_for_check(code: str) -> tuple[str, ...]:
    """
    Codes whose @ignore directives suppress *code*.

    Example: "IMM01" -> ("IMM01", "IMM", "ALL")
    Example: "IMM"   -> ("IMM", "ALL")
    """
    category = category_of(code)
    if category is None or category == code:
        return (code, ALL)
    return (code, category, ALL)


def is_suppressible(code: str) -> bool:
    entry = REGISTRY.get(code)
    if entry is not None:
        return entry.suppressible
    return category_of(code) != IMPLEMENTS_CATEGORY


def get_code(code: str) -> Optional[CheckCode]:
    """Get a check code definition, or None if not found."""
    return REGISTRY.get(code)


# Build registry on import
_build_registry()
