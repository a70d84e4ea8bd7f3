"""
Contract Facts - structured records of rules declared through annotations.

The fact kinds form a closed union; ``FACT_TYPES`` lists every member and
``fact_kind`` raises on anything else so that dispatch stays exhaustive.
Facts are owned by exactly one module and never mutated after extraction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple, Type, TypeVar, Union

from covenant.program.model import DeclKind, DeclRef


class TestOnlyKind(Enum):
    """What a @testonly annotation is placed on."""
    TYPE = "type"
    FUNCTION = "function"
    METHOD = "method"

    __test__ = False


@dataclass(frozen=True)
class Immutable:
    type_ref: DeclRef


@dataclass(frozen=True)
class Constructor:
    type_ref: DeclRef
    allowed_names: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class TestOnly:
    kind: TestOnlyKind
    object_ref: DeclRef
    receiver_type: str = ""

    __test__ = False


@dataclass(frozen=True)
class PackageOnly:
    object_ref: DeclRef
    allowed_modules: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class InterfaceRequirement:
    type_ref: DeclRef
    # module_path is "" when the alias could not be resolved
    interface_ref: DeclRef
    pointer_required: bool = False
    module_alias: str = ""
    module_found: bool = True


@dataclass(frozen=True)
class MutableField:
    """Field-level exemption from the enclosing type's immutability."""
    type_ref: DeclRef
    field_name: str


ContractFact = Union[Immutable, Constructor, TestOnly, PackageOnly, InterfaceRequirement, MutableField]

FACT_TYPES: Dict[str, type] = {
    "immutable": Immutable,
    "constructor": Constructor,
    "testonly": TestOnly,
    "packageonly": PackageOnly,
    "implements": InterfaceRequirement,
    "mutable": MutableField,
}
_KIND_BY_TYPE = {cls: kind for kind, cls in FACT_TYPES.items()}

F = TypeVar("F")


def fact_kind(fact: Any) -> str:
    """Tag of a contract fact; raises TypeError for anything outside the union."""
    kind = _KIND_BY_TYPE.get(type(fact))
    if kind is None:
        raise TypeError(f"Not a contract fact: {type(fact).__name__}")
    return kind


# ============================================================================
# SERIALIZATION
# ============================================================================

def _ref_to_dict(ref: DeclRef) -> Dict[str, Any]:
    result = {"module_path": ref.module_path, "name": ref.name, "kind": ref.kind.value}
    if ref.receiver:
        result["receiver"] = ref.receiver
    if ref.pos:
        result["pos"] = ref.pos
    return result


def _ref_from_dict(data: Dict[str, Any]) -> DeclRef:
    return DeclRef(
        module_path=data["module_path"],
        name=data["name"],
        kind=DeclKind(data.get("kind", "type")),
        receiver=data.get("receiver", ""),
        pos=data.get("pos", 0),
    )


def fact_to_dict(fact: ContractFact) -> Dict[str, Any]:
    """Convert a fact to a JSON-compatible dict tagged with ``kind``."""
    kind = fact_kind(fact)
    if isinstance(fact, Immutable):
        return {"kind": kind, "type_ref": _ref_to_dict(fact.type_ref)}
    elif isinstance(fact, Constructor):
        return {"kind": kind, "type_ref": _ref_to_dict(fact.type_ref),
                "allowed_names": sorted(fact.allowed_names)}
    elif isinstance(fact, TestOnly):
        return {"kind": kind, "testonly_kind": fact.kind.value,
                "object_ref": _ref_to_dict(fact.object_ref), "receiver_type": fact.receiver_type}
    elif isinstance(fact, PackageOnly):
        return {"kind": kind, "object_ref": _ref_to_dict(fact.object_ref),
                "allowed_modules": sorted(fact.allowed_modules)}
    elif isinstance(fact, InterfaceRequirement):
        return {"kind": kind, "type_ref": _ref_to_dict(fact.type_ref),
                "interface_ref": _ref_to_dict(fact.interface_ref),
                "pointer_required": fact.pointer_required,
                "module_alias": fact.module_alias, "module_found": fact.module_found}
    elif isinstance(fact, MutableField):
        return {"kind": kind, "type_ref": _ref_to_dict(fact.type_ref), "field_name": fact.field_name}
    raise TypeError(f"Unhandled fact kind: {kind}")


def fact_from_dict(data: Dict[str, Any]) -> ContractFact:
    kind = data.get("kind")
    if kind == "immutable":
        return Immutable(_ref_from_dict(data["type_ref"]))
    elif kind == "constructor":
        return Constructor(_ref_from_dict(data["type_ref"]), frozenset(data.get("allowed_names", ())))
    elif kind == "testonly":
        return TestOnly(TestOnlyKind(data["testonly_kind"]), _ref_from_dict(data["object_ref"]),
                        data.get("receiver_type", ""))
    elif kind == "packageonly":
        return PackageOnly(_ref_from_dict(data["object_ref"]), frozenset(data.get("allowed_modules", ())))
    elif kind == "implements":
        return InterfaceRequirement(
            type_ref=_ref_from_dict(data["type_ref"]),
            interface_ref=_ref_from_dict(data["interface_ref"]),
            pointer_required=bool(data.get("pointer_required", False)),
            module_alias=data.get("module_alias", ""),
            module_found=bool(data.get("module_found", True)),
        )
    elif kind == "mutable":
        return MutableField(_ref_from_dict(data["type_ref"]), data["field_name"])
    raise ValueError(f"Unknown fact kind: {kind!r}")


# ============================================================================
# PER-MODULE BUNDLE
# ============================================================================

@dataclass(frozen=True)
class ContractFacts:
    """All facts declared by one module."""
    module_path: str
    facts: Tuple[ContractFact, ...] = ()

    @classmethod
    def empty(cls, module_path: str) -> "ContractFacts":
        return cls(module_path, ())

    def __len__(self) -> int:
        return len(self.facts)

    def __iter__(self) -> Iterator[ContractFact]:
        return iter(self.facts)

    def of_type(self, cls: Type[F]) -> List[F]:
        return [f for f in self.facts if isinstance(f, cls)]

    def immutables(self) -> List[Immutable]:
        return self.of_type(Immutable)

    def constructors(self) -> List[Constructor]:
        return self.of_type(Constructor)

    def testonly(self) -> List[TestOnly]:
        return self.of_type(TestOnly)

    def packageonly(self) -> List[PackageOnly]:
        return self.of_type(PackageOnly)

    def requirements(self) -> List[InterfaceRequirement]:
        return self.of_type(InterfaceRequirement)

    def mutable_fields(self) -> List[MutableField]:
        return self.of_type(MutableField)

    def is_immutable(self, type_name: str) -> bool:
        return any(f.type_ref.name == type_name for f in self.immutables())

    def constructor_names(self, type_name: str) -> Optional[FrozenSet[str]]:
        """Union of allowed constructor names for a type, or None without a Constructor fact."""
        names: Optional[FrozenSet[str]] = None
        for fact in self.constructors():
            if fact.type_ref.name == type_name:
                names = (names or frozenset()) | fact.allowed_names
        return names

    def is_mutable_field(self, type_name: str, field_name: str) -> bool:
        return any(
            f.type_ref.name == type_name and f.field_name == field_name
            for f in self.mutable_fields()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_path": self.module_path,
            "facts": [fact_to_dict(f) for f in self.facts],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractFacts":
        return cls(data["module_path"], tuple(fact_from_dict(f) for f in data.get("facts", [])))
