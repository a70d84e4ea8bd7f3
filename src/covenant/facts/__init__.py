"""
covenant.facts - Contract Facts

Extraction of facts from annotations, the memoizing cross-module Fact Store,
lookups for evaluators and the JSON export used for cross-run propagation.
"""

from covenant.facts.annotations import extract_facts
from covenant.facts.index import FactIndex
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
    fact_kind,
)
from covenant.facts.store import (
    ChainedFactProvider,
    ExportedFactProvider,
    FactLookup,
    FactProvider,
    FactStore,
    ProgramFactProvider,
)

__all__ = [
    "extract_facts",
    "FactIndex",
    "Constructor",
    "ContractFact",
    "ContractFacts",
    "Immutable",
    "InterfaceRequirement",
    "MutableField",
    "PackageOnly",
    "TestOnly",
    "TestOnlyKind",
    "fact_kind",
    "ChainedFactProvider",
    "ExportedFactProvider",
    "FactLookup",
    "FactProvider",
    "FactStore",
    "ProgramFactProvider",
]
