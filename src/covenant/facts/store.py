"""
Fact Store - memoized, thread-safe cross-module fact cache.

A FactProvider answers "what facts does module X declare" and reports whether
the module exists at all. FactStore wraps a provider so that each normalized
module path is resolved at most once per run, even when several threads ask
for the same module concurrently:

    store = FactStore(ProgramFactProvider(program))
    lookup = store.get_facts("example.com/shop")
    if lookup.found:
        ...

Providers:
    ProgramFactProvider  - extracts facts from Program Model annotations
    ExportedFactProvider - serves facts exported by an earlier run
    ChainedFactProvider  - first provider that knows the module wins
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from covenant.config import AnalysisConfig
from covenant.errors import UnresolvedModuleError
from covenant.facts.annotations import extract_facts
from covenant.facts.model import ContractFacts
from covenant.program.model import Module
from covenant.program.provider import ProgramModel, normalize_module_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactLookup:
    """Result of a fact query; ``found=False`` is distinct from zero facts."""
    facts: ContractFacts
    found: bool

    def __iter__(self):
        # Allows: facts, found = store.get_facts(path)
        return iter((self.facts, self.found))


class FactProvider(ABC):
    """Source of per-module contract facts, implemented by the driver."""

    @abstractmethod
    def get_facts(self, module_path: str) -> Tuple[ContractFacts, bool]:
        """Return (facts, found) for a normalized module path."""


class ProgramFactProvider(FactProvider):
    """Extracts facts from the Program Model's doc-comment annotations."""

    def __init__(self, program: ProgramModel, config: Optional[AnalysisConfig] = None):
        self.program = program
        self.config = config or AnalysisConfig()

    def get_facts(self, module_path: str) -> Tuple[ContractFacts, bool]:
        module = self.program.module(module_path)
        if module is None:
            return ContractFacts.empty(module_path), False
        # Annotations under excluded paths (testdata etc.) declare nothing
        files = [f for f in module.files if not self.config.is_excluded_path(f.name)]
        if len(files) != len(module.files):
            module = Module(module.path, module.name, files, module.imports)
        return extract_facts(module), True


class ExportedFactProvider(FactProvider):
    """Serves facts from documents written by covenant.facts.export."""

    def __init__(self, exported: Iterable[ContractFacts] = ()):
        self._facts: Dict[str, ContractFacts] = {}
        for facts in exported:
            self._facts[normalize_module_path(facts.module_path)] = facts

    @classmethod
    def from_directory(cls, directory: Path) -> "ExportedFactProvider":
        from covenant.facts.export import read_facts_file

        documents = [read_facts_file(p) for p in sorted(directory.glob("*.json"))]
        logger.info("Loaded exported facts for %d modules from %s", len(documents), directory)
        return cls(documents)

    def get_facts(self, module_path: str) -> Tuple[ContractFacts, bool]:
        facts = self._facts.get(module_path)
        if facts is None:
            return ContractFacts.empty(module_path), False
        return facts, True


class ChainedFactProvider(FactProvider):
    def __init__(self, providers: Iterable[FactProvider]):
        self.providers: List[FactProvider] = list(providers)

    def get_facts(self, module_path: str) -> Tuple[ContractFacts, bool]:
        for provider in self.providers:
            facts, found = provider.get_facts(module_path)
            if found:
                return facts, True
        return ContractFacts.empty(module_path), False


class FactStore:
    """
    Memoizing wrapper around a FactProvider.

    Compute-once-publish: a store-level lock hands out one lock per module
    path; the first thread to take a key's lock computes, the others wait and
    read the published result.
    """

    def __init__(self, provider: FactProvider):
        self.provider = provider
        self._results: Dict[str, FactLookup] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get_facts(self, module_path: str) -> FactLookup:
        key = normalize_module_path(module_path)

        cached = self._results.get(key)
        if cached is not None:
            with self._lock:
                self.hits += 1
            return cached

        with self._key_lock(key):
            cached = self._results.get(key)
            if cached is not None:
                with self._lock:
                    self.hits += 1
                return cached

            facts, found = self.provider.get_facts(key)
            lookup = FactLookup(facts, found)
            if not found:
                logger.debug("Module %s not found by fact provider", key)
            with self._lock:
                self._results[key] = lookup
                self.misses += 1
            return lookup

    def require(self, module_path: str) -> ContractFacts:
        """Facts for a module that must resolve; raises UnresolvedModuleError otherwise."""
        lookup = self.get_facts(module_path)
        if not lookup.found:
            raise UnresolvedModuleError(normalize_module_path(module_path))
        return lookup.facts

    def facts_or_empty(self, module_path: str) -> ContractFacts:
        """Facts for a module, treating an unresolved module as declaring nothing."""
        return self.get_facts(module_path).facts

    def seed(self, facts: ContractFacts) -> None:
        """Publish facts computed elsewhere (e.g. imported from a previous run)."""
        key = normalize_module_path(facts.module_path)
        with self._lock:
            self._results.setdefault(key, FactLookup(facts, True))

    def cached_modules(self) -> List[str]:
        with self._lock:
            return sorted(self._results)

    def __len__(self) -> int:
        return len(self._results)
