"""
Analysis driver.

Per module:
    facts (Fact Store) -> evaluators -> raw violations
    -> Ignore Index filter (conformance bypasses it) -> Reporter

analyze_program fans modules out over a thread pool; the Fact Store is the
only state shared between workers.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from covenant.checks.constructor import check_constructor
from covenant.checks.immutable import check_immutable
from covenant.checks.implements import check_implements
from covenant.checks.packageonly import check_packageonly
from covenant.checks.testonly import check_testonly
from covenant.checks.violation import Violation, checked_files
from covenant.config import AnalysisConfig
from covenant.errors import UnresolvedModuleError
from covenant.facts.index import FactIndex
from covenant.facts.model import ContractFacts
from covenant.facts.store import FactProvider, FactStore, ProgramFactProvider
from covenant.program.provider import ProgramModel, normalize_module_path
from covenant.program.spans import BoundaryIndex
from covenant.reporting import Reporter
from covenant.suppress.directives import collect_directives
from covenant.suppress.index import IgnoreIndex

logger = logging.getLogger(__name__)


@dataclass
class ModuleResult:
    module_path: str
    facts: ContractFacts
    reporter: Reporter

    @property
    def violations(self) -> List[Violation]:
        return self.reporter.violations


@dataclass
class AnalysisResult:
    modules: List[ModuleResult] = field(default_factory=list)

    def reporter(self) -> Reporter:
        """All modules' surviving violations in one reporter."""
        merged = Reporter()
        for result in self.modules:
            merged.extend(result.reporter)
        return merged

    @property
    def violations(self) -> List[Violation]:
        return self.reporter().sorted()


def analyze_module(
    program: ProgramModel,
    module_path: str,
    store: FactStore,
    config: Optional[AnalysisConfig] = None,
    fact_index: Optional[FactIndex] = None,
) -> ModuleResult:
    """
    Run every evaluator over one module.

    Raises:
        UnresolvedModuleError: If the Program Model has no such module.
    """
    config = config or AnalysisConfig()
    key = normalize_module_path(module_path)
    module = program.module(key)
    if module is None:
        raise UnresolvedModuleError(key)

    fact_index = fact_index or FactIndex(store)
    facts = store.require(key)

    spans = BoundaryIndex.build(module)
    directives = collect_directives(module, spans, checked_files(module, config))
    ignore_index = IgnoreIndex.build(directives, module_ignores=config.exclude_checks)

    reporter = Reporter(ignore_index)
    reporter.add_all(check_immutable(module, fact_index, config))
    reporter.add_all(check_constructor(module, fact_index, config))
    reporter.add_all(check_testonly(module, fact_index, config))
    reporter.add_all(check_packageonly(module, fact_index, config))
    reporter.add_all(check_implements(module, facts, program, store, config))

    logger.debug(
        "%s: %d violations (%d suppressed, %d directives)",
        key, len(reporter.violations), len(reporter.suppressed), len(ignore_index),
    )
    return ModuleResult(key, facts, reporter)


def analyze_program(
    program: ProgramModel,
    config: Optional[AnalysisConfig] = None,
    modules: Optional[Iterable[str]] = None,
    provider: Optional[FactProvider] = None,
    store: Optional[FactStore] = None,
    workers: Optional[int] = None,
) -> AnalysisResult:
    """
    Analyze every module (or the given subset) of *program*.

    Args:
        program: Program Model to analyze.
        config: Analysis configuration (defaults when None).
        modules: Module paths to analyze; all modules by default.
        provider: Fact provider; facts are extracted from *program* by default.
        store: Prebuilt Fact Store (takes precedence over *provider*).
        workers: Parallel workers; defaults to ``config.workers``.
    """
    config = config or AnalysisConfig()
    if store is None:
        store = FactStore(provider or ProgramFactProvider(program, config))
    fact_index = FactIndex(store)
    paths = [normalize_module_path(p) for p in (modules if modules is not None else program.module_paths())]
    workers = max(1, workers if workers is not None else config.workers)

    logger.info("Analyzing %d modules with %d workers", len(paths), workers)

    if workers == 1 or len(paths) <= 1:
        results = [analyze_module(program, p, store, config, fact_index) for p in paths]
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(analyze_module, program, p, store, config, fact_index)
                for p in paths
            ]
            results = [f.result() for f in futures]

    logger.debug("Fact store: %d hits, %d misses", store.hits, store.misses)
    return AnalysisResult(results)
