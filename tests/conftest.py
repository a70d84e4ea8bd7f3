"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from covenant.analyzer import analyze_program
from covenant.config import AnalysisConfig
from covenant.facts.index import FactIndex
from covenant.facts.store import FactStore, ProgramFactProvider


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def config():
    """Default analysis configuration (test files skipped, testdata excluded)."""
    return AnalysisConfig()


@pytest.fixture
def no_env(monkeypatch):
    """Clear every COVENANT_* environment variable."""
    for name in ("COVENANT_SCAN_TESTS", "COVENANT_EXCLUDE_PATHS",
                 "COVENANT_EXCLUDE_CHECKS", "COVENANT_WORKERS"):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# ANALYSIS FIXTURES
# =============================================================================

@pytest.fixture
def facts_for():
    """Build (store, index) over a program."""
    def build(program, cfg=None):
        store = FactStore(ProgramFactProvider(program, cfg))
        return store, FactIndex(store)
    return build


@pytest.fixture
def run():
    """Analyze a program and return surviving violations sorted by position."""
    def analyze(program, cfg=None, modules=None):
        return analyze_program(program, cfg or AnalysisConfig(), modules=modules).violations
    return analyze

