"""
Analysis Configuration

Loads configuration from a YAML file and environment variables.
The resulting AnalysisConfig is an explicit value passed to the Fact Store,
the evaluators and the driver - there is no process-wide default instance.

Precedence (lowest to highest):
    defaults -> YAML file -> environment -> CLI flags (applied by the caller)

Environment variables:
    COVENANT_SCAN_TESTS       true|false
    COVENANT_EXCLUDE_PATHS    comma-separated substrings
    COVENANT_EXCLUDE_CHECKS   comma-separated codes, categories or ALL
    COVENANT_WORKERS          number of modules analyzed in parallel
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import yaml

from covenant.errors import ConfigError

logger = logging.getLogger(__name__)


def config_search_paths() -> list[Path]:
    """Default configuration file locations (checked in order), relative to the current directory."""
    return [
        Path.cwd() / "covenant.yaml",
        Path.home() / ".covenant" / "config.yaml",
    ]

ENV_SCAN_TESTS = "COVENANT_SCAN_TESTS"
ENV_EXCLUDE_PATHS = "COVENANT_EXCLUDE_PATHS"
ENV_EXCLUDE_CHECKS = "COVENANT_EXCLUDE_CHECKS"
ENV_WORKERS = "COVENANT_WORKERS"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for one analysis run."""

    # Analyze test files too (test files are skipped by default)
    scan_tests: bool = False

    # Files whose name contains any of these substrings are skipped
    exclude_paths: tuple[str, ...] = ("testdata",)

    # Codes, categories or ALL excluded everywhere (applied as module-wide ignores)
    exclude_checks: tuple[str, ...] = ()

    # Modules analyzed in parallel by analyze_program
    workers: int = 1

    # Where this config came from (None when built from defaults)
    source: Optional[Path] = field(default=None, compare=False)

    @classmethod
    def empty(cls) -> "AnalysisConfig":
        return cls(scan_tests=False, exclude_paths=(), exclude_checks=())

    def with_scan_tests(self, scan_tests: bool) -> "AnalysisConfig":
        return replace(self, scan_tests=scan_tests)

    def with_exclude_paths(self, exclude_paths: Iterable[str]) -> "AnalysisConfig":
        return replace(self, exclude_paths=tuple(exclude_paths))

    def with_exclude_checks(self, exclude_checks: Iterable[str]) -> "AnalysisConfig":
        return replace(self, exclude_checks=tuple(c.upper() for c in exclude_checks))

    def with_workers(self, workers: int) -> "AnalysisConfig":
        return replace(self, workers=max(1, workers))

    def is_excluded_path(self, filename: str) -> bool:
        return any(part in filename for part in self.exclude_paths)

    def should_skip_file(self, filename: str, is_test: bool) -> bool:
        """True if a source file is excluded from analysis."""
        if self.is_excluded_path(filename):
            return True
        if is_test and not self.scan_tests:
            return True
        return False


def parse_bool(value: Any) -> bool:
    """Accept true/1/yes/on (case-insensitive) as True, everything else False."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def parse_list(value: Any, upper: bool = False) -> tuple[str, ...]:
    """Parse a comma-separated string (or YAML list) into a tuple of trimmed items."""
    if value is None:
        return ()
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        raise ConfigError(f"Expected a list or comma-separated string, got {type(value).__name__}")

    result = []
    for part in parts:
        item = part.strip()
        if item:
            result.append(item.upper() if upper else item)
    return tuple(result)


def _parse_workers(value: Any) -> int:
    try:
        workers = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"workers must be an integer, got {value!r}") from e
    return max(1, workers)


def config_from_mapping(data: Mapping[str, Any], base: Optional[AnalysisConfig] = None) -> AnalysisConfig:
    """Overlay a parsed YAML mapping on *base* (defaults when None)."""
    cfg = base or AnalysisConfig()
    unknown = set(data) - {"scan_tests", "exclude_paths", "exclude_checks", "workers"}
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    if "scan_tests" in data:
        cfg = replace(cfg, scan_tests=parse_bool(data["scan_tests"]))
    if "exclude_paths" in data:
        cfg = replace(cfg, exclude_paths=parse_list(data["exclude_paths"]))
    if "exclude_checks" in data:
        cfg = replace(cfg, exclude_checks=parse_list(data["exclude_checks"], upper=True))
    if "workers" in data:
        cfg = replace(cfg, workers=_parse_workers(data["workers"]))
    return cfg


def apply_env_overrides(cfg: AnalysisConfig, environ: Optional[Mapping[str, str]] = None) -> AnalysisConfig:
    """Apply environment variable overrides."""
    env = os.environ if environ is None else environ

    if ENV_SCAN_TESTS in env:
        value = env[ENV_SCAN_TESTS].strip().lower()
        if value not in _TRUE_VALUES and value not in _FALSE_VALUES:
            logger.warning("Unrecognized %s value %r, treating as false", ENV_SCAN_TESTS, value)
        cfg = replace(cfg, scan_tests=parse_bool(value))
    if ENV_EXCLUDE_PATHS in env:
        cfg = replace(cfg, exclude_paths=parse_list(env[ENV_EXCLUDE_PATHS]))
    if ENV_EXCLUDE_CHECKS in env:
        cfg = replace(cfg, exclude_checks=parse_list(env[ENV_EXCLUDE_CHECKS], upper=True))
    if ENV_WORKERS in env:
        cfg = replace(cfg, workers=_parse_workers(env[ENV_WORKERS]))
    return cfg


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AnalysisConfig:
    """
    Load configuration from YAML (explicit path or search paths) plus environment.

    Args:
        config_path: Explicit YAML file. Must exist when given.
        environ: Environment mapping (defaults to os.environ).

    Raises:
        ConfigError: If the explicit file is missing or any file is invalid.
    """
    if config_path is not None and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    search_paths = [config_path] if config_path else config_search_paths()
    cfg = AnalysisConfig()

    for path in search_paths:
        if path is None or not path.exists():
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config must be a YAML mapping, got {type(data).__name__} in {path}")
        cfg = replace(config_from_mapping(data, cfg), source=path)
        logger.debug("Loaded configuration from %s", path)
        break

    return apply_env_overrides(cfg, environ)
