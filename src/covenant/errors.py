"""
Exception hierarchy for covenant.

Contract violations are never exceptions - they are Violation records.
Exceptions are reserved for resolution failures, bad configuration and
malformed Program Model input.
"""


class CovenantError(Exception):
    """Base class for all covenant errors."""


class UnresolvedModuleError(CovenantError):
    """A module path could not be resolved by the fact provider."""
    def __init__(self, module_path: str):
        self.module_path = module_path
        super().__init__(f"Module not found: {module_path!r}")


class ConfigError(CovenantError):
    """Invalid configuration file or value."""


class ModelError(CovenantError):
    """Malformed Program Model input."""
    def __init__(self, message: str, path: str = ""):
        self.path = path
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}{message}")
