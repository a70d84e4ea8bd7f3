"""
covenant.checks - contract evaluators

Each evaluator takes one module and returns raw Violation records; the
Reporter decides which of them survive suppression.
"""

from covenant.checks.constructor import check_constructor
from covenant.checks.immutable import check_immutable
from covenant.checks.implements import check_implements
from covenant.checks.packageonly import check_packageonly
from covenant.checks.testonly import check_testonly
from covenant.checks.violation import Violation

__all__ = [
    "Violation",
    "check_constructor",
    "check_immutable",
    "check_implements",
    "check_packageonly",
    "check_testonly",
]
