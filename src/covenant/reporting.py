"""
Reporting and output formatting.

Handles:
- Suppression filtering through the Ignore Index
- Human-readable output
- JSON lines output
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Dict, Iterable, List, Optional

from covenant.checks.violation import Violation, sort_violations
from covenant.suppress.index import IgnoreIndex


def format_violation(v: Violation) -> str:
    loc = f"{v.file}:{v.line}" if v.file else f"@{v.pos}"
    return f"{loc}: error: [{v.code}] {v.message}"


class Reporter:
    """Collects violations that survive suppression."""

    def __init__(self, ignore_index: Optional[IgnoreIndex] = None) -> None:
        self.ignore_index = ignore_index or IgnoreIndex.empty()
        self.violations: List[Violation] = []
        self.suppressed: List[Violation] = []

    def add(self, violation: Violation) -> bool:
        """Record a violation unless an @ignore covers it. Returns True if kept."""
        if violation.suppressible and self.ignore_index.contains(violation.code, violation.pos):
            self.suppressed.append(violation)
            return False
        self.violations.append(violation)
        return True

    def add_all(self, violations: Iterable[Violation]) -> None:
        for v in violations:
            self.add(v)

    def extend(self, other: "Reporter") -> None:
        """Merge an already filtered reporter (e.g. from another module)."""
        self.violations.extend(other.violations)
        self.suppressed.extend(other.suppressed)

    def counts(self) -> Dict[str, int]:
        return dict(Counter(v.category for v in self.violations))

    def sorted(self) -> List[Violation]:
        return sort_violations(self.violations)

    def __len__(self) -> int:
        return len(self.violations)

    def __bool__(self) -> bool:
        return bool(self.violations)

    def to_jsonl(self) -> str:
        return "\n".join(json.dumps(v.to_dict(), ensure_ascii=False) for v in self.sorted())

    def render_human(self) -> str:
        if not self.violations:
            suffix = f" ({len(self.suppressed)} suppressed)" if self.suppressed else ""
            return f"covenant: OK - no violations{suffix}"

        counts = self.counts()
        summary = "  ".join(f"{cat}={counts[cat]}" for cat in sorted(counts))
        out = [f"Violations: {len(self.violations)}  {summary}"]
        if self.suppressed:
            out.append(f"Suppressed: {len(self.suppressed)}")
        out.append("")
        for v in self.sorted():
            out.append(format_violation(v))
        return "\n".join(out)
