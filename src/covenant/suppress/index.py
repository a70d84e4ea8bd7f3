"""
Ignore Index - frozen, code-inverted lookup of @ignore directives.

    index = IgnoreIndex.build(directives, module_ignores=config.exclude_checks)
    if index.contains("IMM01", violation.pos):
        ...  # suppressed

A directive naming ``IMM`` suppresses every IMMnn code, one naming ``ALL``
suppresses everything. Ranges are inclusive and overlapping directives union.
"""

from __future__ import annotations

import sys
from typing import Dict, Iterable, List, Tuple

from covenant.codes import codes_for_check
from covenant.suppress.directives import IgnoreDirective

# Range of a module-wide ignore (configuration-level exclusions)
MODULE_START = 0
MODULE_END = sys.maxsize


class IgnoreIndex:
    """Immutable after build; safe to share between threads."""

    __slots__ = ("_directives", "_by_code", "_min", "_max")

    def __init__(self, directives: Tuple[IgnoreDirective, ...], by_code: Dict[str, Tuple[int, ...]]):
        object.__setattr__(self, "_directives", directives)
        object.__setattr__(self, "_by_code", by_code)
        if directives:
            object.__setattr__(self, "_min", min(d.start for d in directives))
            object.__setattr__(self, "_max", max(d.end for d in directives))
        else:
            object.__setattr__(self, "_min", 0)
            object.__setattr__(self, "_max", -1)

    def __setattr__(self, name, value):
        raise AttributeError("IgnoreIndex is immutable")

    @classmethod
    def build(cls, directives: Iterable[IgnoreDirective] = (),
              module_ignores: Iterable[str] = ()) -> "IgnoreIndex":
        """
        Invert directives by code and freeze.

        Args:
            directives: Resolved @ignore directives.
            module_ignores: Codes ignored everywhere (e.g. ``exclude_checks``).
        """
        collected: List[IgnoreDirective] = list(directives)
        extra = frozenset(code.strip().upper() for code in module_ignores if code.strip())
        if extra:
            collected.append(IgnoreDirective(extra, MODULE_START, MODULE_END))

        by_code: Dict[str, List[int]] = {}
        for i, directive in enumerate(collected):
            for code in directive.codes:
                by_code.setdefault(code, []).append(i)
        return cls(tuple(collected), {code: tuple(ids) for code, ids in by_code.items()})

    @classmethod
    def empty(cls) -> "IgnoreIndex":
        return cls((), {})

    def contains(self, code: str, pos: int) -> bool:
        """True if some directive for *code*, its category or ALL covers *pos*."""
        if pos < self._min or pos > self._max:
            return False
        for candidate in codes_for_check(code):
            for i in self._by_code.get(candidate, ()):
                if self._directives[i].covers(pos):
                    return True
        return False

    @property
    def directives(self) -> Tuple[IgnoreDirective, ...]:
        return self._directives

    @property
    def bounds(self) -> Tuple[int, int]:
        return self._min, self._max

    def __len__(self) -> int:
        return len(self._directives)

    def __bool__(self) -> bool:
        return bool(self._directives)
