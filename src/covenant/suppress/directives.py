"""
@ignore directives - parsing and range resolution.

    // @ignore IMM01, CTOR
    # @ignore ALL

Each directive covers an inclusive position range of the module, chosen from
where the comment sits:

    before the module header        -> the whole module
    trailing code on the same line  -> that line's statement
    above a top-level declaration   -> comment start .. declaration end
    inside a declaration            -> next statement .. its next sibling
    nothing follows                 -> the comment itself
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple

from covenant.program.model import Comment, Module, SourceFile
from covenant.program.spans import BoundaryIndex

logger = logging.getLogger(__name__)

_IGNORE_RX = re.compile(r"^\s*(?://+|#+)?\s*@ignore(?:\s+(.+?))?\s*$")
#                                                    ^1
# 1: comma-separated codes


@dataclass(frozen=True)
class IgnoreDirective:
    codes: FrozenSet[str]
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"directive range is inverted: {self.start} > {self.end}")

    def covers(self, pos: int) -> bool:
        return self.start <= pos <= self.end


def parse_ignore(text: str) -> Optional[FrozenSet[str]]:
    """Codes named by an @ignore comment, or None when it is not a directive."""
    match = _IGNORE_RX.match(text)
    if match is None:
        return None
    codes = frozenset(
        part.strip().upper() for part in (match.group(1) or "").split(",") if part.strip()
    )
    if not codes:
        logger.debug("Dropping @ignore without codes: %r", text)
        return None
    return codes


def _trailing_start(spans: BoundaryIndex, comment: Comment, source: SourceFile) -> Optional[int]:
    """Start of the code a trailing comment covers, or None when it trails nothing."""
    candidates = spans.ended_on_line_before(comment.line, comment.pos, source.pos)
    if not candidates:
        return None
    same_line = [c for c in candidates if c.line == comment.line]
    if same_line:
        return min(same_line, key=lambda c: c.pos).pos
    # Closing line of a multi-line node: only this line is covered.
    return comment.line_start


def resolve_range(module: Module, spans: BoundaryIndex, comment: Comment, source: SourceFile) -> Tuple[int, int]:
    """(start, end) covered by a directive comment of *source*."""
    if comment.pos < source.package_pos:
        return module.start, module.end

    start = _trailing_start(spans, comment, source)
    if start is not None:
        return start, comment.end

    enclosing = spans.innermost(comment.pos)
    if enclosing is None:
        decl = spans.first_top_level_ending_after(comment.end, limit=source.end or None)
        if decl is not None and decl.pos >= comment.end:
            return comment.pos, decl.end
        return comment.pos, comment.end

    stmt = spans.next_child(enclosing, comment.end)
    if stmt is None:
        return comment.pos, comment.end
    sibling = spans.next_sibling(stmt)
    if sibling is not None:
        return stmt.pos, sibling.pos
    return stmt.pos, stmt.end


def collect_directives(module: Module, spans: Optional[BoundaryIndex] = None,
                       files: Optional[Iterable] = None) -> List[IgnoreDirective]:
    """
    Find and resolve every @ignore directive of a module.

    Args:
        module: Module whose comments are scanned.
        spans: Prebuilt boundary index (built here when omitted).
        files: Subset of the module's files to scan (all files by default).
    """
    if spans is None:
        spans = BoundaryIndex.build(module)
    directives = []
    for source in (module.files if files is None else files):
        for comment in source.comments:
            if "@ignore" not in comment.text:
                continue
            codes = parse_ignore(comment.text)
            if codes is None:
                continue
            start, end = resolve_range(module, spans, comment, source)
            directives.append(IgnoreDirective(codes, start, end))
    logger.debug("Resolved %d @ignore directives in %s", len(directives), module.path)
    return directives
