"""
Position-sorted boundary index of declarations and statements.

Built once per module and then queried with binary search, so resolving the
scope of a comment never re-walks the tree. Every indexed node belongs to
exactly one block (a file's declaration list, a function body, a branch of an
``if``, a struct's field list); siblings are the other members of that block.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from covenant.program.model import FuncDecl, Module, Stmt, TypeDecl


@dataclass(frozen=True)
class Boundary:
    pos: int
    end: int
    line: int
    end_line: int
    depth: int
    block: int          # id of the block this node belongs to
    index: int          # position inside that block
    child_blocks: Tuple[int, ...] = ()

    def contains(self, pos: int) -> bool:
        return self.pos <= pos < self.end


class BoundaryIndex:
    """Sorted spans of a module's declarations and statements."""

    def __init__(self, boundaries: List[Boundary], blocks: Dict[int, List[Boundary]], top_block: List[Boundary]):
        self._by_pos = sorted(boundaries, key=lambda b: (b.pos, b.depth))
        self._pos_keys = [b.pos for b in self._by_pos]
        self._by_end = sorted(boundaries, key=lambda b: (b.end, -b.pos))
        self._end_keys = [b.end for b in self._by_end]
        self._blocks = blocks
        self._top = sorted(top_block, key=lambda b: b.pos)
        self._top_ends = [b.end for b in self._top]

    @classmethod
    def build(cls, module: Module) -> "BoundaryIndex":
        builder = _Builder()
        top: List[Boundary] = []
        for source in sorted(module.files, key=lambda f: f.pos):
            block_id = builder.new_block()
            for i, decl in enumerate(sorted(source.decls, key=lambda d: d.pos)):
                child_blocks: List[List] = []
                if isinstance(decl, FuncDecl):
                    child_blocks.append(decl.body)
                elif isinstance(decl, TypeDecl):
                    child_blocks.append(decl.fields)
                top.append(builder.add(decl, 0, block_id, i, child_blocks))
        return cls(builder.boundaries, builder.blocks, top)

    def __len__(self) -> int:
        return len(self._by_pos)

    def innermost(self, pos: int) -> Optional[Boundary]:
        """Deepest indexed node whose span contains *pos*."""
        i = bisect_right(self._pos_keys, pos) - 1
        while i >= 0:
            candidate = self._by_pos[i]
            if candidate.contains(pos):
                return candidate
            i -= 1
        return None

    def first_top_level_ending_after(self, pos: int, limit: Optional[int] = None) -> Optional[Boundary]:
        """First declaration whose end lies after *pos* and which starts before *limit*."""
        i = bisect_right(self._top_ends, pos)
        if i >= len(self._top):
            return None
        decl = self._top[i]
        if limit is not None and decl.pos >= limit:
            return None
        return decl

    def next_child(self, parent: Boundary, pos: int) -> Optional[Boundary]:
        """First direct child of *parent* (any of its blocks) starting after *pos*."""
        best = None
        for block_id in parent.child_blocks:
            members = self._blocks.get(block_id, [])
            starts = [m.pos for m in members]
            i = bisect_right(starts, pos)
            if i < len(members) and (best is None or members[i].pos < best.pos):
                best = members[i]
        return best

    def next_sibling(self, node: Boundary) -> Optional[Boundary]:
        members = self._blocks.get(node.block, [])
        if node.index + 1 < len(members):
            return members[node.index + 1]
        return None

    def ended_on_line_before(self, line: int, pos: int, floor: int = 0) -> List[Boundary]:
        """
        Nodes that end on *line* at or before *pos* (trailing-comment candidates).

        Line numbers restart in every file, so the scan stops at *floor*, the
        start offset of the comment's file.
        """
        result = []
        i = bisect_left(self._end_keys, pos + 1) - 1
        while i >= 0:
            candidate = self._by_end[i]
            if candidate.end <= floor:
                break
            if candidate.pos < floor or candidate.end_line > line:
                i -= 1
                continue
            if candidate.end_line < line:
                break
            result.append(candidate)
            i -= 1
        return result


class _Builder:
    def __init__(self):
        self.boundaries: List[Boundary] = []
        self.blocks: Dict[int, List[Boundary]] = {}

    def new_block(self) -> int:
        block_id = len(self.blocks)
        self.blocks[block_id] = []
        return block_id

    def add(self, node, depth: int, block_id: int, index: int, child_lists: List[List]) -> Boundary:
        child_ids = []
        for members in child_lists:
            child_id = self.new_block()
            child_ids.append(child_id)
            for j, child in enumerate(sorted(members, key=lambda n: n.pos)):
                nested = child.blocks() if isinstance(child, Stmt) else []
                self.add(child, depth + 1, child_id, j, nested)
        boundary = Boundary(
            pos=node.pos,
            end=node.end,
            line=node.line,
            end_line=node.end_line or node.line,
            depth=depth,
            block=block_id,
            index=index,
            child_blocks=tuple(child_ids),
        )
        self.boundaries.append(boundary)
        self.blocks[block_id].append(boundary)
        return boundary
