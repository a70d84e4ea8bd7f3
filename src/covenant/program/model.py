"""
Program Model node types.

A host-language front end (parser + type checker) produces these nodes; the
rule engine only reads them. Positions are integer offsets unique within a
module: every source file of a module occupies a disjoint [pos, end] range.

Expression nodes carry the type the host type checker inferred for them
(``type``) and, for names, the declaration they resolve to (``ref``).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class DeclKind(Enum):
    """Kinds of named objects a reference can resolve to."""
    TYPE = "type"
    FUNC = "func"
    METHOD = "method"
    VAR = "var"
    MODULE = "module"


class TypeKind(Enum):
    STRUCT = "struct"
    INTERFACE = "interface"
    OTHER = "other"


class ReceiverKind(Enum):
    VALUE = "value"
    POINTER = "pointer"


@dataclass(frozen=True)
class TypeRef:
    """Structural reference to a type: name, owner module and two flags."""
    base_name: str
    owning_module: str = ""       # "" for builtin/basic types
    is_indirect: bool = False     # pointer
    is_variadic: bool = False

    def elem(self) -> "TypeRef":
        """Unwrap one level of indirection."""
        if not self.is_indirect:
            return self
        return replace(self, is_indirect=False)

    @property
    def is_named(self) -> bool:
        return bool(self.owning_module)

    def __str__(self) -> str:
        prefix = "..." if self.is_variadic else ""
        star = "*" if self.is_indirect else ""
        if self.owning_module:
            short = self.owning_module.rsplit("/", 1)[-1]
            return f"{prefix}{star}{short}.{self.base_name}"
        return f"{prefix}{star}{self.base_name}"


@dataclass(frozen=True)
class MethodSignature:
    name: str
    params: Tuple[TypeRef, ...] = ()
    results: Tuple[TypeRef, ...] = ()

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        text = f"{self.name}({params})"
        if len(self.results) == 1:
            text += f" {self.results[0]}"
        elif self.results:
            text += " (" + ", ".join(str(r) for r in self.results) + ")"
        return text


@dataclass(frozen=True)
class DeclRef:
    """Identity of a declaration: module path + name (+ receiver type for methods)."""
    module_path: str
    name: str
    kind: DeclKind = DeclKind.TYPE
    receiver: str = ""
    pos: int = field(default=0, compare=False)


@dataclass
class Node:
    """Base class for every positioned node."""
    pos: int = 0
    end: int = 0
    line: int = 0
    end_line: int = 0


@dataclass
class Comment(Node):
    text: str = ""
    # Offset of the comment from the start of its line
    col: int = 0

    @property
    def line_start(self) -> int:
        return self.pos - self.col


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass
class Expr(Node):
    type: Optional[TypeRef] = None

    def children(self) -> List["Expr"]:
        return []


@dataclass
class Ident(Expr):
    name: str = ""
    ref: Optional[DeclRef] = None


@dataclass
class Selector(Expr):
    """target.name - a field access, method value, or module-qualified name."""
    target: Optional[Expr] = None
    name: str = ""
    ref: Optional[DeclRef] = None

    def children(self) -> List[Expr]:
        return [self.target] if self.target is not None else []


@dataclass
class Index(Expr):
    target: Optional[Expr] = None
    index: Optional[Expr] = None

    def children(self) -> List[Expr]:
        return [e for e in (self.target, self.index) if e is not None]


@dataclass
class Star(Expr):
    """Dereference: *target"""
    target: Optional[Expr] = None

    def children(self) -> List[Expr]:
        return [self.target] if self.target is not None else []


@dataclass
class Unary(Expr):
    op: str = ""
    operand: Optional[Expr] = None

    def children(self) -> List[Expr]:
        return [self.operand] if self.operand is not None else []


@dataclass
class Binary(Expr):
    op: str = ""
    left: Optional[Expr] = None
    right: Optional[Expr] = None

    def children(self) -> List[Expr]:
        return [e for e in (self.left, self.right) if e is not None]


@dataclass
class Call(Expr):
    func: Optional[Expr] = None
    args: List[Expr] = field(default_factory=list)

    def children(self) -> List[Expr]:
        head = [self.func] if self.func is not None else []
        return head + list(self.args)


@dataclass
class CompositeLit(Expr):
    """T{...} - ``type`` is the literal's type."""
    elements: List[Expr] = field(default_factory=list)

    def children(self) -> List[Expr]:
        return list(self.elements)


@dataclass
class TypeExpr(Expr):
    """A type used in expression position, e.g. the argument of new(T)."""


@dataclass
class Literal(Expr):
    value: str = ""


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass
class Stmt(Node):
    def exprs(self) -> List[Expr]:
        return []

    def blocks(self) -> List[List["Stmt"]]:
        return []


@dataclass
class Assign(Stmt):
    """targets op values - op is "=", ":=" or a compound operator such as "+="."""
    targets: List[Expr] = field(default_factory=list)
    values: List[Expr] = field(default_factory=list)
    op: str = "="

    @property
    def is_compound(self) -> bool:
        return self.op not in ("=", ":=")

    def exprs(self) -> List[Expr]:
        return list(self.targets) + list(self.values)


@dataclass
class IncDec(Stmt):
    target: Optional[Expr] = None
    op: str = "++"

    def exprs(self) -> List[Expr]:
        return [self.target] if self.target is not None else []


@dataclass
class VarDecl(Stmt):
    """var name1, name2 T [= values]"""
    names: List[Ident] = field(default_factory=list)
    declared_type: Optional[TypeRef] = None
    values: List[Expr] = field(default_factory=list)

    def exprs(self) -> List[Expr]:
        return list(self.values)


@dataclass
class ExprStmt(Stmt):
    expr: Optional[Expr] = None

    def exprs(self) -> List[Expr]:
        return [self.expr] if self.expr is not None else []


@dataclass
class Return(Stmt):
    values: List[Expr] = field(default_factory=list)

    def exprs(self) -> List[Expr]:
        return list(self.values)


@dataclass
class Block(Stmt):
    body: List[Stmt] = field(default_factory=list)

    def blocks(self) -> List[List[Stmt]]:
        return [self.body]


@dataclass
class If(Stmt):
    cond: Optional[Expr] = None
    body: List[Stmt] = field(default_factory=list)
    orelse: List[Stmt] = field(default_factory=list)

    def exprs(self) -> List[Expr]:
        return [self.cond] if self.cond is not None else []

    def blocks(self) -> List[List[Stmt]]:
        return [self.body, self.orelse]


@dataclass
class Loop(Stmt):
    """for/range loop - header expressions plus a body."""
    header: List[Expr] = field(default_factory=list)
    body: List[Stmt] = field(default_factory=list)

    def exprs(self) -> List[Expr]:
        return list(self.header)

    def blocks(self) -> List[List[Stmt]]:
        return [self.body]


# ============================================================================
# DECLARATIONS
# ============================================================================

@dataclass
class Decl(Node):
    name: str = ""
    doc: List[Comment] = field(default_factory=list)


@dataclass
class Field(Decl):
    type: Optional[TypeRef] = None


@dataclass
class Param(Node):
    name: str = ""
    type: Optional[TypeRef] = None


@dataclass
class TypeDecl(Decl):
    kind: TypeKind = TypeKind.STRUCT
    fields: List[Field] = field(default_factory=list)
    # Required methods, for interfaces only
    methods: List[MethodSignature] = field(default_factory=list)


@dataclass
class Receiver(Node):
    name: str = ""
    type: Optional[TypeRef] = None

    @property
    def kind(self) -> ReceiverKind:
        if self.type is not None and self.type.is_indirect:
            return ReceiverKind.POINTER
        return ReceiverKind.VALUE


@dataclass
class FuncDecl(Decl):
    receiver: Optional[Receiver] = None
    params: List[Param] = field(default_factory=list)
    results: List[TypeRef] = field(default_factory=list)
    variadic: bool = False
    body: List[Stmt] = field(default_factory=list)

    @property
    def is_method(self) -> bool:
        return self.receiver is not None

    @property
    def receiver_type_name(self) -> str:
        if self.receiver is None or self.receiver.type is None:
            return ""
        return self.receiver.type.base_name

    def signature(self) -> MethodSignature:
        params = []
        for i, p in enumerate(self.params):
            t = p.type or TypeRef("")
            if self.variadic and i == len(self.params) - 1:
                t = replace(t, is_variadic=True)
            params.append(t)
        return MethodSignature(self.name, tuple(params), tuple(self.results))


@dataclass
class VarSpec(Decl):
    """Module-level variable/constant declaration."""
    stmt: Optional[VarDecl] = None


@dataclass
class SourceFile(Node):
    name: str = ""
    is_test: bool = False
    # Position of the module header clause; comments before it apply module-wide
    package_pos: int = 0
    decls: List[Decl] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)


@dataclass
class Module:
    path: str
    name: str = ""
    files: List[SourceFile] = field(default_factory=list)
    # import alias -> full module path
    imports: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            self.name = self.path.rsplit("/", 1)[-1]

    @property
    def start(self) -> int:
        return min((f.pos for f in self.files), default=0)

    @property
    def end(self) -> int:
        return max((f.end for f in self.files), default=0)

    def iter_decls(self) -> Iterator[Tuple[SourceFile, Decl]]:
        for f in self.files:
            for d in f.decls:
                yield f, d

    def type_decls(self) -> Iterator[TypeDecl]:
        for _, d in self.iter_decls():
            if isinstance(d, TypeDecl):
                yield d

    def func_decls(self) -> Iterator[FuncDecl]:
        for _, d in self.iter_decls():
            if isinstance(d, FuncDecl):
                yield d


# ============================================================================
# TRAVERSAL
# ============================================================================

def walk_exprs(expr: Optional[Expr]) -> Iterator[Expr]:
    """Pre-order walk over an expression tree."""
    if expr is None:
        return
    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children()))


def walk_stmts(stmts: List[Stmt]) -> Iterator[Stmt]:
    """Pre-order walk over statements, descending into nested blocks."""
    for stmt in stmts:
        yield stmt
        for block in stmt.blocks():
            yield from walk_stmts(block)
