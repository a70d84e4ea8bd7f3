"""
Program Model builders for tests.

Positions follow ``line * 100 + column`` so that a node's line can be read
straight off its offset. Files of one module use disjoint line ranges;
``renumber`` restarts a file's line numbers the way a front end reports them.
"""

import dataclasses

from covenant.program.model import (
    Assign,
    Call,
    Comment,
    CompositeLit,
    DeclKind,
    DeclRef,
    ExprStmt,
    Field,
    FuncDecl,
    Ident,
    IncDec,
    Index,
    Literal,
    MethodSignature,
    Module,
    Param,
    Receiver,
    Selector,
    SourceFile,
    Star,
    TypeDecl,
    TypeExpr,
    TypeKind,
    TypeRef,
    VarDecl,
)
from covenant.program.provider import InMemoryProgram

SHOP = "example.com/shop"
APP = "example.com/app"
IO = "example.com/io"


def span(line, col=0, end_line=None, end_col=60):
    end_line = end_line or line
    return dict(pos=line * 100 + col, end=end_line * 100 + end_col, line=line, end_line=end_line)


def T(name, module=SHOP, ptr=False, variadic=False):
    return TypeRef(name, module, ptr, variadic)


def basic(name):
    return TypeRef(name)


def comment(text, line, col=0):
    return Comment(text=text, pos=line * 100 + col, end=line * 100 + col + len(text),
                   line=line, end_line=line, col=col)


def doc(line, *texts):
    """Doc comment block ending on the line before *line*."""
    first = line - len(texts)
    return [comment(t, first + i) for i, t in enumerate(texts)]


def ident(name, line, col=4, type=None, ref=None):
    return Ident(name=name, type=type, ref=ref, **span(line, col, end_col=col + len(name)))


def sel(var, var_type, name, line, col=4, ref=None):
    """var.name where var has type var_type."""
    target = ident(var, line, col, type=var_type)
    return Selector(target=target, name=name, ref=ref, **span(line, col, end_col=col + len(var) + 1 + len(name)))


def assign(target, line, op="=", value=None, col=4):
    value = value or Literal(value="1", **span(line, 30))
    return Assign(targets=[target], values=[value], op=op, **span(line, col))


def incdec(target, line, op="++", col=4):
    return IncDec(target=target, op=op, **span(line, col))


def index_of(target, line, col=4):
    return Index(target=target, index=Literal(value="0", **span(line, 20)), **span(line, col))


def star(name, line, col=4, type=None):
    return Star(target=ident(name, line, col + 1, type=type), **span(line, col))


def composite(type_ref, line, col=8):
    return CompositeLit(type=type_ref, **span(line, col))


def new_call(type_ref, line, col=8):
    return Call(func=ident("new", line, col), args=[TypeExpr(type=type_ref, **span(line, col + 4))],
                type=TypeRef(type_ref.base_name, type_ref.owning_module, True), **span(line, col))


def call(func_expr, line, col=4, args=None):
    return Call(func=func_expr, args=args or [], **span(line, col))


def expr_stmt(expr, line, col=4):
    return ExprStmt(expr=expr, **span(line, col))


def var_decl(name, type_ref, line, values=None, col=4):
    return VarDecl(names=[ident(name, line, col + 4, type=type_ref)], declared_type=type_ref,
                   values=values or [], **span(line, col))


def func(name, line, end_line, body=(), receiver=None, params=(), results=(), doc_lines=(), variadic=False):
    return FuncDecl(
        name=name,
        doc=doc(line, *doc_lines) if doc_lines else [],
        receiver=receiver,
        params=list(params),
        results=list(results),
        variadic=variadic,
        body=list(body),
        **span(line, 0, end_line, 1),
    )


def method(recv_name, recv_type, name, line, end_line, body=(), params=(), results=(), doc_lines=(),
           variadic=False):
    receiver = Receiver(name=recv_name, type=recv_type, **span(line, 5))
    return func(name, line, end_line, body, receiver, params, results, doc_lines, variadic)


def param(name, type_ref, line):
    return Param(name=name, type=type_ref, **span(line, 10))


def field(name, type_ref, line, doc_lines=()):
    return Field(name=name, type=type_ref, doc=doc(line, *doc_lines) if doc_lines else [],
                 **span(line, 4))


def struct(name, line, end_line, fields=(), doc_lines=()):
    return TypeDecl(name=name, kind=TypeKind.STRUCT, fields=list(fields),
                    doc=doc(line, *doc_lines) if doc_lines else [], **span(line, 0, end_line, 1))


def interface(name, line, end_line, methods=(), doc_lines=()):
    return TypeDecl(name=name, kind=TypeKind.INTERFACE, methods=list(methods),
                    doc=doc(line, *doc_lines) if doc_lines else [], **span(line, 0, end_line, 1))


def sig(name, params=(), results=()):
    return MethodSignature(name, tuple(params), tuple(results))


def func_ref(module, name):
    return DeclRef(module, name, DeclKind.FUNC)


def method_ref(module, receiver, name):
    return DeclRef(module, name, DeclKind.METHOD, receiver)


def source(name, decls, first_line, last_line, comments=(), package_line=None, is_test=False):
    """A file spanning [first_line, last_line]; the module header sits on package_line."""
    package_line = package_line or first_line
    extra = []
    for decl in decls:
        extra.extend(decl.doc)
    return SourceFile(
        name=name,
        is_test=is_test,
        package_pos=package_line * 100,
        decls=list(decls),
        comments=sorted(list(comments) + extra, key=lambda c: c.pos),
        pos=first_line * 100,
        end=last_line * 100 + 99,
        line=first_line,
        end_line=last_line,
    )


def renumber(node, first_line):
    """
    Restart a built file's line numbers at *first_line*, keeping positions.

    Front ends number lines per file while positions stay unique across the
    module; this turns a file built on disjoint lines into one that overlaps.
    """
    delta = node.line - first_line
    _shift_lines(node, delta)
    return node


def _shift_lines(node, delta):
    if isinstance(node, list):
        for item in node:
            _shift_lines(item, delta)
        return
    if not dataclasses.is_dataclass(node) or isinstance(node, type):
        return
    for f in dataclasses.fields(node):
        value = getattr(node, f.name)
        if f.name in ("line", "end_line"):
            if value:
                setattr(node, f.name, value - delta)
        else:
            _shift_lines(value, delta)


def module(path, files, imports=None):
    return Module(path=path, files=list(files), imports=dict(imports or {}))


def program(*modules):
    return InMemoryProgram(modules)


def codes_of(violations):
    """Codes of a violation list, in order."""
    return [v.code for v in violations]


def lines_of(violations, code=None):
    return [v.line for v in violations if code is None or v.code == code]
