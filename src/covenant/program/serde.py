"""
Program Model Serialization - JSON <-> covenant.program.model nodes.

A host-language front end dumps its parsed and type-checked program as JSON;
the CLI loads it here. Every node is a JSON object tagged with ``_type``:

    {"_type": "module", "path": "example.com/shop", "imports": {...}, "files": [...]}
    {"_type": "assign", "op": "+=", "targets": [...], "values": [...], "pos": 120, ...}
    {"_type": "typeref", "base_name": "Order", "owning_module": "example.com/shop"}

Usage:
    from covenant.program.serde import load_program, dump_program
"""

import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

from covenant.errors import ModelError
from covenant.program import model as m
from covenant.program.provider import InMemoryProgram

_NODE_TYPES: Dict[str, type] = {
    "module": m.Module,
    "file": m.SourceFile,
    "comment": m.Comment,
    "typeref": m.TypeRef,
    "signature": m.MethodSignature,
    "ref": m.DeclRef,
    # expressions
    "ident": m.Ident,
    "selector": m.Selector,
    "index": m.Index,
    "star": m.Star,
    "unary": m.Unary,
    "binary": m.Binary,
    "call": m.Call,
    "composite": m.CompositeLit,
    "typeexpr": m.TypeExpr,
    "literal": m.Literal,
    # statements
    "assign": m.Assign,
    "incdec": m.IncDec,
    "vardecl": m.VarDecl,
    "exprstmt": m.ExprStmt,
    "return": m.Return,
    "block": m.Block,
    "if": m.If,
    "loop": m.Loop,
    # declarations
    "field": m.Field,
    "param": m.Param,
    "type": m.TypeDecl,
    "receiver": m.Receiver,
    "func": m.FuncDecl,
    "var": m.VarSpec,
}
_TYPE_NAMES = {cls: name for name, cls in _NODE_TYPES.items()}

# Fields holding enums, per class
_ENUM_FIELDS = {
    (m.DeclRef, "kind"): m.DeclKind,
    (m.TypeDecl, "kind"): m.TypeKind,
}

# Frozen value classes keep their sequences as tuples
_TUPLE_CLASSES = (m.TypeRef, m.MethodSignature, m.DeclRef)


def node_from_dict(data: Any, path: str = "$") -> Any:
    """Convert a tagged JSON value into model nodes (recursively)."""
    if isinstance(data, list):
        return [node_from_dict(item, f"{path}[{i}]") for i, item in enumerate(data)]
    if not isinstance(data, dict) or "_type" not in data:
        return data

    tag = data["_type"]
    cls = _NODE_TYPES.get(tag)
    if cls is None:
        raise ModelError(f"unknown node type {tag!r}", path)

    known = {f.name for f in dataclasses.fields(cls)}
    kwargs = {}
    for key, value in data.items():
        if key == "_type":
            continue
        if key not in known:
            raise ModelError(f"unexpected field {key!r} for {tag}", path)
        converted = node_from_dict(value, f"{path}.{key}")
        enum_cls = _ENUM_FIELDS.get((cls, key))
        if enum_cls is not None:
            try:
                converted = enum_cls(converted)
            except ValueError as e:
                raise ModelError(f"invalid {key} {converted!r}", path) from e
        if cls in _TUPLE_CLASSES and isinstance(converted, list):
            converted = tuple(converted)
        if key == "imports" and isinstance(converted, dict):
            converted = dict(converted)
        kwargs[key] = converted

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ModelError(f"cannot build {tag}: {e}", path) from e


def node_to_dict(node: Any) -> Any:
    """Convert model nodes into tagged JSON-compatible values."""
    if isinstance(node, (list, tuple)):
        return [node_to_dict(item) for item in node]
    if isinstance(node, Enum):
        return node.value
    if isinstance(node, dict):
        return {k: node_to_dict(v) for k, v in node.items()}
    tag = _TYPE_NAMES.get(type(node))
    if tag is None:
        return node
    result: Dict[str, Any] = {"_type": tag}
    for f in dataclasses.fields(node):
        result[f.name] = node_to_dict(getattr(node, f.name))
    return result


def load_program(source: Union[str, Path, Dict[str, Any]]) -> InMemoryProgram:
    """
    Load a Program Model dump.

    Args:
        source: Path to a JSON file, or an already parsed dict of the form
            {"modules": [<module>, ...]}

    Raises:
        ModelError: If the document is not a valid Program Model dump.
    """
    if isinstance(source, (str, Path)):
        try:
            data = json.loads(Path(source).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ModelError(f"invalid JSON: {e}", str(source)) from e
    else:
        data = source

    if not isinstance(data, dict) or not isinstance(data.get("modules"), list):
        raise ModelError("expected an object with a 'modules' list")

    modules: List[m.Module] = []
    for i, raw in enumerate(data["modules"]):
        mod = node_from_dict(raw, f"$.modules[{i}]")
        if not isinstance(mod, m.Module):
            raise ModelError("expected a module node", f"$.modules[{i}]")
        modules.append(mod)
    return InMemoryProgram(modules)


def dump_program(program: InMemoryProgram) -> str:
    """Serialize every module of *program* to a JSON document."""
    modules = [program.module(p) for p in program.module_paths()]
    return json.dumps({"modules": [node_to_dict(mod) for mod in modules]}, indent=2)
