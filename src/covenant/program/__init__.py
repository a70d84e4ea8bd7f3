"""
covenant.program - Program Model

Node types produced by a host-language front end, the ProgramModel interface
the rule engine reads through, and the JSON loader used by the CLI.
"""

from covenant.program.model import (
    DeclKind,
    DeclRef,
    MethodSignature,
    Module,
    ReceiverKind,
    SourceFile,
    TypeKind,
    TypeRef,
)
from covenant.program.provider import (
    InMemoryProgram,
    MethodEntry,
    ProgramModel,
    normalize_module_path,
)

__all__ = [
    "DeclKind",
    "DeclRef",
    "MethodSignature",
    "Module",
    "ReceiverKind",
    "SourceFile",
    "TypeKind",
    "TypeRef",
    "InMemoryProgram",
    "MethodEntry",
    "ProgramModel",
    "normalize_module_path",
]
