"""
Facts export - per-module ContractFacts as validated JSON documents.

A run can export the facts of every module it analyzed; a later run (or a run
over a different set of modules) reads them back through
ExportedFactProvider, so contracts declared in modules that are not part of
the current Program Model still apply.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from covenant.errors import ModelError
from covenant.facts.model import ContractFacts, fact_to_dict

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class RefModel(BaseModel):
    module_path: str
    name: str
    kind: Literal["type", "func", "method", "var", "module"] = "type"
    receiver: str = ""
    pos: int = 0


class ImmutableModel(BaseModel):
    kind: Literal["immutable"]
    type_ref: RefModel


class ConstructorModel(BaseModel):
    kind: Literal["constructor"]
    type_ref: RefModel
    allowed_names: list[str] = Field(default_factory=list)


class TestOnlyModel(BaseModel):
    kind: Literal["testonly"]
    testonly_kind: Literal["type", "function", "method"]
    object_ref: RefModel
    receiver_type: str = ""


class PackageOnlyModel(BaseModel):
    kind: Literal["packageonly"]
    object_ref: RefModel
    allowed_modules: list[str] = Field(default_factory=list)


class ImplementsModel(BaseModel):
    kind: Literal["implements"]
    type_ref: RefModel
    interface_ref: RefModel
    pointer_required: bool = False
    module_alias: str = ""
    module_found: bool = True


class MutableFieldModel(BaseModel):
    kind: Literal["mutable"]
    type_ref: RefModel
    field_name: str


FactModel = Annotated[
    Union[
        ImmutableModel,
        ConstructorModel,
        TestOnlyModel,
        PackageOnlyModel,
        ImplementsModel,
        MutableFieldModel,
    ],
    Field(discriminator="kind"),
]


class FactsDocument(BaseModel):
    """
    Exported facts of one module.

    Attributes:
        version: Document format version
        module_path: Normalized path of the declaring module
        facts: Facts tagged by ``kind``
    """
    version: int = FORMAT_VERSION
    module_path: str
    facts: list[FactModel] = Field(default_factory=list)

    def to_facts(self) -> ContractFacts:
        return ContractFacts.from_dict(self.model_dump())

    @classmethod
    def from_facts(cls, facts: ContractFacts) -> "FactsDocument":
        return cls.model_validate({
            "module_path": facts.module_path,
            "facts": [fact_to_dict(f) for f in facts],
        })


def dumps_facts(facts: ContractFacts) -> str:
    return FactsDocument.from_facts(facts).model_dump_json(indent=2)


def loads_facts(text: Union[str, bytes], source: str = "") -> ContractFacts:
    """Parse and validate a facts document."""
    try:
        document = FactsDocument.model_validate_json(text)
    except ValidationError as e:
        raise ModelError(f"invalid facts document: {e}", source) from e
    if document.version != FORMAT_VERSION:
        raise ModelError(f"unsupported facts document version {document.version}", source)
    return document.to_facts()


def _file_name(module_path: str) -> str:
    return module_path.replace("/", "__") + ".json"


def write_facts_file(directory: Path, facts: ContractFacts) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / _file_name(facts.module_path)
    path.write_text(dumps_facts(facts), encoding="utf-8")
    logger.debug("Exported %d facts for %s to %s", len(facts), facts.module_path, path)
    return path


def read_facts_file(path: Path) -> ContractFacts:
    return loads_facts(path.read_text(encoding="utf-8"), str(path))


def export_all(directory: Path, bundles: List[ContractFacts]) -> List[Path]:
    """Write one document per module; returns the written paths."""
    written = [write_facts_file(directory, facts) for facts in bundles]
    logger.info("Exported facts for %d modules to %s", len(written), directory)
    return written


def facts_as_json(bundles: List[ContractFacts], module: Optional[str] = None) -> str:
    """All bundles (or the one for *module*) as a single JSON array."""
    selected = [b for b in bundles if module is None or b.module_path == module]
    data: List[Any] = [FactsDocument.from_facts(b).model_dump() for b in selected]
    return json.dumps(data, indent=2)
