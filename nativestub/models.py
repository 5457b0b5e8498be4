"""Core data models shared across nativestub components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

CLOSURE_KIND = "source.lang.swift.expr.closure"
PARAMETER_KIND = "source.lang.swift.decl.var.parameter"
CALL_KIND = "source.lang.swift.expr.call"
ARGUMENT_KIND = "source.lang.swift.expr.argument"
MODULE_DEFINITION_TYPENAME = "ModuleDefinition"


class NodeShape(Enum):
    """The node shapes the extractor knows how to consume."""

    MODULE_DEFINITION = "module_definition"
    CLOSURE = "closure"
    PARAMETER = "parameter"
    CALL = "call"
    ARGUMENT = "argument"
    UNRECOGNIZED = "unrecognized"


def _shape_of(kind: Optional[str], typename: Optional[str]) -> NodeShape:
    if typename == MODULE_DEFINITION_TYPENAME:
        return NodeShape.MODULE_DEFINITION
    if kind == CLOSURE_KIND:
        return NodeShape.CLOSURE
    if kind == PARAMETER_KIND:
        return NodeShape.PARAMETER
    if kind == CALL_KIND:
        return NodeShape.CALL
    if kind == ARGUMENT_KIND:
        return NodeShape.ARGUMENT
    return NodeShape.UNRECOGNIZED


@dataclass(frozen=True)
class StructureNode:
    """One node of the declaration tree reported by the structure tool."""

    kind: Optional[str]
    typename: Optional[str]
    name: Optional[str]
    offset: Optional[int]
    length: Optional[int]
    children: Tuple["StructureNode", ...] = ()
    shape: NodeShape = NodeShape.UNRECOGNIZED

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StructureNode":
        """Narrow a raw ``key.*`` mapping (and its substructure) into nodes."""
        kind = _optional_str(payload.get("key.kind"))
        typename = _optional_str(payload.get("key.typename"))
        raw_children = payload.get("key.substructure")
        children: Tuple[StructureNode, ...] = ()
        if isinstance(raw_children, list):
            children = tuple(
                cls.from_payload(child) for child in raw_children if isinstance(child, Mapping)
            )
        return cls(
            kind=kind,
            typename=typename,
            name=_optional_str(payload.get("key.name")),
            offset=_optional_int(payload.get("key.offset")),
            length=_optional_int(payload.get("key.length")),
            children=children,
            shape=_shape_of(kind, typename),
        )

    @property
    def has_substructure(self) -> bool:
        return bool(self.children)

    def child(self, index: int) -> Optional["StructureNode"]:
        if 0 <= index < len(self.children):
            return self.children[index]
        return None


@dataclass(frozen=True)
class SourceFile:
    """A Swift source file; offsets reported by the tool index its UTF-8 bytes."""

    path: Path
    content: str

    @classmethod
    def load(cls, path: Path) -> "SourceFile":
        return cls(path=path, content=path.read_text(encoding="utf-8"))

    @cached_property
    def _encoded(self) -> bytes:
        return self.content.encode("utf-8")

    def identifier_at(self, node: StructureNode) -> Optional[str]:
        """Return the text covered by ``node`` with string quotes removed."""
        if node.offset is None or node.length is None:
            return None
        start = node.offset
        end = start + node.length
        text = self._encoded[start:end].decode("utf-8", errors="replace")
        return text.replace('"', "")


@dataclass(frozen=True)
class Primitive:
    name: str

    @property
    def spelling(self) -> str:
        return self.name


@dataclass(frozen=True)
class ArrayOf:
    element: "TypeDescriptor"

    @property
    def spelling(self) -> str:
        return f"[{self.element.spelling}]"


@dataclass(frozen=True)
class Reference:
    name: str

    @property
    def spelling(self) -> str:
        return self.name


@dataclass(frozen=True)
class Unknown:
    @property
    def spelling(self) -> str:
        return "unknown"


@dataclass(frozen=True)
class Void:
    @property
    def spelling(self) -> Optional[str]:
        return None


TypeDescriptor = Union[Primitive, ArrayOf, Reference, Unknown, Void]


@dataclass(frozen=True)
class ParameterInfo:
    name: Optional[str]
    type: TypeDescriptor

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "typename": self.type.spelling}


@dataclass(frozen=True)
class FunctionSignature:
    """Parameters and return type of a declaration.

    ``raw`` keeps the unparsed cursor-info payload when the tool returned no
    annotated declaration for the requested offset.
    """

    parameters: Tuple[ParameterInfo, ...] = ()
    return_type: TypeDescriptor = field(default_factory=Void)
    raw: Optional[Mapping[str, Any]] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameters": [parameter.to_dict() for parameter in self.parameters],
            "returnType": self.return_type.spelling,
        }


@dataclass(frozen=True)
class Declaration:
    """A function, async function, property, prop or lifecycle hook."""

    name: Optional[str]
    signature: FunctionSignature

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "types": self.signature.to_dict()}


@dataclass(frozen=True)
class EventDeclaration:
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name}


@dataclass(frozen=True)
class ModuleDefinition:
    """Normalized surface of one native module."""

    name: str
    functions: Tuple[Declaration, ...] = ()
    async_functions: Tuple[Declaration, ...] = ()
    events: Tuple[EventDeclaration, ...] = ()
    properties: Tuple[Declaration, ...] = ()
    props: Tuple[Declaration, ...] = ()
    on_create: Tuple[Declaration, ...] = ()
    view: Optional["ModuleDefinition"] = None

    def declarations(self) -> List[Declaration]:
        """Every signature-carrying declaration of this module, nested view excluded."""
        return [
            *self.functions,
            *self.async_functions,
            *self.properties,
            *self.props,
            *self.on_create,
        ]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "functions": [decl.to_dict() for decl in self.functions],
            "asyncFunctions": [decl.to_dict() for decl in self.async_functions],
            "events": [event.to_dict() for event in self.events],
            "properties": [decl.to_dict() for decl in self.properties],
            "props": [decl.to_dict() for decl in self.props],
            "onCreate": [decl.to_dict() for decl in self.on_create],
            "view": self.view.to_dict() if self.view is not None else None,
        }
        return payload


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _optional_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, int) else None


__all__ = [
    "ArrayOf",
    "Declaration",
    "EventDeclaration",
    "FunctionSignature",
    "ModuleDefinition",
    "NodeShape",
    "ParameterInfo",
    "Primitive",
    "Reference",
    "SourceFile",
    "StructureNode",
    "TypeDescriptor",
    "Unknown",
    "Void",
]
