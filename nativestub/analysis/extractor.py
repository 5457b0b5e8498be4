"""Extraction of module definitions from sourcekitten declaration trees."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ..diagnostics import Diagnostics
from ..logging import get_logger
from ..models import (
    Declaration,
    EventDeclaration,
    FunctionSignature,
    ModuleDefinition,
    NodeShape,
    ParameterInfo,
    SourceFile,
    StructureNode,
    Unknown,
)
from ..types import UNKNOWN_MARKER, TypeMapper
from .structure_index import StructureIndex, ToolInvocationError

NAME = "Name"
FUNCTION = "Function"
ASYNC_FUNCTION = "AsyncFunction"
EVENTS = "Events"
PROPERTY = "Property"
PROP = "Prop"
ON_CREATE = "OnCreate"
VIEW = "View"

# Props receive the view instance as their first parameter.
VIEW_PARAMETER = "view"


class StructuralMismatch(LookupError):
    """Raised when a node does not have the shape the extractor expects."""


class ModuleDefinitionExtractor:
    """Classifies the children of a ``ModuleDefinition`` node into declarations."""

    def __init__(
        self,
        index: StructureIndex,
        *,
        diagnostics: Diagnostics | None = None,
        type_mapper: TypeMapper | None = None,
    ) -> None:
        # Imported here: the view resolver calls back into this extractor.
        from .view import ViewDefinitionResolver

        self.index = index
        self.diagnostics = diagnostics or Diagnostics()
        self.type_mapper = type_mapper or index.type_mapper
        self.view_resolver = ViewDefinitionResolver(self)
        self.logger = get_logger("analysis.extractor")

    def find_module_root(self, tree: StructureNode | None) -> Optional[Sequence[StructureNode]]:
        """Depth-first search for the first well-formed module definition marker."""
        if tree is None:
            return None
        if tree.shape is NodeShape.MODULE_DEFINITION:
            if tree.has_substructure:
                return tree.children
            self.diagnostics.warn("Found ModuleDefinition but it is malformed")
            return None
        for child in tree.children:
            found = self.find_module_root(child)
            if found:
                return found
        return None

    def extract(
        self,
        module_root: Sequence[StructureNode],
        file: SourceFile,
        *,
        default_name: str | None = None,
    ) -> ModuleDefinition:
        self.logger.debug("Extracting module definition from %s", file.path)
        name = self._module_name(module_root, file, default_name)
        return ModuleDefinition(
            name=name,
            functions=tuple(self.named_declarations(FUNCTION, module_root, file)),
            async_functions=tuple(self.named_declarations(ASYNC_FUNCTION, module_root, file)),
            events=tuple(self.grouped_declarations(EVENTS, module_root, file)),
            properties=tuple(self.named_declarations(PROPERTY, module_root, file)),
            props=omit_view_parameter(self.named_declarations(PROP, module_root, file)),
            on_create=tuple(self.unnamed_declarations(ON_CREATE, module_root, file)),
            view=self.view_resolver.resolve_view(module_root, file),
        )

    def named_declarations(
        self, label: str, module_root: Sequence[StructureNode], file: SourceFile
    ) -> List[Declaration]:
        """Declarations shaped ``Label("name") { closure }`` or ``Label("name", reference)``."""
        declarations: List[Declaration] = []
        for node in _labelled(label, module_root):
            name_node = node.child(0)
            name = file.identifier_at(name_node) if name_node is not None else None
            if not name:
                self.diagnostics.warn(
                    f"{label} declaration at offset {node.offset} has no readable name", file.path
                )
                continue
            signature = self._signature_of(node.child(1), label, file)
            declarations.append(Declaration(name=name, signature=signature))
        return declarations

    def unnamed_declarations(
        self, label: str, module_root: Sequence[StructureNode], file: SourceFile
    ) -> List[Declaration]:
        return [
            Declaration(name=None, signature=self._signature_of(node.child(0), label, file))
            for node in _labelled(label, module_root)
        ]

    def grouped_declarations(
        self, label: str, module_root: Sequence[StructureNode], file: SourceFile
    ) -> List[EventDeclaration]:
        events: List[EventDeclaration] = []
        for node in _labelled(label, module_root):
            for child in node.children:
                name = file.identifier_at(child)
                if name:
                    events.append(EventDeclaration(name=name))
                else:
                    self.diagnostics.warn(
                        f"{label} entry at offset {child.offset} has no readable name", file.path
                    )
        return events

    def closure_signature(self, node: StructureNode) -> FunctionSignature:
        """Read parameter names and types straight from a closure literal.

        Closures do not spell out their return type in the structure output,
        so it is always reported as unknown.
        """
        if node.shape is NodeShape.CLOSURE:
            closure: Optional[StructureNode] = node
        else:
            closure = next(
                (child for child in node.children if child.shape is NodeShape.CLOSURE), None
            )
        if closure is None:
            raise StructuralMismatch("expected a closure among the declaration's arguments")
        parameters = tuple(
            ParameterInfo(name=child.name, type=self.type_mapper.map(child.typename))
            for child in closure.children
            if child.shape is NodeShape.PARAMETER
        )
        return FunctionSignature(
            parameters=parameters, return_type=self.type_mapper.map(UNKNOWN_MARKER)
        )

    def _signature_of(
        self, node: StructureNode | None, label: str, file: SourceFile
    ) -> FunctionSignature:
        if node is None:
            self.diagnostics.warn(f"{label} declaration has no body to read types from", file.path)
            return FunctionSignature()
        if node.has_substructure:
            try:
                return self.closure_signature(node)
            except StructuralMismatch as exc:
                self.diagnostics.warn(f"{label} at offset {node.offset}: {exc}", file.path)
                return FunctionSignature(return_type=Unknown())
        try:
            return self.index.resolve_type(node, file)
        except ToolInvocationError as exc:
            self.diagnostics.error(
                f"Type lookup for {label} at offset {node.offset} failed: {exc}", file.path
            )
            return FunctionSignature(return_type=Unknown())

    def _module_name(
        self, module_root: Sequence[StructureNode], file: SourceFile, default_name: str | None
    ) -> str:
        for node in _labelled(NAME, module_root):
            name_node = node.child(0)
            name = file.identifier_at(name_node) if name_node is not None else None
            if name:
                return name
        if default_name:
            return default_name
        fallback = file.path.stem
        self.diagnostics.warn(f"Module definition has no Name; using '{fallback}'", file.path)
        return fallback


def omit_view_parameter(props: Sequence[Declaration]) -> Tuple[Declaration, ...]:
    """Drop the leading view-context parameter, and any parameter named ``view``."""
    stripped = []
    for prop in props:
        parameters = tuple(
            parameter
            for position, parameter in enumerate(prop.signature.parameters)
            if position != 0 and parameter.name != VIEW_PARAMETER
        )
        stripped.append(replace(prop, signature=replace(prop.signature, parameters=parameters)))
    return tuple(stripped)


def _labelled(label: str, nodes: Sequence[StructureNode]) -> List[StructureNode]:
    return [node for node in nodes if node.name == label]


__all__ = ["ModuleDefinitionExtractor", "StructuralMismatch", "omit_view_parameter"]
