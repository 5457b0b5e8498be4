"""Structural analysis of Swift native modules."""

from .extractor import ModuleDefinitionExtractor, StructuralMismatch
from .structure_index import StructureIndex, ToolInvocationError
from .view import ViewDefinitionResolver

__all__ = [
    "ModuleDefinitionExtractor",
    "StructuralMismatch",
    "StructureIndex",
    "ToolInvocationError",
    "ViewDefinitionResolver",
]
