"""Resolution of the nested ``View`` definition inside a module."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import ModuleDefinition, SourceFile, StructureNode
from .extractor import VIEW, StructuralMismatch, omit_view_parameter

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .extractor import ModuleDefinitionExtractor

# View(ViewType.self) { Prop(...) ... }: second argument -> closure -> body -> declarations
_VIEW_BODY_PATH: Tuple[int, ...] = (1, 0, 0)


class ViewDefinitionResolver:
    """Extracts the one-level nested view definition of a module."""

    def __init__(self, extractor: "ModuleDefinitionExtractor") -> None:
        self.extractor = extractor
        self.logger = get_logger("analysis.view")

    def resolve_view(
        self, module_root: Sequence[StructureNode], file: SourceFile
    ) -> Optional[ModuleDefinition]:
        # Only the first View is read; further View declarations are ignored.
        view_node = next((node for node in module_root if node.name == VIEW), None)
        if view_node is None:
            return None
        try:
            body = self.view_body(view_node)
        except StructuralMismatch as exc:
            self.extractor.diagnostics.warn(f"Could not parse view definition: {exc}", file.path)
            return None

        nested = self.extractor.extract(body, file, default_name=self._view_name(view_node, file))
        return replace(nested, view=None)

    @staticmethod
    def view_body(view_node: StructureNode) -> Sequence[StructureNode]:
        node = view_node
        for index in _VIEW_BODY_PATH:
            child = node.child(index)
            if child is None:
                raise StructuralMismatch("view declarations are only read from a closure body")
            node = child
        if not node.has_substructure:
            raise StructuralMismatch("view closure body has no declarations")
        return node.children

    @staticmethod
    def _view_name(view_node: StructureNode, file: SourceFile) -> Optional[str]:
        type_node = view_node.child(0)
        if type_node is None:
            return None
        text = file.identifier_at(type_node)
        if not text:
            return None
        return text.strip().removesuffix(".self") or None


__all__ = ["ViewDefinitionResolver", "omit_view_parameter"]
