"""Mapping of Swift type names onto stub type descriptors."""

from __future__ import annotations

from typing import Dict, Optional

from .models import ArrayOf, Primitive, Reference, TypeDescriptor, Unknown, Void

UNKNOWN_MARKER = "unknown"

# Swift primitive -> TypeScript keyword
PRIMITIVE_TYPES: Dict[str, str] = {
    "String": "string",
    "Bool": "boolean",
    "Int": "number",
    "Float": "number",
    "Double": "number",
}


def is_array(type_name: str) -> bool:
    return type_name.startswith("[") and type_name.endswith("]")


def unwrap_array(type_name: str) -> str:
    """Strip exactly one pair of enclosing brackets, if present."""
    if not is_array(type_name):
        return type_name
    return type_name[1:-1]


class TypeMapper:
    """Total mapping from type-name strings to :mod:`nativestub.models` descriptors."""

    def map(self, type_name: Optional[str]) -> TypeDescriptor:
        if not type_name:
            return Void()
        if is_array(type_name):
            return ArrayOf(self.map(unwrap_array(type_name)))
        if type_name in PRIMITIVE_TYPES:
            return Primitive(type_name)
        if type_name == UNKNOWN_MARKER:
            return Unknown()
        return Reference(type_name)


def innermost(descriptor: TypeDescriptor) -> TypeDescriptor:
    while isinstance(descriptor, ArrayOf):
        descriptor = descriptor.element
    return descriptor


def ts_keyword(descriptor: Primitive) -> str:
    return PRIMITIVE_TYPES[descriptor.name]


def to_typescript(descriptor: TypeDescriptor) -> str:
    if isinstance(descriptor, Primitive):
        return ts_keyword(descriptor)
    if isinstance(descriptor, ArrayOf):
        return f"{to_typescript(descriptor.element)}[]"
    if isinstance(descriptor, Reference):
        return descriptor.name
    if isinstance(descriptor, Unknown):
        return "any"
    return "void"


__all__ = [
    "PRIMITIVE_TYPES",
    "TypeMapper",
    "UNKNOWN_MARKER",
    "innermost",
    "is_array",
    "to_typescript",
    "ts_keyword",
    "unwrap_array",
]
