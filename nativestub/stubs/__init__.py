"""TypeScript stub generation."""

from .generator import (
    FunctionStub,
    MockStubGenerator,
    StubUnit,
    TypeAliasStub,
    stub_value_for,
    types_to_stub,
)

__all__ = [
    "FunctionStub",
    "MockStubGenerator",
    "StubUnit",
    "TypeAliasStub",
    "stub_value_for",
    "types_to_stub",
]
