"""Synthesizes TypeScript stubs from extracted module definitions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from jinja2 import Environment, FileSystemLoader

from ..diagnostics import Diagnostics
from ..logging import get_logger
from ..models import (
    ArrayOf,
    Declaration,
    ModuleDefinition,
    ParameterInfo,
    Primitive,
    Reference,
    TypeDescriptor,
    Void,
)
from ..types import innermost, to_typescript, ts_keyword

PERMISSIVE_TYPE = "any"
MODULE_TEMPLATE = "module.ts.j2"
_TS_IDENTIFIER = re.compile(r"^[A-Za-z_\$][A-Za-z0-9_\$]*$")

_STUB_LITERALS = {
    "string": "''",
    "boolean": "false",
    "number": "0",
}


@dataclass(frozen=True)
class TypeAliasStub:
    name: str
    target: str = PERMISSIVE_TYPE


@dataclass(frozen=True)
class ParameterStub:
    name: str
    type: str


@dataclass(frozen=True)
class FunctionStub:
    """One exported function with a trivially-valued body."""

    name: str
    parameters: Tuple[ParameterStub, ...]
    return_type: str
    return_value: Optional[str]
    is_async: bool = False

    @property
    def signature(self) -> str:
        return ", ".join(f"{parameter.name}: {parameter.type}" for parameter in self.parameters)


@dataclass(frozen=True)
class StubUnit:
    """Everything generated for one module, in emission order."""

    module: str
    aliases: Tuple[TypeAliasStub, ...]
    functions: Tuple[FunctionStub, ...]


def stub_value_for(descriptor: TypeDescriptor) -> Optional[str]:
    """Literal returned by a stub of this type; ``None`` means no return statement."""
    if isinstance(descriptor, Void):
        return None
    if isinstance(descriptor, ArrayOf):
        return "[]"
    if isinstance(descriptor, Primitive):
        return _STUB_LITERALS[ts_keyword(descriptor)]
    return "null"


def types_to_stub(module: ModuleDefinition) -> Set[str]:
    """Names of every non-primitive type the module's declarations mention."""
    found: Set[str] = set()
    for declaration in module.declarations():
        signature = declaration.signature
        descriptors = [parameter.type for parameter in signature.parameters]
        descriptors.append(signature.return_type)
        for descriptor in descriptors:
            inner = innermost(descriptor)
            if isinstance(inner, Reference):
                found.add(inner.name)
    return found


class MockStubGenerator:
    """Builds and writes one stub file per module definition."""

    def __init__(
        self,
        output_dir: Path,
        *,
        extension: str = "ts",
        templates_dir: Path | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.output_dir = output_dir
        self.extension = extension
        self.diagnostics = diagnostics or Diagnostics()
        self.logger = get_logger("stubs.generator")
        self._env = self._create_env(templates_dir)

    def generate(self, modules: Iterable[ModuleDefinition]) -> List[Path]:
        """Write every module; a module that cannot be written is recorded and skipped."""
        written: List[Path] = []
        for module in modules:
            unit = self.generate_module(module)
            try:
                written.append(self.write_module(module, unit))
            except OSError as exc:
                self.diagnostics.error(
                    f"Could not write stubs for {module.name}: {exc}", self.output_path(module)
                )
        return written

    def generate_module(self, module: ModuleDefinition) -> StubUnit:
        aliases = tuple(TypeAliasStub(name=name) for name in sorted(types_to_stub(module)))
        for alias in aliases:
            if not _TS_IDENTIFIER.match(alias.name):
                self.diagnostics.warn(
                    f"{module.name}: type '{alias.name}' is not a TypeScript identifier; "
                    "the generated alias will not compile"
                )
        functions = [self.generate_function(decl, is_async=False) for decl in module.functions]
        functions.extend(
            self.generate_function(decl, is_async=True) for decl in module.async_functions
        )
        return StubUnit(module=module.name, aliases=aliases, functions=tuple(functions))

    def generate_function(self, declaration: Declaration, is_async: bool = False) -> FunctionStub:
        signature = declaration.signature
        return_type = to_typescript(signature.return_type)
        if is_async:
            return_type = f"Promise<{return_type}>"
        return FunctionStub(
            name=declaration.name or "anonymous",
            parameters=_parameter_stubs(signature.parameters),
            return_type=return_type,
            return_value=stub_value_for(signature.return_type),
            is_async=is_async,
        )

    def render(self, unit: StubUnit) -> str:
        template = self._env.get_template(MODULE_TEMPLATE)
        return template.render(unit=unit)

    def output_path(self, module: ModuleDefinition) -> Path:
        return self.output_dir / f"{module.name}.{self.extension}"

    def write_module(self, module: ModuleDefinition, unit: StubUnit) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_path(module)
        path.write_text(self.render(unit), encoding="utf-8")
        self.logger.info("Wrote stubs for %s to %s", module.name, path)
        return path

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


def _parameter_stubs(parameters: Sequence[ParameterInfo]) -> Tuple[ParameterStub, ...]:
    # Unlabelled Swift parameters (`_ value: Int`) still need a TypeScript name.
    return tuple(
        ParameterStub(name=parameter.name or f"arg{position}", type=to_typescript(parameter.type))
        for position, parameter in enumerate(parameters)
    )


__all__ = [
    "FunctionStub",
    "MockStubGenerator",
    "ParameterStub",
    "StubUnit",
    "TypeAliasStub",
    "stub_value_for",
    "types_to_stub",
]
