"""End-to-end flow: discover Swift files, extract modules, write stubs."""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional

from .analysis import ModuleDefinitionExtractor, StructureIndex, ToolInvocationError
from .config import NativeStubConfig, load_config
from .diagnostics import Diagnostics
from .logging import get_logger
from .models import ModuleDefinition, SourceFile
from .stubs import MockStubGenerator

_EXCLUDED_DIRS = {
    ".git",
    ".build",
    "build",
    "node_modules",
    "Pods",
    "DerivedData",
}


@dataclass
class RunResult:
    """Modules found in one run and the files written for them."""

    modules: List[ModuleDefinition] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)


class Pipeline:
    """Coordinates discovery, extraction and generation for a project root."""

    def __init__(
        self,
        config: NativeStubConfig,
        *,
        index: StructureIndex | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.config = config
        self.diagnostics = diagnostics or Diagnostics()
        self.index = index or StructureIndex(config.analysis)
        self.extractor = ModuleDefinitionExtractor(self.index, diagnostics=self.diagnostics)
        self.logger = get_logger("pipeline")

    @classmethod
    def for_path(cls, path: str | Path) -> "Pipeline":
        return cls(load_config(Path(path)))

    def discover(self) -> List[Path]:
        """Swift sources under the root, sorted, minus excluded directories."""
        root = self.config.root
        found = set()
        for pattern in self.config.include:
            for path in root.glob(pattern):
                if path.is_file() and not self._is_excluded(path.relative_to(root)):
                    found.add(path)
        return sorted(found)

    def collect(self, paths: Iterable[Path] | None = None) -> RunResult:
        result = RunResult()
        files = list(paths) if paths is not None else self.discover()
        self.logger.debug("Discovered %d Swift files", len(files))
        for path in files:
            module = self.extract_file(path)
            if module is None:
                result.skipped.append(path)
            else:
                result.modules.append(module)
        return result

    def extract_file(self, path: Path) -> Optional[ModuleDefinition]:
        try:
            file = SourceFile.load(path)
        except (OSError, UnicodeDecodeError) as exc:
            self.diagnostics.error(f"Could not read source: {exc}", path)
            return None
        try:
            tree = self.index.get_tree(file)
        except ToolInvocationError as exc:
            self.diagnostics.error(str(exc), path)
            return None
        module_root = self.extractor.find_module_root(tree)
        if module_root is None:
            self.logger.debug("No module definition in %s", path)
            return None
        module = self.extractor.extract(module_root, file)
        self.logger.info("Found module %s in %s", module.name, self._relative(path))
        return module

    def generator(self, output_dir: Path | None = None) -> MockStubGenerator:
        return MockStubGenerator(
            output_dir or self.config.output_dir,
            extension=self.config.output.extension,
            templates_dir=self.config.output.templates_dir,
            diagnostics=self.diagnostics,
        )

    def run(self, output_dir: Path | None = None) -> RunResult:
        result = self.collect()
        result.written = self.generator(output_dir).generate(result.modules)
        self.diagnostics.report()
        return result

    def _is_excluded(self, relative: Path) -> bool:
        parts = relative.parts
        if any(part in _EXCLUDED_DIRS for part in parts[:-1]):
            return True
        rel = relative.as_posix()
        for pattern in self.config.exclude_paths:
            if pattern.endswith("/"):
                if rel.startswith(pattern) or f"/{pattern}" in f"/{rel}":
                    return True
            elif fnmatch(rel, pattern):
                return True
        return False

    def _relative(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.config.root))
        except ValueError:
            return str(path)


__all__ = ["Pipeline", "RunResult"]
