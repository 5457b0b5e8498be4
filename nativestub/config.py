"""Configuration loading for nativestub (.nativestub.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".nativestub.yml"

DEFAULT_TARGET = "arm64-apple-ios16.4.0"
DEFAULT_SDK = (
    "/Applications/Xcode.app/Contents/Developer/Platforms/iPhoneOS.platform"
    "/Developer/SDKs/iPhoneOS16.4.sdk"
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalysisConfig:
    """Settings for the sourcekitten invocations."""

    executable: str = "sourcekitten"
    target: str = DEFAULT_TARGET
    sdk: str = DEFAULT_SDK
    compiler_args: List[str] = field(default_factory=list)
    timeout: Optional[float] = None
    cache_lookups: bool = False


@dataclass
class OutputConfig:
    """Where and how generated stubs are written."""

    directory: str = "mocks"
    extension: str = "ts"
    templates_dir: Optional[Path] = None


@dataclass
class NativeStubConfig:
    """Represents the settings defined in .nativestub.yml."""

    root: Path
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    include: List[str] = field(default_factory=lambda: ["**/*.swift"])
    exclude_paths: List[str] = field(default_factory=list)

    @property
    def output_dir(self) -> Path:
        return self.root / self.output.directory


def load_config(config_path: Path) -> NativeStubConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return NativeStubConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    analysis = AnalysisConfig()
    analysis_data = _as_dict(data.get("analysis"))
    if analysis_data:
        analysis.executable = _as_str(analysis_data.get("executable")) or analysis.executable
        analysis.target = _as_str(analysis_data.get("target")) or analysis.target
        analysis.sdk = _as_str(analysis_data.get("sdk")) or analysis.sdk
        analysis.compiler_args = _as_str_list(analysis_data.get("compiler_args"))
        analysis.timeout = _as_float(analysis_data.get("timeout"))
        analysis.cache_lookups = _as_bool(analysis_data.get("cache_lookups")) or False

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    if output_data:
        output.directory = _as_str(output_data.get("directory")) or output.directory
        extension = _as_str(output_data.get("extension"))
        if extension:
            output.extension = extension.lstrip(".")
        templates_dir = _as_str(output_data.get("templates_dir"))
        if templates_dir:
            output.templates_dir = root / templates_dir

    include = _as_str_list(data.get("include")) or ["**/*.swift"]
    exclude_paths = _as_str_list(data.get("exclude_paths"))

    return NativeStubConfig(
        root=root,
        analysis=analysis,
        output=output,
        include=include,
        exclude_paths=exclude_paths,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "NativeStubConfig",
    "OutputConfig",
    "load_config",
]
