"""Adapter for the sourcekitten structure and cursor-info commands."""

from __future__ import annotations

import json
import subprocess
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from ..config import AnalysisConfig
from ..logging import get_logger
from ..models import FunctionSignature, ParameterInfo, SourceFile, StructureNode, Unknown
from ..types import TypeMapper

CURSOR_INFO_REQUEST = "source.request.cursorinfo"
ANNOTATED_DECL_KEY = "key.fully_annotated_decl"


class ToolInvocationError(RuntimeError):
    """Raised when sourcekitten fails or returns output that cannot be parsed."""


class _PlainScalar(str):
    """A scalar sourcekitten expects unquoted (request keys and UIDs)."""


class _RequestDumper(yaml.SafeDumper):
    pass


def _quoted_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')


def _plain_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style="")


_RequestDumper.add_representer(str, _quoted_str)
_RequestDumper.add_representer(_PlainScalar, _plain_str)


class StructureIndex:
    """Runs sourcekitten for whole-file structure and per-offset type lookups."""

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        *,
        type_mapper: TypeMapper | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.type_mapper = type_mapper or TypeMapper()
        self.logger = get_logger("analysis.structure_index")
        self._lookups: Dict[Tuple[str, int], FunctionSignature] = {}

    def get_tree(self, file: SourceFile) -> StructureNode:
        """Return the declaration tree of ``file``."""
        args = [self.config.executable, "structure", "--file", str(file.path)]
        payload = self._run_json(args)
        if not isinstance(payload, Mapping):
            raise ToolInvocationError(f"structure output for {file.path} is not a JSON object")
        return StructureNode.from_payload(payload)

    def resolve_type(self, node: StructureNode, file: SourceFile) -> FunctionSignature:
        """Look up the declaration at ``node``'s offset and parse its signature."""
        if node.offset is None:
            raise ToolInvocationError(f"cannot resolve type without an offset in {file.path}")
        key = (str(file.path), node.offset)
        if self.config.cache_lookups and key in self._lookups:
            return self._lookups[key]

        args = [self.config.executable, "request", "--yaml", self.build_request(file, node.offset)]
        payload = self._run_json(args)
        if not isinstance(payload, Mapping):
            raise ToolInvocationError(f"cursor info for {file.path}@{node.offset} is not a JSON object")
        signature = self.parse_cursor_info(payload)

        if self.config.cache_lookups:
            self._lookups[key] = signature
        return signature

    def build_request(self, file: SourceFile, offset: int) -> str:
        request = {
            _PlainScalar("key.request"): _PlainScalar(CURSOR_INFO_REQUEST),
            _PlainScalar("key.sourcefile"): str(file.path),
            _PlainScalar("key.offset"): offset,
            _PlainScalar("key.compilerargs"): self.compiler_args(file),
        }
        return yaml.dump(
            request,
            Dumper=_RequestDumper,
            default_flow_style=False,
            sort_keys=False,
            width=float("inf"),
        )

    def compiler_args(self, file: SourceFile) -> List[str]:
        args = [str(file.path), "-target", self.config.target, "-sdk", self.config.sdk]
        args.extend(self.config.compiler_args)
        return args

    def parse_cursor_info(self, payload: Mapping[str, Any]) -> FunctionSignature:
        """Parse the annotated declaration XML of a cursor-info response.

        Responses without an annotated declaration are not an error: the
        signature comes back empty with an unknown return type and the payload
        attached as ``raw``.
        """
        xml = payload.get(ANNOTATED_DECL_KEY)
        if not isinstance(xml, str) or not xml.strip():
            self.logger.debug("Cursor info carried no annotated declaration")
            return FunctionSignature(parameters=(), return_type=Unknown(), raw=dict(payload))
        try:
            root = ET.fromstring(xml)
        except ET.ParseError as exc:
            raise ToolInvocationError(f"annotated declaration is not valid XML: {exc}") from exc

        if not root.tag.startswith("decl.function"):
            return FunctionSignature()

        parameters = tuple(
            ParameterInfo(
                name=_parameter_label(element),
                type=self.type_mapper.map(_element_text(element.find("decl.var.parameter.type"))),
            )
            for element in root.findall("decl.var.parameter")
        )
        return_type = self.type_mapper.map(_element_text(root.find("decl.function.returntype")))
        return FunctionSignature(parameters=parameters, return_type=return_type)

    def _run_json(self, args: Sequence[str]) -> Any:
        self.logger.debug("Running %s", " ".join(args[:2]))
        try:
            completed = subprocess.run(
                list(args),
                check=True,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
            )
        except FileNotFoundError as exc:
            raise ToolInvocationError(
                f"Unable to locate sourcekitten executable '{self.config.executable}'."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ToolInvocationError(
                f"{args[0]} {args[1]} timed out after {self.config.timeout}s"
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            stdout = (exc.stdout or "").strip()
            message = stderr or stdout or f"exit status {exc.returncode}"
            raise ToolInvocationError(f"{args[0]} {args[1]} failed: {message}") from exc

        try:
            return json.loads(completed.stdout)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ToolInvocationError(f"{args[0]} {args[1]} returned invalid JSON: {exc}") from exc


def _element_text(element: Optional[ET.Element]) -> Optional[str]:
    # ref.struct and similar wrappers nest the type name; keep only the text.
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None


def _parameter_label(element: ET.Element) -> Optional[str]:
    label = _element_text(element.find("decl.var.parameter.argument_label"))
    if label is None or label == "_":
        label = _element_text(element.find("decl.var.parameter.name"))
    return label


__all__ = ["StructureIndex", "ToolInvocationError"]
