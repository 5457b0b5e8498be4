"""Tests for nativestub.pipeline."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from nativestub.config import NativeStubConfig, load_config
from nativestub.pipeline import Pipeline
from tests._fixtures.sourcekitten import SUBPROCESS_RUN, FakeSourceKitten
from tests._fixtures.structure_builder import StructureBuilder


def _ping_module(root: Path, name: str = "Ping") -> dict:
    b = StructureBuilder(
        f"""
        Name("{name}")
        Function("ping") {{ (count: Int) -> Int in }}
        """
    )
    payload = b.file(
        b.module_definition(
            b.call("Name", b.argument(f'"{name}"')),
            b.call(
                "Function",
                b.argument('"ping"'),
                b.argument("{ (count", b.closure(b.parameter("count", "Int"))),
            ),
        )
    )
    b.source_file(root, f"{name}Module.swift")
    return payload


def _write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_discover_sorts_and_skips_excluded_directories(tmp_path: Path) -> None:
    _write(tmp_path / "ios" / "ZetaModule.swift")
    _write(tmp_path / "ios" / "AlphaModule.swift")
    _write(tmp_path / "ios" / "Notes.md")
    _write(tmp_path / "Pods" / "Vendor" / "Vendor.swift")
    _write(tmp_path / "node_modules" / "pkg" / "Dep.swift")
    _write(tmp_path / "ios" / "Generated" / "Codegen.swift")
    _write(tmp_path / "ios" / "Scratch.swift")
    config = NativeStubConfig(
        root=tmp_path.resolve(),
        exclude_paths=["ios/Generated/", "*/Scratch.swift"],
    )

    discovered = Pipeline(config).discover()

    assert [path.relative_to(config.root).as_posix() for path in discovered] == [
        "ios/AlphaModule.swift",
        "ios/ZetaModule.swift",
    ]


def test_broken_file_is_skipped_and_others_still_generate(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    good = _ping_module(tmp_path)
    _write(tmp_path / "BrokenModule.swift", "Name(\n")
    fake = FakeSourceKitten(
        {"PingModule.swift": good},
        failures={"BrokenModule.swift": "Could not parse source"},
    )
    monkeypatch.setattr(SUBPROCESS_RUN, fake)
    pipeline = Pipeline.for_path(tmp_path)

    with caplog.at_level(logging.ERROR, logger="nativestub"):
        result = pipeline.run()

    assert [module.name for module in result.modules] == ["Ping"]
    assert result.skipped == [tmp_path.resolve() / "BrokenModule.swift"]
    assert result.written == [tmp_path.resolve() / "mocks" / "Ping.ts"]
    assert "export function ping(count: number): any {" in result.written[0].read_text(encoding="utf-8")
    (error,) = pipeline.diagnostics.errors
    assert error.source == tmp_path.resolve() / "BrokenModule.swift"
    assert "Could not parse source" in error.message
    assert any("Could not parse source" in record.getMessage() for record in caplog.records)


def test_files_without_module_definition_are_skipped_quietly(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _write(tmp_path / "Helpers.swift", "struct Helper {}\n")
    monkeypatch.setattr(
        SUBPROCESS_RUN,
        FakeSourceKitten({"Helpers.swift": StructureBuilder.file(StructureBuilder.klass("Helper"))}),
    )
    pipeline = Pipeline.for_path(tmp_path)

    result = pipeline.run()

    assert result.modules == []
    assert result.written == []
    assert pipeline.diagnostics.entries == []
    assert not (tmp_path / "mocks").exists()


def test_config_controls_tool_and_output(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / ".nativestub.yml").write_text(
        """
analysis:
  executable: "/opt/bin/sourcekitten"
output:
  directory: "__mocks__"
  extension: ".d.ts"
""",
        encoding="utf-8",
    )
    payload = _ping_module(tmp_path, "Echo")
    fake = FakeSourceKitten({"EchoModule.swift": payload})
    monkeypatch.setattr(SUBPROCESS_RUN, fake)

    result = Pipeline(load_config(tmp_path)).run()

    assert fake.calls[0][:3] == ["/opt/bin/sourcekitten", "structure", "--file"]
    assert result.written == [tmp_path.resolve() / "__mocks__" / "Echo.d.ts"]


def test_run_honours_explicit_output_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    payload = _ping_module(project)
    monkeypatch.setattr(SUBPROCESS_RUN, FakeSourceKitten({"PingModule.swift": payload}))

    result = Pipeline.for_path(project).run(tmp_path / "elsewhere")

    assert result.written == [tmp_path / "elsewhere" / "Ping.ts"]


def test_unreadable_source_is_reported(tmp_path: Path) -> None:
    path = _write(tmp_path / "Latin1Module.swift")
    path.write_bytes(b"Name(\"Caf\xe9\")\n")
    pipeline = Pipeline.for_path(tmp_path)

    assert pipeline.extract_file(path) is None
    (error,) = pipeline.diagnostics.errors
    assert error.message.startswith("Could not read source")
