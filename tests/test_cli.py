"""CLI parser and command tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nativestub.cli import _build_parser, main
from tests._fixtures.sourcekitten import SUBPROCESS_RUN, FakeSourceKitten
from tests._fixtures.structure_builder import calculator_module


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "mocks"])
    assert args.verbose is True
    assert args.command == "mocks"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["structure", "--verbose"])
    assert args.verbose is True
    assert args.command == "structure"


def test_cli_defaults_path_to_current_directory() -> None:
    args = _build_parser().parse_args(["structure"])
    assert args.path == "."
    assert args.verbose is False


def test_cli_accepts_mocks_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(["mocks", "ios", "--output-dir", "out", "--dry-run"])
    assert args.path == "ios"
    assert args.output_dir == Path("out")
    assert args.dry_run is True


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


@pytest.fixture
def calculator_project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    builder, payload, _ = calculator_module()
    builder.source_file(tmp_path, "CalculatorModule.swift")
    monkeypatch.setattr(SUBPROCESS_RUN, FakeSourceKitten({"CalculatorModule.swift": payload}))
    return tmp_path


def test_structure_command_prints_json(calculator_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["structure", str(calculator_project)])

    (module,) = json.loads(capsys.readouterr().out)
    assert module["name"] == "Calculator"
    assert [fn["name"] for fn in module["functions"]] == ["add"]
    assert [fn["name"] for fn in module["asyncFunctions"]] == ["fetchName"]
    assert module["events"] == [{"name": "onResult"}, {"name": "onError"}]
    assert module["view"]["name"] == "CalculatorView"


def test_mocks_command_writes_stub_files(calculator_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["mocks", str(calculator_project)])

    stub = calculator_project.resolve() / "mocks" / "Calculator.ts"
    assert stub.exists()
    assert "export function add(a: number, b: number): any {" in stub.read_text(encoding="utf-8")
    assert "Stubs written to" in capsys.readouterr().out


def test_mocks_dry_run_prints_without_writing(
    calculator_project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["mocks", str(calculator_project), "--dry-run"])

    out = capsys.readouterr().out
    assert out.startswith("// Calculator.ts\n")
    assert "export async function fetchName(): Promise<any> {" in out
    assert not (calculator_project / "mocks").exists()


def test_mocks_reports_when_nothing_found(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["mocks", str(tmp_path)])
    assert "No module definitions found" in capsys.readouterr().out


def test_invalid_config_exits_with_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / ".nativestub.yml").write_text("[not, a, mapping]\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["structure", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "mapping" in capsys.readouterr().err
