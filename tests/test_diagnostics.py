"""Tests for nativestub.diagnostics."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from nativestub.diagnostics import Diagnostic, Diagnostics


def test_entries_are_logged_when_recorded(diagnostics: Diagnostics, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="nativestub"):
        diagnostics.warn("Found ModuleDefinition but it is malformed", Path("ios/Module.swift"))
        diagnostics.error("sourcekitten structure failed: boom")

    assert [(record.levelno, record.getMessage()) for record in caplog.records] == [
        (logging.WARNING, "ios/Module.swift: Found ModuleDefinition but it is malformed"),
        (logging.ERROR, "sourcekitten structure failed: boom"),
    ]


def test_entries_are_split_by_level(diagnostics: Diagnostics) -> None:
    diagnostics.warn("first")
    diagnostics.error("second")
    diagnostics.warn("third")

    assert [entry.message for entry in diagnostics.warnings] == ["first", "third"]
    assert [entry.message for entry in diagnostics.errors] == ["second"]
    assert len(diagnostics.entries) == 3


def test_summary_counts_levels(diagnostics: Diagnostics) -> None:
    assert diagnostics.summary() == "no warnings or errors"

    diagnostics.warn("a")
    diagnostics.warn("b")
    diagnostics.error("c")

    assert diagnostics.summary() == "1 error, 2 warnings"


def test_report_repeats_entries_at_end_of_run(
    diagnostics: Diagnostics, caplog: pytest.LogCaptureFixture
) -> None:
    diagnostics.error("lookup failed", Path("Broken.swift"))
    caplog.clear()

    with caplog.at_level(logging.INFO, logger="nativestub"):
        diagnostics.report()

    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["Run finished with 1 error", "  error: Broken.swift: lookup failed"]


def test_diagnostic_format_without_source() -> None:
    entry = Diagnostic(level=logging.WARNING, message="bare")
    assert entry.format() == "bare"
    assert entry.level_name == "warning"
