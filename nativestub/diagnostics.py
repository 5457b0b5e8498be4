"""Run-wide collection of soft failures."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .logging import get_logger


@dataclass(frozen=True)
class Diagnostic:
    """A warning or error recorded while processing one file."""

    level: int
    message: str
    source: Optional[Path] = None

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level).lower()

    def format(self) -> str:
        if self.source is None:
            return self.message
        return f"{self.source}: {self.message}"


class Diagnostics:
    """Logs each soft failure as it happens and keeps it for the run summary."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("diagnostics")
        self._entries: List[Diagnostic] = []

    @property
    def entries(self) -> List[Diagnostic]:
        return list(self._entries)

    @property
    def warnings(self) -> List[Diagnostic]:
        return [entry for entry in self._entries if entry.level == logging.WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [entry for entry in self._entries if entry.level >= logging.ERROR]

    def warn(self, message: str, source: Path | None = None) -> None:
        self._record(logging.WARNING, message, source)

    def error(self, message: str, source: Path | None = None) -> None:
        self._record(logging.ERROR, message, source)

    def summary(self) -> str:
        counts = Counter(entry.level_name for entry in self._entries)
        if not counts:
            return "no warnings or errors"
        parts = []
        for name in ("error", "warning"):
            count = counts.get(name, 0)
            if count:
                parts.append(f"{count} {name}{'s' if count != 1 else ''}")
        return ", ".join(parts)

    def report(self) -> None:
        """Log every collected entry once more, grouped at the end of a run."""
        if not self._entries:
            self.logger.debug("Run finished with no warnings or errors")
            return
        self.logger.info("Run finished with %s", self.summary())
        for entry in self._entries:
            self.logger.info("  %s: %s", entry.level_name, entry.format())

    def _record(self, level: int, message: str, source: Path | None) -> None:
        entry = Diagnostic(level=level, message=message, source=source)
        self._entries.append(entry)
        self.logger.log(level, "%s", entry.format())


__all__ = ["Diagnostic", "Diagnostics"]
