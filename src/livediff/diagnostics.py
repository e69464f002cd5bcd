import asyncio
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Protocol

from livediff.models import (
    Diagnostic,
    DiagnosticRange,
    DiagnosticSeverity,
    DiagnosticsSnapshot,
    FileDiagnostics,
)


class DiagnosticsService(Protocol):
    async def snapshot(self) -> DiagnosticsSnapshot:
        """Returns every active diagnostic, grouped by file."""
        ...


def _same_problem(a: Diagnostic, b: Diagnostic) -> bool:
    return a.range == b.range and a.message == b.message


def get_new_diagnostics(before: DiagnosticsSnapshot, after: DiagnosticsSnapshot) -> DiagnosticsSnapshot:
    """Returns the diagnostics present in `after` that have no match in `before` for the same file."""
    old_by_path: dict[Path, list[Diagnostic]] = {}
    for entry in before:
        old_by_path.setdefault(entry.path, []).extend(entry.diagnostics)

    new_problems: DiagnosticsSnapshot = []
    for entry in after:
        old = old_by_path.get(entry.path, [])
        fresh = [d for d in entry.diagnostics if not any(_same_problem(o, d) for o in old)]
        if fresh:
            new_problems.append(FileDiagnostics(path=entry.path, diagnostics=fresh))
    return new_problems


def diagnostics_to_problems_string(
    diagnostics: DiagnosticsSnapshot,
    severities: Sequence[DiagnosticSeverity],
    root: Path | None = None,
) -> str:
    """
    Formats diagnostics as a problems block, one section per file:

        src/app.py
        - [python Error] Line 3: invalid syntax

    Returns "" when nothing matches `severities`.
    """
    result = ""
    for entry in diagnostics:
        problems = [d for d in entry.diagnostics if d.severity in severities]
        if not problems:
            continue

        display_path = Path(os.path.relpath(entry.path, root)) if root else entry.path
        result += f"\n\n{display_path.as_posix()}"
        for diagnostic in problems:
            source = f"{diagnostic.source} " if diagnostic.source else ""
            line = diagnostic.range.start_line + 1
            result += f"\n- [{source}{diagnostic.severity.label}] Line {line}: {diagnostic.message}"
    return result.strip()


class DiagnosticsStore:
    """An in-memory diagnostics collection that linters or tests can publish into."""

    def __init__(self) -> None:
        self._by_path: dict[Path, list[Diagnostic]] = {}

    def set(self, path: Path, diagnostics: Iterable[Diagnostic]) -> None:
        items = list(diagnostics)
        if items:
            self._by_path[path] = items
        else:
            _ = self._by_path.pop(path, None)

    def clear(self, path: Path | None = None) -> None:
        if path is None:
            self._by_path.clear()
        else:
            _ = self._by_path.pop(path, None)

    async def snapshot(self) -> DiagnosticsSnapshot:
        return [FileDiagnostics(path=p, diagnostics=list(d)) for p, d in self._by_path.items()]


def _compile_errors(path: Path) -> list[Diagnostic]:
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    try:
        _ = compile(source, str(path), "exec", dont_inherit=True)
    except SyntaxError as e:
        line = max((e.lineno or 1) - 1, 0)
        char = max((e.offset or 1) - 1, 0)
        return [
            Diagnostic(
                range=DiagnosticRange(start_line=line, start_char=char),
                message=e.msg,
                severity=DiagnosticSeverity.ERROR,
                source="python",
            )
        ]
    except ValueError as e:
        # Source containing null bytes
        return [Diagnostic(range=DiagnosticRange(start_line=0), message=str(e), source="python")]
    return []


class CompileDiagnostics:
    """Reports Python syntax errors for a fixed set of files by compiling them."""

    def __init__(self, paths: Iterable[Path]) -> None:
        self.paths: list[Path] = list(paths)

    def _collect(self) -> DiagnosticsSnapshot:
        snapshot: DiagnosticsSnapshot = []
        for path in self.paths:
            if path.suffix != ".py" or not path.is_file():
                continue
            if errors := _compile_errors(path):
                snapshot.append(FileDiagnostics(path=path, diagnostics=errors))
        return snapshot

    async def snapshot(self) -> DiagnosticsSnapshot:
        return await asyncio.to_thread(self._collect)
