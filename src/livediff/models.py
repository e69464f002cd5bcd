from enum import Enum
from pathlib import Path
from typing import Literal

from msgspec import Struct, field


class EditType(str, Enum):
    CREATE = "create"
    MODIFY = "modify"


class SessionPhase(str, Enum):
    OPENING = "opening"
    STREAMING = "streaming"
    FINALIZED = "finalized"
    SAVED = "saved"
    REVERTED = "reverted"


class LineRange(Struct, frozen=True):
    """A 0-based line range; `end_line` is exclusive."""

    start_line: int
    end_line: int


class ChangeLocation(Struct, frozen=True):
    start_line: int
    end_line: int
    start_char: int = 0
    end_char: int = 0


class SaveResult(Struct, frozen=True, omit_defaults=True):
    new_problems_message: str | None = None
    user_edits: str | None = None
    auto_formatting_edits: str | None = None
    final_content: str | None = None


class DiagnosticSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"
    HINT = "hint"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class DiagnosticRange(Struct, frozen=True):
    start_line: int
    start_char: int = 0
    end_line: int | None = None
    end_char: int | None = None


class Diagnostic(Struct, frozen=True):
    range: DiagnosticRange
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR
    source: str | None = None


class FileDiagnostics(Struct, frozen=True):
    path: Path
    diagnostics: list[Diagnostic]


type DiagnosticsSnapshot = list[FileDiagnostics]


class DiffPart(Struct, frozen=True):
    kind: Literal["equal", "added", "removed"]
    count: int


class UpdatePlan(Struct, frozen=True):
    """The viewer mutations one streaming update resolves to."""

    accumulated_lines: list[str]
    diff_lines: list[str]
    current_line: int
    replacement: str | None
    replace_range: LineRange | None


class EditSessionData(Struct):
    rel_path: str
    absolute_path: Path
    edit_type: EditType
    encoding: str = "utf-8"
    original_content: str = ""
    streamed_lines: list[str] = field(default_factory=list)
    new_content: str | None = None
    created_dirs: list[Path] = field(default_factory=list)
    document_was_open: bool = False
    pre_diagnostics: DiagnosticsSnapshot = field(default_factory=list)
    phase: SessionPhase = SessionPhase.OPENING
    encoding_mismatch: bool = False


class Closed(Struct, frozen=True, tag="closed"):
    pass


class Active(Struct, tag="active"):
    data: EditSessionData


type SessionState = Closed | Active

CLOSED = Closed()
