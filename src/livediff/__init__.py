"""
Streams generated file content into a live diff view and reconciles the saved
result against what was generated.

Provides:
- EditSession, the open/update/save/revert engine
- The DiffViewer contract and in-memory/terminal implementations
- Save reconciliation and first-diff helpers
"""

from .buffer import BufferDiffViewer, BufferHost, TextBuffer
from .exceptions import LiveDiffError, OpenFailedError, PreconditionError, SessionConflictError
from .models import ChangeLocation, EditType, LineRange, SaveResult, SessionPhase
from .session import EditSession, SessionRegistry
from .viewer import DiffViewer, EditorDocument, EditorHost

__all__ = [
    "BufferDiffViewer",
    "BufferHost",
    "ChangeLocation",
    "DiffViewer",
    "EditSession",
    "EditType",
    "EditorDocument",
    "EditorHost",
    "LineRange",
    "LiveDiffError",
    "OpenFailedError",
    "PreconditionError",
    "SaveResult",
    "SessionConflictError",
    "SessionPhase",
    "SessionRegistry",
    "TextBuffer",
]
