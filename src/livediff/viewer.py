from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol

from livediff.models import LineRange

DIFF_VIEW_URI_SCHEME = "livediff-diff"


class EditorDocument(Protocol):
    """The editable text behind a diff surface, backed by a file on disk."""

    @property
    def path(self) -> Path: ...

    @property
    def is_dirty(self) -> bool: ...

    def get_text(self) -> str: ...

    async def save(self, *, skip_formatting: bool = False) -> None:
        """
        Writes the text to disk.

        Saving may rewrite the text (format on save) unless `skip_formatting` is set.
        """
        ...

    async def replace_all(self, text: str) -> None: ...


class EditorHost(Protocol):
    def find_open_document(self, path: Path) -> EditorDocument | None: ...

    async def show_text_document(self, path: Path, preview: bool = False, preserve_focus: bool = True) -> None:
        """Brings the real (non-diff) view of `path` forward."""
        ...


class DiffViewer(ABC):
    """
    A side-by-side or inline diff surface that an edit session streams into.

    Line numbers are 0-based throughout.
    """

    @property
    @abstractmethod
    def document(self) -> EditorDocument | None:
        """The active editable document, or None when no surface is open."""
        ...

    @abstractmethod
    async def open_diff_editor(self, path: Path, original_content: str) -> None:
        """
        Opens the diff surface for `path` with `original_content` as its baseline.

        Called by `EditSession.open` after the file and its directories exist.
        Returns once the surface is ready and `document` is set.
        """
        ...

    @abstractmethod
    async def scroll_editor_to_line(self, line: int) -> None: ...

    @abstractmethod
    async def scroll_animation(self, start_line: int, end_line: int) -> None:
        """Scrolls smoothly from `start_line` to `end_line` so large updates stay trackable."""
        ...

    @abstractmethod
    async def truncate_document(self, line_number: int) -> None:
        """Removes everything from `line_number` to the end of the document."""
        ...

    @abstractmethod
    async def replace_text(self, content: str, range_to_replace: LineRange, current_line: int) -> None:
        """
        Replaces the lines in `range_to_replace` with `content`.

        `current_line` is the last line being written, for highlighting.
        """
        ...

    @abstractmethod
    async def reveal_line(self, line: int) -> None:
        """Reveals `line` centered in the view."""
        ...

    @abstractmethod
    async def close_diff_view(self) -> None: ...

    @abstractmethod
    async def reset_diff_view(self) -> None:
        """Releases the surface's resources; `document` is None afterwards."""
        ...
