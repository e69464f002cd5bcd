import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import override

from livediff import fs
from livediff.models import LineRange
from livediff.stream import split_lines_keepends
from livediff.viewer import DiffViewer

type Formatter = Callable[[str], str]


class TextBuffer:
    """
    An in-memory document bound to a file.

    `formatter`, when set, runs on every save and its output is what gets
    written, the way an editor's format-on-save does.
    """

    def __init__(self, path: Path, text: str = "", formatter: Formatter | None = None) -> None:
        self._path: Path = path
        self._text: str = text
        self._dirty: bool = False
        self.formatter: Formatter | None = formatter

    @classmethod
    def load(cls, path: Path, formatter: Formatter | None = None) -> "TextBuffer":
        return cls(path, path.read_text(encoding="utf-8"), formatter)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def line_count(self) -> int:
        return len(split_lines_keepends(self._text))

    def get_text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        if text != self._text:
            self._text = text
            self._dirty = True

    def reload(self, text: str) -> None:
        """Replaces the text with what is on disk; the buffer is clean afterwards."""
        self._text = text
        self._dirty = False

    def replace_lines(self, start_line: int, end_line: int, content: str) -> None:
        lines = split_lines_keepends(self._text)
        self.set_text("".join(lines[:start_line] + split_lines_keepends(content) + lines[end_line:]))

    def truncate(self, line_number: int) -> None:
        self.set_text("".join(split_lines_keepends(self._text)[:line_number]))

    async def replace_all(self, text: str) -> None:
        self.set_text(text)

    async def save(self, *, skip_formatting: bool = False) -> None:
        if self.formatter and not skip_formatting:
            self._text = self.formatter(self._text)
        await fs.write_text(self._path, self._text)
        self._dirty = False


class BufferHost:
    """Tracks the documents a user has open, keyed by absolute path."""

    def __init__(self, formatter: Formatter | None = None) -> None:
        self.documents: dict[Path, TextBuffer] = {}
        self.shown: list[Path] = []
        self.formatter: Formatter | None = formatter

    def open_document(self, path: Path) -> TextBuffer:
        if (doc := self.documents.get(path)) is None:
            doc = TextBuffer.load(path, self.formatter)
            self.documents[path] = doc
        return doc

    def find_open_document(self, path: Path) -> TextBuffer | None:
        for open_path, doc in self.documents.items():
            if fs.are_paths_equal(open_path, path):
                return doc
        return None

    async def show_text_document(self, path: Path, preview: bool = False, preserve_focus: bool = True) -> None:  # pyright: ignore[reportUnusedParameter]
        doc = self.find_open_document(path)
        if doc is None:
            doc = await asyncio.to_thread(self.open_document, path)
        elif not doc.is_dirty:
            # Pick up what the diff surface just wrote to disk
            doc.reload(await asyncio.to_thread(path.read_text, encoding="utf-8"))
        self.shown.append(path)


class BufferDiffViewer(DiffViewer):
    """A diff surface over a `TextBuffer`, keeping its scroll state in memory."""

    def __init__(self, formatter: Formatter | None = None, animation_step_delay: float = 0.0) -> None:
        self._document: TextBuffer | None = None
        self.formatter: Formatter | None = formatter
        self.animation_step_delay: float = animation_step_delay
        self.is_open: bool = False
        self.scroll_line: int = 0
        self.revealed_line: int | None = None
        self.current_line: int | None = None

    @property
    @override
    def document(self) -> TextBuffer | None:
        return self._document

    @override
    async def open_diff_editor(self, path: Path, original_content: str) -> None:
        self._document = TextBuffer(path, original_content, self.formatter)
        self.is_open = True
        self.scroll_line = 0
        self.current_line = None

    @override
    async def scroll_editor_to_line(self, line: int) -> None:
        self.scroll_line = line

    @override
    async def scroll_animation(self, start_line: int, end_line: int) -> None:
        step = 1 if end_line >= start_line else -1
        for line in range(start_line, end_line + step, step):
            await self.scroll_editor_to_line(line)
            if self.animation_step_delay:
                await asyncio.sleep(self.animation_step_delay)

    @override
    async def truncate_document(self, line_number: int) -> None:
        if self._document is not None:
            self._document.truncate(line_number)

    @override
    async def replace_text(self, content: str, range_to_replace: LineRange, current_line: int) -> None:
        if self._document is None:
            return
        self._document.replace_lines(range_to_replace.start_line, range_to_replace.end_line, content)
        self.current_line = current_line

    @override
    async def reveal_line(self, line: int) -> None:
        self.revealed_line = line
        await self.scroll_editor_to_line(line)

    @override
    async def close_diff_view(self) -> None:
        self.is_open = False

    @override
    async def reset_diff_view(self) -> None:
        self._document = None
        self.is_open = False
        self.current_line = None
        self.revealed_line = None
