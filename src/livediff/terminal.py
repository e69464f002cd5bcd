from pathlib import Path
from typing import final, override

from rich._loop import loop_last
from rich.console import Console, ConsoleOptions, Group, RenderableType, RenderResult
from rich.live import Live
from rich.live_render import LiveRender
from rich.panel import Panel
from rich.segment import Segment
from rich.syntax import Syntax
from rich.text import Text

from livediff.buffer import BufferDiffViewer, Formatter
from livediff.models import LineRange
from livediff.viewer import DIFF_VIEW_URI_SCHEME


# Based on https://github.com/Textualize/rich/pull/3311
# Crops from the top so the most recently streamed lines stay visible
@final
class DiffLiveRender(LiveRender):
    @override
    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        renderable = self.renderable
        style = console.get_style(self.style)
        lines = console.render_lines(renderable, options, style=style, pad=False)
        shape = Segment.get_shape(lines)

        _, height = shape
        if height > options.size.height and self.vertical_overflow != "visible":
            overflow_text = Text(
                "...",
                overflow="crop",
                justify="center",
                end="",
                style="live.ellipsis",
            )
            lines = lines[-(options.size.height) : -1]
            lines.insert(0, list(console.render(overflow_text)))
            shape = Segment.get_shape(lines)

        self._shape = shape

        new_line = Segment.line()
        for last, line in loop_last(lines):
            yield from line
            if not last:
                yield new_line


class TerminalDiffViewer(BufferDiffViewer):
    """Shows the streamed document live in the terminal, centered on the line being written."""

    def __init__(
        self,
        console: Console | None = None,
        formatter: Formatter | None = None,
        animation_step_delay: float = 0.0,
        context_lines: int = 12,
    ) -> None:
        super().__init__(formatter, animation_step_delay)
        self.console: Console = console or Console()
        self.context_lines: int = context_lines
        self._live: Live | None = None
        self._path: Path | None = None

    def _render(self) -> RenderableType:
        document = self.document
        if document is None or self._path is None:
            return Text("")

        text = document.get_text()
        first = max(self.scroll_line - self.context_lines, 0)
        last = self.scroll_line + self.context_lines + 1
        highlight: set[int] = {self.current_line + 1} if self.current_line is not None else set()
        syntax = Syntax(
            text,
            Syntax.guess_lexer(str(self._path), text),
            line_numbers=True,
            line_range=(first + 1, last),
            highlight_lines=highlight,
        )
        title = f"{DIFF_VIEW_URI_SCHEME}: {self._path.name}"
        return Group(Panel(syntax, title=title, title_align="left"))

    def _refresh(self) -> None:
        if self._live is not None:
            self._live.update(self._render(), refresh=True)

    @override
    async def open_diff_editor(self, path: Path, original_content: str) -> None:
        await super().open_diff_editor(path, original_content)
        self._path = path
        live = Live(console=self.console, auto_refresh=False)
        live._live_render = DiffLiveRender(live.get_renderable())  # pyright: ignore[reportPrivateUsage]
        live.start()
        self._live = live
        self._refresh()

    @override
    async def scroll_editor_to_line(self, line: int) -> None:
        await super().scroll_editor_to_line(line)
        self._refresh()

    @override
    async def replace_text(self, content: str, range_to_replace: LineRange, current_line: int) -> None:
        await super().replace_text(content, range_to_replace, current_line)
        self._refresh()

    @override
    async def truncate_document(self, line_number: int) -> None:
        await super().truncate_document(line_number)
        self._refresh()

    @override
    async def close_diff_view(self) -> None:
        await super().close_diff_view()
        if self._live is not None:
            self._live.stop()
            self._live = None

    @override
    async def reset_diff_view(self) -> None:
        await self.close_diff_view()
        await super().reset_diff_view()
        self._path = None
