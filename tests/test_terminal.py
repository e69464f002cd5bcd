# pyright: standard
import io
from pathlib import Path

import pytest
from rich.console import Console

from livediff.buffer import BufferHost
from livediff.config import Settings
from livediff.session import EditSession, SessionRegistry
from livediff.terminal import TerminalDiffViewer
from tests.helpers import stream


@pytest.mark.asyncio
async def test_terminal_viewer_renders_final_document(tmp_path: Path) -> None:
    # GIVEN a terminal viewer writing to a captured console
    output = io.StringIO()
    viewer = TerminalDiffViewer(Console(file=output, width=80), context_lines=3)
    session = EditSession(viewer, BufferHost(), settings=Settings(workspace_root=tmp_path), registry=SessionRegistry())

    # WHEN a file is streamed and saved
    await session.open("hello.py")
    await stream(session, "print('hello')\nprint('world')\n")
    _ = await session.save_changes()

    # THEN the last rendered frame shows the file in a titled panel
    rendered = output.getvalue()
    assert "livediff-diff: hello.py" in rendered
    assert "print('world')" in rendered
    # AND the live display is stopped
    assert viewer.document is None
    assert (tmp_path / "hello.py").read_text() == "print('hello')\nprint('world')\n"
