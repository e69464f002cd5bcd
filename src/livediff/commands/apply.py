import asyncio
import os
import shlex
import subprocess
import sys
import tempfile
from pathlib import Path

import msgspec
from rich.console import Console

from livediff.buffer import BufferDiffViewer, BufferHost, Formatter
from livediff.config import Settings, load_settings
from livediff.console import is_terminal, render_save_result
from livediff.diagnostics import CompileDiagnostics
from livediff.exceptions import ExternalDependencyError, InvalidInputError
from livediff.fs import resolve_in_workspace
from livediff.models import SaveResult
from livediff.session import EditSession
from livediff.terminal import TerminalDiffViewer
from livediff.viewer import EditorDocument


def command_formatter(format_cmd: str) -> Formatter:
    """Builds a formatter that pipes the document through `format_cmd` (stdin to stdout)."""
    cmd_parts = shlex.split(format_cmd)
    if not cmd_parts:
        raise InvalidInputError("--format-cmd must not be empty")

    def _format(text: str) -> str:
        try:
            proc = subprocess.run(cmd_parts, input=text, capture_output=True, text=True, check=False)
        except FileNotFoundError:
            raise ExternalDependencyError(f"Formatter command not found: '{cmd_parts[0]}'") from None
        if proc.returncode != 0:
            raise ExternalDependencyError(
                f"Formatter exited with code {proc.returncode}: {proc.stderr.strip() or 'no output'}"
            )
        return proc.stdout

    return _format


def _edit_text_in_editor(text: str, suffix: str) -> str:
    fd, temp_file_path_str = tempfile.mkstemp(suffix=suffix, text=True)
    temp_file_path = Path(temp_file_path_str)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            _ = f.write(text)

        editor_cmd_str = os.environ.get("EDITOR", "vi")
        editor_cmd_parts = shlex.split(editor_cmd_str)
        full_command = editor_cmd_parts + [str(temp_file_path)]

        try:
            proc = subprocess.run(full_command, check=False)
        except FileNotFoundError:
            raise ExternalDependencyError(
                f"Editor command not found: '{editor_cmd_parts[0]}'. " + "Please set the $EDITOR environment variable."
            ) from None

        if proc.returncode != 0:
            raise ExternalDependencyError("Editor closed with non-zero exit code. Aborting.")

        return temp_file_path.read_bytes().decode("utf-8")
    finally:
        temp_file_path.unlink(missing_ok=True)


async def _review_in_editor(document: EditorDocument) -> None:
    edited = await asyncio.to_thread(_edit_text_in_editor, document.get_text(), document.path.suffix)
    if edited != document.get_text():
        await document.replace_all(edited)


def _chunk_ends(content: str, chunk_size: int) -> list[int]:
    return list(range(chunk_size, len(content), chunk_size))


async def stream_file(
    session: EditSession,
    target: str,
    content: str,
    chunk_size: int,
    revert: bool,
    review: bool,
) -> SaveResult | None:
    """
    Streams `content` into `target` the way a generator would, then saves or reverts.

    Any failure after the session opened reverts the file before re-raising.
    """
    await session.open(target)
    try:
        for end in _chunk_ends(content, chunk_size):
            await session.update(content[:end], is_final=False)
        await session.update(content, is_final=True)
        await session.scroll_to_first_diff()

        if review and (document := session.viewer.document) is not None:
            await _review_in_editor(document)

        if revert:
            await session.revert_changes()
            return None
        return await session.save_changes()
    except BaseException:
        await session.revert_changes()
        raise


def apply(
    target: str,
    source: Path | None,
    chunk_size: int,
    revert: bool,
    review: bool,
    format_cmd: str | None,
    json_output: bool,
) -> None:
    if chunk_size < 1:
        raise InvalidInputError("--chunk-size must be at least 1")

    content = sys.stdin.read() if source is None or str(source) == "-" else source.read_text(encoding="utf-8")
    settings: Settings = load_settings()
    formatter = command_formatter(format_cmd) if format_cmd else None

    viewer: BufferDiffViewer
    if is_terminal() and not json_output:
        viewer = TerminalDiffViewer(Console(), formatter, settings.animation_step_delay)
    else:
        viewer = BufferDiffViewer(formatter, settings.animation_step_delay)

    diagnostics = CompileDiagnostics([resolve_in_workspace(settings.workspace_root, target)])
    session = EditSession(viewer, BufferHost(formatter), settings=settings, diagnostics=diagnostics)

    result = asyncio.run(stream_file(session, target, content, chunk_size, revert, review))

    if result is None:
        if json_output:
            print(msgspec.json.encode({"reverted": target}).decode())
        else:
            Console().print(f"[yellow]Reverted {target}.[/yellow]")
        return

    if json_output:
        print(msgspec.json.encode(result).decode())
    else:
        render_save_result(result, target, Console())
