"""
Line accounting for streamed file content.

The generator sends ever-growing snapshots of the full file. Each snapshot is
turned into a single prefix replacement on the viewer: everything from line 0
through the last complete line is rewritten in one edit. Rewriting the whole
prefix instead of inserting the new lines matters for editors that auto-close
constructs (tags, brackets) as lines are typed; an incremental insert would
leave their auto-inserted text behind.
"""

from collections.abc import Sequence

from livediff.models import LineRange, UpdatePlan

BOM = "\ufeff"


def strip_bom(content: str) -> str:
    """Removes exactly one leading byte-order mark."""
    return content.removeprefix(BOM)


def split_lines_keepends(text: str) -> list[str]:
    """
    Splits on "\\n" only, keeping terminators; a final unterminated line is kept as is.

    Unlike `str.splitlines`, "\\r", form feeds and other separators stay inside
    their line, so line numbers agree with the streamed lines.
    """
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def split_accumulated(content: str, is_final: bool) -> list[str]:
    """
    Splits accumulated content into committed lines.

    A non-final snapshot withholds its last element: it may be a line that is
    still being generated. A final snapshot ending in a newline does not count
    the empty element after it as a line.
    """
    if not content:
        return []

    lines = content.split("\n")
    if not is_final or lines[-1] == "":
        _ = lines.pop()
    return lines


def plan_update(streamed_lines: Sequence[str], content: str, is_final: bool) -> UpdatePlan:
    accumulated_lines = split_accumulated(content, is_final)
    diff_lines = accumulated_lines[len(streamed_lines) :]
    current_line = len(streamed_lines) + len(diff_lines) - 1

    if current_line < 0:
        return UpdatePlan(
            accumulated_lines=accumulated_lines,
            diff_lines=diff_lines,
            current_line=current_line,
            replacement=None,
            replace_range=None,
        )

    return UpdatePlan(
        accumulated_lines=accumulated_lines,
        diff_lines=diff_lines,
        current_line=current_line,
        replacement="\n".join(accumulated_lines[: current_line + 1]) + "\n",
        replace_range=LineRange(start_line=0, end_line=current_line + 1),
    )


def ensure_trailing_newline_like(content: str, original_content: str) -> str:
    """Adds a final newline to `content` when the original file ended with one."""
    if original_content.endswith("\n") and not content.endswith("\n"):
        return content + "\n"
    return content
