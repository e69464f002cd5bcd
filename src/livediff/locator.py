import difflib

from livediff.models import DiffPart
from livediff.stream import split_lines_keepends


def diff_line_parts(original: str, current: str) -> list[DiffPart]:
    """Line diff of two texts as runs of equal, removed and added lines, in document order."""
    original_lines = split_lines_keepends(original)
    current_lines = split_lines_keepends(current)
    matcher = difflib.SequenceMatcher(None, original_lines, current_lines, autojunk=False)

    parts: list[DiffPart] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        match tag:
            case "equal":
                parts.append(DiffPart(kind="equal", count=i2 - i1))
            case "delete":
                parts.append(DiffPart(kind="removed", count=i2 - i1))
            case "insert":
                parts.append(DiffPart(kind="added", count=j2 - j1))
            case "replace":
                parts.append(DiffPart(kind="removed", count=i2 - i1))
                parts.append(DiffPart(kind="added", count=j2 - j1))
            case _:
                pass
    return parts


def first_diff_line(original: str, current: str) -> int | None:
    """
    Returns the line in `current` where the first change starts, or None if
    the texts have the same lines.

    Removed lines do not exist in `current`, so only the other runs move the
    line counter.
    """
    line_count = 0
    for part in diff_line_parts(original, current):
        if part.kind != "equal":
            return line_count
        line_count += part.count
    return None
