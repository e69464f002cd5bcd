import difflib
from itertools import islice
from pathlib import PurePath

from livediff.stream import split_lines_keepends

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def create_pretty_patch(file_path: str, old_content: str | None, new_content: str | None) -> str:
    """
    Renders the hunks of a unified diff between two texts, without the
    `---`/`+++` file header lines. Returns "" when the texts are equal.

    A last line without a terminator is followed by the usual
    '\\ No newline at end of file' marker, which `difflib` leaves out.
    """
    posix_path = PurePath(file_path).as_posix()
    diff_lines = difflib.unified_diff(
        split_lines_keepends(old_content or ""),
        split_lines_keepends(new_content or ""),
        fromfile=f"a/{posix_path}",
        tofile=f"b/{posix_path}",
    )

    patch = ""
    for line in islice(diff_lines, 2, None):
        patch += line if line.endswith("\n") else f"{line}\n{NO_NEWLINE_MARKER}"
    return patch
