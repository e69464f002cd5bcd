import regex as re

from livediff.models import SaveResult
from livediff.patches import create_pretty_patch
from livediff.stream import strip_bom

_EOL_REGEX = re.compile(r"\r\n|\n")

NEW_PROBLEMS_HEADER = "\n\nNew problems detected after saving the file:\n"


def detect_eol(content: str) -> str:
    return "\r\n" if "\r\n" in content else "\n"


def normalize_content(content: str, eol: str) -> str:
    """
    Rewrites every line ending to `eol` and ends the text with exactly one.

    Trailing whitespace is trimmed first; editors like to add a final newline
    on their own and that must not show up as a difference. A leading
    byte-order mark is dropped for the same reason.
    """
    return _EOL_REGEX.sub(eol, strip_bom(content)).rstrip() + eol


def format_new_problems(problems: str) -> str:
    return f"{NEW_PROBLEMS_HEADER}{problems}" if problems else ""


def reconcile_save(
    rel_path: str,
    new_content: str,
    pre_save_content: str,
    post_save_content: str,
    new_problems_message: str = "",
) -> SaveResult:
    """
    Compares what the generator intended, what the document held when the
    user accepted, and what ended up on disk after saving.

    - `user_edits`: intended -> pre-save, when a human changed the text.
    - `auto_formatting_edits`: pre-save -> post-save, when saving changed it.
    - `final_content`: the normalized post-save text, the baseline for the next edit.
    """
    eol = detect_eol(new_content)
    normalized_pre_save = normalize_content(pre_save_content, eol)
    normalized_post_save = normalize_content(post_save_content, eol)
    normalized_new = normalize_content(new_content, eol)

    user_edits: str | None = None
    if normalized_pre_save != normalized_new:
        user_edits = create_pretty_patch(rel_path, normalized_new, normalized_pre_save)

    auto_formatting_edits: str | None = None
    if normalized_pre_save != normalized_post_save:
        auto_formatting_edits = create_pretty_patch(rel_path, normalized_pre_save, normalized_post_save)

    return SaveResult(
        new_problems_message=new_problems_message,
        user_edits=user_edits,
        auto_formatting_edits=auto_formatting_edits,
        final_content=normalized_post_save,
    )
