"""
The edit session: one assisted edit of one file, from open to reset.

    open -> update* -> update(is_final=True) -> save_changes | revert_changes -> (reset)

A session streams generated content into a `DiffViewer`, then either saves it
and reports how the saved file differs from what was generated, or reverts
the file (and any directories it had to create) to how it was before.

Each public operation holds the session lock for its whole duration, so a
session has a single writer even if callers forget to await. Between two
awaits inside an operation no other operation on the same session runs.
"""

import asyncio
import logging
from pathlib import Path

from livediff import fs
from livediff.config import Settings
from livediff.diagnostics import DiagnosticsService, diagnostics_to_problems_string, get_new_diagnostics
from livediff.encoding import DEFAULT_ENCODING, DefaultEncodingResolver, EncodingResolver, is_utf8_compatible
from livediff.exceptions import OpenFailedError, PreconditionError, SessionConflictError
from livediff.locator import first_diff_line
from livediff.models import (
    CLOSED,
    Active,
    ChangeLocation,
    Closed,
    DiagnosticsSnapshot,
    EditSessionData,
    EditType,
    SaveResult,
    SessionPhase,
    SessionState,
)
from livediff.reconcile import format_new_problems, reconcile_save
from livediff.stream import ensure_trailing_newline_like, plan_update, strip_bom
from livediff.viewer import DiffViewer, EditorHost

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks which absolute paths have an edit session in progress."""

    def __init__(self) -> None:
        self._claimed: set[Path] = set()

    def claim(self, path: Path) -> None:
        if path in self._claimed:
            raise SessionConflictError(f"'{path}' is already being edited by another session")
        self._claimed.add(path)

    def release(self, path: Path) -> None:
        self._claimed.discard(path)

    def is_claimed(self, path: Path) -> bool:
        return path in self._claimed


DEFAULT_REGISTRY = SessionRegistry()


class EditSession:
    def __init__(
        self,
        viewer: DiffViewer,
        host: EditorHost,
        *,
        settings: Settings | None = None,
        encoding_resolver: EncodingResolver | None = None,
        diagnostics: DiagnosticsService | None = None,
        registry: SessionRegistry | None = None,
    ) -> None:
        self._viewer: DiffViewer = viewer
        self._host: EditorHost = host
        self._settings: Settings = settings or Settings()
        self._encoding: EncodingResolver = encoding_resolver or DefaultEncodingResolver()
        self._diagnostics: DiagnosticsService | None = diagnostics
        self._registry: SessionRegistry = registry or DEFAULT_REGISTRY
        self._state: SessionState = CLOSED
        self._lock: asyncio.Lock = asyncio.Lock()

    # --- Read-only view of the session ---

    @property
    def viewer(self) -> DiffViewer:
        return self._viewer

    @property
    def data(self) -> EditSessionData | None:
        match self._state:
            case Active(data=data):
                return data
            case Closed():
                return None

    @property
    def is_editing(self) -> bool:
        return isinstance(self._state, Active)

    @property
    def rel_path(self) -> str | None:
        return self.data.rel_path if self.data else None

    @property
    def absolute_path(self) -> Path | None:
        return self.data.absolute_path if self.data else None

    @property
    def edit_type(self) -> EditType | None:
        return self.data.edit_type if self.data else None

    @property
    def phase(self) -> SessionPhase | None:
        return self.data.phase if self.data else None

    @property
    def encoding(self) -> str | None:
        return self.data.encoding if self.data else None

    @property
    def original_content(self) -> str | None:
        return self.data.original_content if self.data else None

    @property
    def new_content(self) -> str | None:
        return self.data.new_content if self.data else None

    @property
    def streamed_lines(self) -> list[str]:
        return list(self.data.streamed_lines) if self.data else []

    @property
    def created_dirs(self) -> list[Path]:
        return list(self.data.created_dirs) if self.data else []

    def _require_active(self, operation: str) -> EditSessionData:
        match self._state:
            case Active(data=data):
                return data
            case Closed():
                raise PreconditionError(f"Cannot {operation}: no file is open for editing (call open() first)")

    # --- Lifecycle ---

    async def open(self, rel_path: str) -> None:
        """
        Starts editing `rel_path` (relative to the workspace root).

        Existing files are read through the encoding resolver; missing files
        are created empty, along with any missing parent directories.
        """
        async with self._lock:
            if isinstance(self._state, Active):
                raise SessionConflictError(
                    f"Session is already editing '{self._state.data.rel_path}'; save, revert or reset it first"
                )

            absolute_path = fs.resolve_in_workspace(self._settings.workspace_root, rel_path)
            self._registry.claim(absolute_path)
            try:
                data = await self._open(rel_path, absolute_path)
            except BaseException:
                self._registry.release(absolute_path)
                raise
            self._state = Active(data)

    async def _open(self, rel_path: str, absolute_path: Path) -> EditSessionData:
        file_exists = await asyncio.to_thread(absolute_path.is_file)
        data = EditSessionData(
            rel_path=rel_path,
            absolute_path=absolute_path,
            edit_type=EditType.MODIFY if file_exists else EditType.CREATE,
        )

        if file_exists:
            # Make sure we read what the user sees, not a stale copy on disk
            existing_document = self._host.find_open_document(absolute_path)
            data.document_was_open = existing_document is not None
            if existing_document is not None and existing_document.is_dirty:
                await existing_document.save()

            raw = await fs.read_bytes(absolute_path)
            data.encoding = self._encoding.detect(raw)
            data.original_content = self._encoding.decode(raw, data.encoding)
            if not is_utf8_compatible(data.encoding):
                data.encoding_mismatch = True
                logger.warning(
                    "'%s' is encoded as %s; edits will be written as %s", rel_path, data.encoding, DEFAULT_ENCODING
                )
        else:
            data.encoding = DEFAULT_ENCODING

        file_written = False
        try:
            _ = await fs.create_directories_for_file(absolute_path, data.created_dirs)
            if not file_exists:
                await fs.write_text(absolute_path, "")
                file_written = True
            data.pre_diagnostics = await self._snapshot_diagnostics()
            await self._viewer.open_diff_editor(absolute_path, data.original_content)
            await self._viewer.scroll_editor_to_line(0)
        except BaseException as e:
            await self._rollback_open(data, file_written, e)
            raise

        data.streamed_lines = []
        data.phase = SessionPhase.STREAMING
        logger.debug("Opened %s for %s", rel_path, data.edit_type.value)
        return data

    async def _rollback_open(self, data: EditSessionData, file_written: bool, error: BaseException) -> None:
        try:
            await self._viewer.reset_diff_view()
            if file_written:
                await fs.delete_file(data.absolute_path)
            await self._remove_created_dirs(data)
        except OSError as rollback_error:
            raise OpenFailedError(
                f"Failed to open '{data.rel_path}' ({error}) and could not roll back: {rollback_error}",
                list(data.created_dirs),
            ) from error

    async def reset(self) -> None:
        async with self._lock:
            await self._reset()

    async def _reset(self) -> None:
        if isinstance(self._state, Active):
            self._registry.release(self._state.data.absolute_path)
        self._state = CLOSED
        await self._viewer.reset_diff_view()

    # --- Streaming ---

    async def update(
        self,
        accumulated_content: str,
        is_final: bool,
        change_location: ChangeLocation | None = None,
    ) -> None:
        """
        Shows `accumulated_content`, the full file content generated so far.

        Only complete lines are shown until the final update. On the final
        update the document is cut down to exactly the streamed lines.
        """
        async with self._lock:
            data = self._require_active("update")

            # The viewer keeps a BOM when replacing from the start of the
            # document, so streaming one in again would duplicate it
            accumulated_content = strip_bom(accumulated_content)
            data.new_content = accumulated_content

            plan = plan_update(data.streamed_lines, accumulated_content, is_final)
            if plan.replacement is not None and plan.replace_range is not None:
                await self._viewer.replace_text(plan.replacement, plan.replace_range, plan.current_line)

                if change_location is not None:
                    await self._viewer.scroll_editor_to_line(change_location.start_line)
                elif len(plan.diff_lines) <= self._settings.small_change_threshold:
                    await self._viewer.scroll_editor_to_line(plan.current_line)
                else:
                    await self._viewer.scroll_animation(len(data.streamed_lines), plan.current_line)
                    await self._viewer.scroll_editor_to_line(plan.current_line)

            data.streamed_lines = plan.accumulated_lines

            if is_final:
                # Drop whatever is left of a longer earlier version
                await self._viewer.truncate_document(len(data.streamed_lines))
                data.new_content = ensure_trailing_newline_like(accumulated_content, data.original_content)
                data.phase = SessionPhase.FINALIZED

    # --- Accept / reject ---

    async def save_changes(self) -> SaveResult:
        """
        Saves the document and reports how the result differs from what was generated.

        Returns an empty `SaveResult` when there is nothing to save. The
        session is reset afterwards.
        """
        async with self._lock:
            document = self._viewer.document
            match self._state:
                case Active(data=data) if data.new_content is not None and document is not None:
                    pass
                case _:
                    return SaveResult()

            new_content = data.new_content

            # The save below may run a formatter, so capture the text first
            pre_save_content = document.get_text()
            if document.is_dirty:
                await document.save()
            post_save_content = document.get_text()

            await self._host.show_text_document(data.absolute_path, preview=False, preserve_focus=True)
            await self._viewer.close_diff_view()

            new_problems_message = await self._new_problems_message(data.pre_diagnostics)

            result = reconcile_save(
                data.rel_path,
                new_content,
                pre_save_content,
                post_save_content,
                new_problems_message,
            )
            data.phase = SessionPhase.SAVED
            logger.info("Saved %s", data.rel_path)
            await self._reset()
            return result

    async def revert_changes(self) -> None:
        """
        Undoes the session: deletes a created file and the directories made
        for it, or restores a modified file's original content.

        Does nothing when no session is open. I/O failures propagate.
        """
        async with self._lock:
            match self._state:
                case Active(data=data):
                    pass
                case Closed():
                    return

            document = self._viewer.document
            if data.edit_type is EditType.CREATE:
                if document is not None and document.is_dirty:
                    await document.save(skip_formatting=True)
                await self._viewer.close_diff_view()
                await fs.delete_file(data.absolute_path)
                logger.info("File %s has been deleted.", data.absolute_path)
                await self._remove_created_dirs(data)
            else:
                if document is not None:
                    await document.replace_all(data.original_content)
                    await document.save(skip_formatting=True)
                else:
                    await fs.write_text(data.absolute_path, data.original_content)
                logger.info("File %s has been reverted to its original content.", data.absolute_path)
                if data.document_was_open:
                    await self._host.show_text_document(data.absolute_path, preview=False, preserve_focus=True)
                await self._viewer.close_diff_view()

            data.phase = SessionPhase.REVERTED
            await self._reset()

    async def _remove_created_dirs(self, data: EditSessionData) -> None:
        # Deepest first; each entry leaves the list only once it is gone
        while data.created_dirs:
            directory = data.created_dirs[-1]
            await fs.remove_directory(directory)
            _ = data.created_dirs.pop()
            logger.info("Directory %s has been deleted.", directory)

    async def scroll_to_first_diff(self) -> None:
        """Reveals the first line where the document differs from the original file."""
        async with self._lock:
            document = self._viewer.document
            if document is None:
                return
            original_content = self.data.original_content if self.data else ""
            line = first_diff_line(original_content, document.get_text())
            if line is not None:
                await self._viewer.reveal_line(line)

    # --- Diagnostics ---

    async def _snapshot_diagnostics(self) -> DiagnosticsSnapshot:
        if self._diagnostics is None:
            return []
        try:
            return await self._diagnostics.snapshot()
        except Exception:
            logger.warning("Could not collect diagnostics", exc_info=True)
            return []

    async def _new_problems_message(self, pre_diagnostics: DiagnosticsSnapshot) -> str:
        """
        Diagnostics are compared before and after the edit so only problems
        this edit introduced are reported. A slow linter just means nothing
        new is reported yet.
        """
        if self._diagnostics is None:
            return ""
        try:
            post_diagnostics = await self._diagnostics.snapshot()
            problems = diagnostics_to_problems_string(
                get_new_diagnostics(pre_diagnostics, post_diagnostics),
                self._settings.severity_filter,
                self._settings.workspace_root,
            )
        except Exception:
            logger.warning("Could not compute new diagnostics", exc_info=True)
            return ""
        return format_new_problems(problems)
