import asyncio
import os
from pathlib import Path
from tempfile import mkstemp


def resolve_in_workspace(workspace_root: Path, rel_path: str) -> Path:
    """
    Resolves `rel_path` against the workspace root.

    We use os.path.normpath to collapse '..' and '.' segments lexically so the
    session identity does not depend on symlink targets.
    """
    return Path(os.path.normpath(workspace_root.absolute() / rel_path))


def are_paths_equal(a: Path | str | None, b: Path | str | None) -> bool:
    if a is None or b is None:
        return a is b
    return os.path.normcase(os.path.normpath(a)) == os.path.normcase(os.path.normpath(b))


def atomic_write_text(path: Path, text: str | bytes, encoding: str = "utf-8") -> None:
    fd, tmp = mkstemp(suffix=path.suffix, prefix=path.name + ".tmp", dir=path.parent)
    tmp_path = Path(tmp)
    try:
        # newline="" keeps the caller's line endings untouched
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            match text:
                case str():
                    _ = f.write(text)
                case bytes():
                    _ = f.write(text.decode(encoding))

        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def _create_directories_for_file(path: Path, created: list[Path]) -> None:
    missing: list[Path] = []
    current = path.parent
    while not current.exists():
        missing.append(current)
        if current.parent == current:
            break
        current = current.parent

    for directory in reversed(missing):
        directory.mkdir()
        created.append(directory)


async def read_bytes(path: Path) -> bytes:
    return await asyncio.to_thread(path.read_bytes)


async def write_text(path: Path, text: str) -> None:
    await asyncio.to_thread(atomic_write_text, path, text)


async def delete_file(path: Path) -> None:
    await asyncio.to_thread(path.unlink)


async def remove_directory(path: Path) -> None:
    await asyncio.to_thread(path.rmdir)


async def create_directories_for_file(path: Path, created: list[Path]) -> list[Path]:
    """
    Creates every missing ancestor directory of `path`, outermost first.

    Each directory is appended to `created` as soon as it exists, so the list
    is accurate for rollback even if a later mkdir fails. Returns the
    directories created by this call.
    """
    before = len(created)
    await asyncio.to_thread(_create_directories_for_file, path, created)
    return created[before:]
