# pyright: standard
from livediff.buffer import BufferDiffViewer, TextBuffer
from livediff.session import EditSession


def document_of(viewer: BufferDiffViewer) -> TextBuffer:
    """Returns the viewer's open document, failing the test if there is none."""
    document = viewer.document
    assert document is not None, "expected an open diff document"
    return document


async def stream(session: EditSession, content: str, chunk_size: int = 7) -> None:
    """Feeds `content` to the session in growing prefixes, like a generator would, then finalizes."""
    for end in range(chunk_size, len(content), chunk_size):
        await session.update(content[:end], is_final=False)
    await session.update(content, is_final=True)
