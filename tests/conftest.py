# pyright: standard
from pathlib import Path

import pytest

from livediff.buffer import BufferDiffViewer, BufferHost
from livediff.config import Settings
from livediff.diagnostics import DiagnosticsStore
from livediff.session import EditSession, SessionRegistry


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(workspace_root=tmp_path)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def viewer() -> BufferDiffViewer:
    return BufferDiffViewer()


@pytest.fixture
def host() -> BufferHost:
    return BufferHost()


@pytest.fixture
def diagnostics() -> DiagnosticsStore:
    return DiagnosticsStore()


@pytest.fixture
def session(
    viewer: BufferDiffViewer,
    host: BufferHost,
    settings: Settings,
    diagnostics: DiagnosticsStore,
    registry: SessionRegistry,
) -> EditSession:
    return EditSession(viewer, host, settings=settings, diagnostics=diagnostics, registry=registry)
