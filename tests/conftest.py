import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from restload.settings import AutoLoadSettings
from restload.workspace import MemoryWorkspaceStore, Workspace


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's settings file and RESTLOAD_* variables out of tests."""
    monkeypatch.setattr("restload.settings.DEFAULT_SETTINGS_PATH", tmp_path / "no-settings.json")
    for name in list(os.environ):
        if name.startswith("RESTLOAD_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def workspace() -> Workspace:
    return Workspace(id="ws-1", name="Test Workspace")


@pytest.fixture
def store(workspace: Workspace) -> MemoryWorkspaceStore:
    return MemoryWorkspaceStore(workspace)


@pytest.fixture
def desktop_settings(tmp_path: Path) -> AutoLoadSettings:
    """Direct topology reading from tmp_path."""
    return AutoLoadSettings(
        host="desktop",
        topology="direct",
        workspace_location=str(tmp_path),
        default_import_type="native",
    )
