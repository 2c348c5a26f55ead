"""
Pytest configuration and shared fixtures for pdanalytics tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import AsyncGenerator, Generator

# Add src to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdanalytics.datasync.coordinator import SyncCoordinator
from pdanalytics.storage.store import SyncStore
from pdanalytics.tables import SCHEMAS
from tests.utils.sync_helpers import ScriptedClient


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
async def local_store(temp_dir: Path) -> AsyncGenerator[SyncStore, None]:
    """This instance's own store with every default table."""
    store = SyncStore.open(temp_dir / "local.db", label="local")
    await store.initialize(SCHEMAS)
    yield store
    await store.close()


@pytest.fixture
async def peer_store(temp_dir: Path) -> AsyncGenerator[SyncStore, None]:
    """Local store receiving data replicated from ``PEER_URL``."""
    store = SyncStore.open(temp_dir / "peer.db", label="peer")
    await store.initialize(SCHEMAS)
    yield store
    await store.close()


@pytest.fixture
def scripted_client() -> ScriptedClient:
    return ScriptedClient()


@pytest.fixture
def coordinator(scripted_client: ScriptedClient) -> SyncCoordinator:
    """Enabled coordinator talking to a scripted peer, with no retry delay."""
    return SyncCoordinator(
        enabled=True,
        period=10,
        page_size=1000,
        retry_delay=0,
        client=scripted_client,
    )
