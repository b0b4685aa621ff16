import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Ensure project root is on sys.path for CI environments where
# Python might not automatically include it (e.g., some GitHub
# Actions runners invoking pytest differently).
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.config_loader import ConfigLoader
from helpers.task_queue import TaskQueue
from services.config_service import ConfigService
from services.db.database import Database
from services.guild_store import GuildConfigRepository
from services.practice_room_service import PracticeRoomService
from services.practice_time_service import PracticeTimeService
from services.room_lock_service import RoomLockService
from tests.factories import FakeGuild, FakeRole, FakeTextChannel


@pytest.fixture(autouse=True)
def reset_config_loader():
    """Every test starts from the repository's config.yaml."""
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest_asyncio.fixture()
async def temp_db(tmp_path):
    """Initialize Database to a temporary file for isolation across tests."""
    # Save original state
    orig_path = Database._db_path
    orig_initialized = Database._initialized

    # Reset and initialize with temp database
    Database._initialized = False
    Database._db_path = None
    db_file = tmp_path / "test.db"
    await Database.initialize(str(db_file))

    assert Database._initialized is True
    assert Database._db_path == str(db_file)

    yield str(db_file)

    # Restore original state completely
    Database._db_path = orig_path
    Database._initialized = orig_initialized


@pytest_asyncio.fixture()
async def config_service():
    service = ConfigService()
    await service.initialize()
    yield service
    await service.shutdown()


@pytest_asyncio.fixture()
async def task_queue():
    queue = TaskQueue()
    await queue.start(num_workers=1)
    yield queue
    await queue.stop()


@pytest_asyncio.fixture()
async def practice_service(temp_db, config_service, task_queue):
    """A fully wired PracticeRoomService backed by a temporary database."""
    time_service = PracticeTimeService()
    lock_service = RoomLockService(config_service)
    await time_service.initialize()
    await lock_service.initialize()

    service = PracticeRoomService(
        config_service,
        GuildConfigRepository(),
        time_service,
        lock_service,
        task_queue,
    )
    await service.initialize()
    yield service
    await service.shutdown()
    await lock_service.shutdown()
    await time_service.shutdown()


@pytest.fixture
def guild():
    """Guild with the practice chat channel and the moderation roles."""
    g = FakeGuild(
        roles=[
            FakeRole(1, "@everyone"),
            FakeRole(2, "Temp Muted"),
            FakeRole(3, "Verification Required"),
        ]
    )
    g.channels.append(FakeTextChannel(channel_id=5000, guild=g))
    return g


@pytest.fixture
def practice_chat(guild):
    return guild.get_channel(5000)
