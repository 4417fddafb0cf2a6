"""Shared test fixtures."""
import random
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from daily_coin.core.database import create_engine, create_session_factory, create_tables
from daily_coin.core.dependencies import get_coin_service, get_hot_question_service
from daily_coin.domains.coin.service import CoinService
from daily_coin.domains.hot_questions.service import HotQuestionService
from daily_coin.repositories.memory import MemoryFortuneRepository
from daily_coin.repositories.sql import SqlFortuneRepository
from daily_coin.utils.china_time import CHINA_TZ

FIELD_TEXT = "今天适合穿一件浅色的外套。"


class FakeClock:
    """UTC+8 clock the test moves by hand."""

    def __init__(self, moment: datetime):
        self.now = moment

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args):
        self.now = datetime(*args, tzinfo=CHINA_TZ)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 9, 0, tzinfo=CHINA_TZ))


@pytest.fixture
def rng():
    return random.Random(20240101)


@pytest.fixture
def memory_repository():
    return MemoryFortuneRepository()


@pytest.fixture
async def sql_repository():
    """SqlFortuneRepository on an in-memory SQLite database with the schema created."""
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    repository = SqlFortuneRepository(create_session_factory(engine), engine=engine)
    yield repository
    await engine.dispose()


@pytest.fixture
async def file_sql_repository(tmp_path):
    """SQLite file database: each session gets its own connection, so writes really interleave."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'daily_coin.db'}")
    await create_tables(engine)
    repository = SqlFortuneRepository(create_session_factory(engine), engine=engine)
    yield repository
    await engine.dispose()


@pytest.fixture(params=["memory", "sql"])
async def repository(request):
    """Both storage implementations, so every scenario runs against each."""
    if request.param == "memory":
        yield MemoryFortuneRepository()
        return
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    yield SqlFortuneRepository(create_session_factory(engine), engine=engine)
    await engine.dispose()


@pytest.fixture
def field_text():
    return FIELD_TEXT


@pytest.fixture
def generator():
    """Mock text generator. Returns FIELD_TEXT unless a test changes it."""
    mock = MagicMock()
    mock.generate = AsyncMock(return_value=FIELD_TEXT)
    return mock


@pytest.fixture
def coin_service(repository, generator, clock, rng):
    return CoinService(repository, generator, question_limit=6, clock=clock, rng=rng)


@pytest.fixture
def hot_service(repository, clock):
    return HotQuestionService(repository, top_n=5, retention_days=7, clock=clock)


@pytest.fixture
def app_services(memory_repository, generator, clock, rng):
    """Services for the HTTP tests. Memory only: TestClient runs its own event loop."""
    return {
        "repository": memory_repository,
        "coin": CoinService(memory_repository, generator, question_limit=6, clock=clock, rng=rng),
        "hot": HotQuestionService(memory_repository, top_n=5, retention_days=7, clock=clock),
    }


@pytest.fixture
def client(app_services):
    """FastAPI test client with services injected; the lifespan is not run."""
    from daily_coin.main import app

    app.dependency_overrides[get_coin_service] = lambda: app_services["coin"]
    app.dependency_overrides[get_hot_question_service] = lambda: app_services["hot"]
    yield TestClient(app)
    app.dependency_overrides.clear()
