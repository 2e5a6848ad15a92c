"""Shared fixtures: in-memory SQLite database, HTTP client and a test user."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from habitcoach.database import create_tables, get_db  # noqa: E402
from habitcoach.main import app  # noqa: E402
from habitcoach.models import DailyMetrics, ProgramProgress, User  # noqa: E402
from habitcoach.services.progression_config import ProgressionConfig, set_progression_config  # noqa: E402
from habitcoach.services.score_blender import ScoreCache  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Program start used throughout; 2024-01-01 is a Monday
PROGRAM_START = date(2024, 1, 1)


@pytest.fixture(autouse=True)
def reset_progression_config():
    set_progression_config(ProgressionConfig())
    yield
    set_progression_config(ProgressionConfig())


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncSession:
    session_maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncClient:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.score_cache = ScoreCache()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(email="test@example.com", timezone="America/New_York")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def program(db_session: AsyncSession, test_user: User) -> ProgramProgress:
    """Program started on PROGRAM_START, currently in week 1."""
    progress = ProgramProgress(
        user_id=test_user.id,
        current_week=1,
        current_phase=1,
        start_date=PROGRAM_START,
        week_extensions=0,
        progression_decisions=[],
    )
    db_session.add(progress)
    await db_session.commit()
    await db_session.refresh(progress)
    return progress


@pytest.fixture
def add_week_metrics(db_session: AsyncSession):
    """
    Insert daily rows for a program week.

    Each entry of ``ratios`` is one day; a float applies to every pillar, a
    dict sets pillars individually (missing pillars default to 1.0).
    """

    async def _add(user_id: int, week: int, ratios: list, start: date = PROGRAM_START):
        week_start = start + timedelta(days=(week - 1) * 7)
        for offset, ratio in enumerate(ratios):
            per_pillar = ratio if isinstance(ratio, dict) else {}
            default = ratio if not isinstance(ratio, dict) else 1.0
            db_session.add(
                DailyMetrics(
                    user_id=user_id,
                    date=week_start + timedelta(days=offset),
                    steps_target=8000,
                    steps_actual=round(8000 * per_pillar.get("steps", default)),
                    water_oz_target=80,
                    water_oz_actual=round(80 * per_pillar.get("water", default)),
                    sleep_hr_target=8.0,
                    sleep_hr_actual=8.0 * per_pillar.get("sleep", default),
                    mood_checkins_target=4,
                    mood_checkins_actual=round(4 * per_pillar.get("mood", default)),
                )
            )
        await db_session.commit()

    return _add
