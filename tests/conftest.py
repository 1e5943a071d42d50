import os

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before the app reads its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from harada.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from harada.models.user import User  # noqa: E402
from harada.models.chart import Chart, ChartCell  # noqa: E402,F401
from harada.models.cycle import WeeklyCycle, WeeklyAction  # noqa: E402,F401
from harada.services import grid  # noqa: E402
from harada.services.chart import get_or_create_chart, upsert_cell  # noqa: E402
from harada.core.security import create_access_token  # noqa: E402
from harada.utils.password import hash_password  # noqa: E402


@pytest.fixture
async def async_engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(db):
    user = User(email="kaito@example.com", name="Kaito", hashed_password=hash_password("password123"))
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def chart(db, user):
    return await get_or_create_chart(db, user)


async def fill_actions(db, chart, count, prefix="Action"):
    """Write `count` action cells, walking the grid row by row."""
    cells = []
    for i, (row, col) in enumerate(grid.positions(grid.ACTION)[:count]):
        cells.append(await upsert_cell(db, chart, row, col, f"{prefix} {i}"))
    return cells


@pytest.fixture
def recorded_changes():
    return []


@pytest.fixture
def notifier(recorded_changes):
    from harada.services.events import ChangeNotifier

    notifier = ChangeNotifier()
    notifier.subscribe(lambda resource, resource_id: recorded_changes.append((resource, resource_id)))
    return notifier


@pytest.fixture
async def client(session_factory, notifier):
    """HTTP client talking to the app with the test database and notifier."""
    from httpx import ASGITransport, AsyncClient

    from harada.database import get_db
    from harada.main import app
    from harada.services.events import get_notifier

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def make_user(session_factory, email, password="password123"):
    async with session_factory() as session:
        user = User(email=email, name=email.split("@")[0], hashed_password=hash_password(password))
        session.add(user)
        await session.commit()
        return user.id


def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}

