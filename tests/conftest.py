import pytest
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import Mock
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Add the parent directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import app
from core.auth import JWTManager, PasswordManager, init_jwt_manager
from core.database import get_session
from core.models import Subscription, User, Video

# bcrypt is slow on purpose; hash once for every seeded account
TEST_PASSWORD = "Secret123!"
TEST_PASSWORD_HASH = PasswordManager.hash_password(TEST_PASSWORD)

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key")


@pytest.fixture(autouse=True)
def jwt_manager() -> JWTManager:
    """Process-wide JWT manager with a fixed secret."""
    return init_jwt_manager(secret_key="test-secret-key")


@pytest.fixture
async def engine():
    """In-memory SQLite engine shared by every session of one test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async client for the FastAPI app, bound to the test database."""

    async def override_get_session():
        async with session_factory() as db_session:
            yield db_session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    """Insert a user; the password is always TEST_PASSWORD."""

    async def _make_user(username: str, **overrides) -> User:
        fields = {
            "username": username.lower(),
            "email": f"{username.lower()}@example.com",
            "fullname": username.title(),
            "password": TEST_PASSWORD_HASH,
            "avatar": f"https://cdn.example.com/avatars/{username.lower()}.png",
            "cover_image": "",
        }
        fields.update(overrides)
        user = User(**fields)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_video(session):
    """Insert a video; `minutes` offsets created_at from a fixed base time."""

    async def _make_video(owner_id: str, title: str = "Untitled", minutes: int = 0, **overrides) -> Video:
        created_at = BASE_TIME + timedelta(minutes=minutes)
        fields = {
            "title": title,
            "description": f"About {title}",
            "video_file": f"https://cdn.example.com/videos/{title.replace(' ', '-')}.mp4",
            "thumbnail": f"https://cdn.example.com/thumbs/{title.replace(' ', '-')}.jpg",
            "duration": 60.0,
            "views": 0,
            "is_published": True,
            "owner_id": owner_id,
            "created_at": created_at,
            "updated_at": created_at,
        }
        fields.update(overrides)
        video = Video(**fields)
        session.add(video)
        await session.commit()
        await session.refresh(video)
        return video

    return _make_video


@pytest.fixture
def subscribe(session):
    """Insert a subscription edge subscriber -> channel."""

    async def _subscribe(subscriber: User, channel: User) -> Subscription:
        edge = Subscription(subscriber_id=subscriber.id, channel_id=channel.id)
        session.add(edge)
        await session.commit()
        return edge

    return _subscribe


@pytest.fixture
def auth_headers(jwt_manager):
    """Bearer headers for a user."""

    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {jwt_manager.create_access_token(user)}"}

    return _auth_headers


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    logger = Mock()
    logger.info = Mock()
    logger.error = Mock()
    logger.warning = Mock()
    logger.debug = Mock()
    return logger
