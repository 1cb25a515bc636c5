"""
Shutterfeed Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Every test that touches the store gets its own SQLite file (aiosqlite), with
the full schema created from Base.metadata. Service tests work on one
session and only flush; API tests go through the FastAPI app with
get_db_session overridden, so each request commits or rolls back exactly
like production.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── engine / session_factory: per-test SQLite database
    ├── db_session: one AsyncSession for service-level tests
    ├── make_user / make_photo: factories writing straight through db_session
    ├── client: HTTPX AsyncClient bound to the app and the per-test database
    ├── temp_storage: temporary directory for file operations
    └── sample_image_bytes: minimal JPEG for upload tests
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="shutterfeed_db_"), "app.db"
)
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="shutterfeed_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from typing import AsyncGenerator, Optional, Sequence  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import app.models  # noqa: E402,F401
from app.database import Base, get_db_session  # noqa: E402
from app.models.photo import Photo  # noqa: E402
from app.models.user import User  # noqa: E402
from app.schemas.user import RegisterRequest  # noqa: E402
from app.services.user_service import user_service  # noqa: E402

DEFAULT_PASSWORD = "secret-pass-1"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    One session for a whole service-level test.

    Services only flush, so everything a test writes is visible to the
    same session; nothing is committed unless the test does it.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    """
    Register a user through UserService and return the ORM row.

    Usage:
        alice = await make_user("alice")
    """
    async def _make(username: str, first_name: str = "Test", last_name: Optional[str] = None) -> User:
        auth = await user_service.register(
            db_session,
            RegisterRequest(
                first_name=first_name,
                last_name=last_name or username.capitalize(),
                username=username,
                password=DEFAULT_PASSWORD,
            ),
        )
        return await db_session.get(User, auth.user.id)

    return _make


@pytest.fixture
def make_photo(db_session):
    """
    Insert a photo row directly (no file on disk).

    Usage:
        photo = await make_photo(owner, shared_with=[bob])
    """
    async def _make(owner: User, caption: str = "", shared_with: Sequence[User] = ()) -> Photo:
        photo = Photo(
            owner_id=owner.id,
            file_path=f"tests/{owner.username}.jpg",
            caption=caption,
            shared_with=list(shared_with),
        )
        db_session.add(photo)
        await db_session.flush()
        return photo

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    get_db_session is overridden to hand out sessions bound to the
    per-test database, with the same commit/rollback contract.
    """
    from app.main import app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """
    Register through the API; returns (user_json, auth_headers).

    Usage:
        alice, alice_headers = await register("alice")
    """
    async def _register(username: str, first_name: str = "Test"):
        response = await client.post(
            "/api/auth/register",
            json={
                "firstName": first_name,
                "lastName": username.capitalize(),
                "username": username,
                "password": DEFAULT_PASSWORD,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register


# ══════════════════════════════════════════════════════════════════════════
# Files
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9).

    Not a real photograph; it is only ever checked by magic-byte sniffing.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )
