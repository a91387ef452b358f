"""
Pytest configuration and fixtures for blog platform tests
"""

import os
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from blog.auth import hash_password
from blog.config import settings
from blog.database import Database
from blog.models.category import Category
from blog.models.post import Post, PostStatus
from blog.models.user import Role, User
from blog.services.user_service import ensure_default_roles
from blog.utils.dates import utcnow
from blog.utils.session import InMemorySessionManager
from main import create_app


# Test database URL: a throwaway SQLite file per test unless TEST_DATABASE_URL
# points at a dedicated database (e.g. PostgreSQL to match production)
def get_test_database_url(tmp_path) -> str:
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url
    return f"sqlite+aiosqlite:///{tmp_path / 'test_blog.db'}"


@pytest.fixture
async def test_database(tmp_path) -> AsyncGenerator[Database, None]:
    """
    Create a fresh schema with default roles for each test function.
    """
    database = Database(get_test_database_url(tmp_path))
    await database.drop_all()
    await database.create_all()

    async with database.session_factory() as session:
        await ensure_default_roles(session)

    yield database

    await database.drop_all()
    await database.dispose()


@pytest.fixture
async def test_db(test_database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests that need it."""
    async with test_database.session_factory() as session:
        yield session


@pytest.fixture
async def sessions() -> AsyncGenerator[InMemorySessionManager, None]:
    manager = InMemorySessionManager(expire_seconds=3600)
    await manager.connect()
    yield manager
    await manager.disconnect()


@pytest.fixture
def app(test_database: Database, sessions: InMemorySessionManager):
    """The application bound to the test database and an in-memory session store."""
    return create_app(settings, database=test_database, sessions=sessions)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _create_user(db: AsyncSession, username: str, email: str, password: str, role_name: str) -> User:
    result = await db.execute(select(Role).where(Role.name == role_name))
    role = result.scalars().first()

    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        role_id=role.id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def test_user(test_db: AsyncSession) -> User:
    """Create a test user with 'user' role"""
    return await _create_user(test_db, "testuser", "testuser@example.com", "testpassword", "user")


@pytest.fixture
async def other_user(test_db: AsyncSession) -> User:
    return await _create_user(test_db, "otheruser", "other@example.com", "otherpassword", "user")


@pytest.fixture
async def test_admin(test_db: AsyncSession) -> User:
    """Create a test admin user"""
    return await _create_user(test_db, "testadmin", "admin@example.com", "adminpassword", "admin")


@pytest.fixture
async def test_category(test_db: AsyncSession) -> Category:
    category = Category(name="Essays", slug="essays", description="Long-form writing")
    test_db.add(category)
    await test_db.commit()
    await test_db.refresh(category)
    return category


@pytest.fixture
async def test_post(test_db: AsyncSession, test_admin: User, test_category: Category) -> Post:
    """A published post with slug 'hello-world' and no views."""
    post = Post(
        title="Hello World",
        slug="hello-world",
        excerpt="A first post",
        body="<p>Hello world, this is the very first post on the blog.</p>",
        status=PostStatus.PUBLISHED,
        published_at=utcnow(),
        author_id=test_admin.id,
        category_id=test_category.id,
    )
    test_db.add(post)
    await test_db.commit()
    await test_db.refresh(post)
    return post


@pytest.fixture
async def draft_post(test_db: AsyncSession, test_admin: User) -> Post:
    post = Post(
        title="Work In Progress",
        slug="work-in-progress",
        body="Not ready yet.",
        status=PostStatus.DRAFT,
        author_id=test_admin.id,
    )
    test_db.add(post)
    await test_db.commit()
    await test_db.refresh(post)
    return post


@pytest.fixture
def login(client: AsyncClient, sessions: InMemorySessionManager):
    """
    Sign a user in on the shared test client by planting a session cookie.

    Usage: await login(test_user)
    """

    async def _login(user: User) -> str:
        session_id = await sessions.create_session(user.id, user.email, user.role_name)
        client.cookies.set(settings.session_cookie_name, session_id)
        return session_id

    return _login


@pytest.fixture
async def user_client(client: AsyncClient, login, test_user: User) -> AsyncClient:
    await login(test_user)
    return client


@pytest.fixture
async def admin_client(client: AsyncClient, login, test_admin: User) -> AsyncClient:
    await login(test_admin)
    return client
