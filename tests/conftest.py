"""Pytest configuration and shared fixtures."""

import os

# Must be set before djagency.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("READ_RETRY_DELAY", "0")
os.environ.setdefault("SUPABASE_URL", "")
os.environ.setdefault("SUPABASE_ANON_KEY", "")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "")

import uuid
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from djagency.core.auth import get_current_profile
from djagency.core.database import Base, get_db
from djagency.main import app
from djagency.models import Profile, ProfileRole
from djagency.services.accounts import AccountService, get_account_service
from djagency.services.storage import StorageService, get_storage_service


class FakeBucket:
    def __init__(self, storage: "FakeStorageClient", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, content, file_options=None):
        self.storage.uploads.append((self.name, path, content, file_options))
        return {"path": path}

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"

    def remove(self, paths):
        self.storage.removed.append((self.name, list(paths)))
        return []


class FakeStorageClient:
    """Stands in for the Supabase client; only .storage is used."""

    def __init__(self):
        self.uploads = []
        self.removed = []
        self.storage = self

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuthError(Exception):
    """Mimics supabase auth errors, which carry the HTTP status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.message = message
        self.status = status


class FakeAdminAuth:
    def __init__(self):
        self.deleted = []
        self.fail_with = None

    def delete_user(self, user_id):
        if self.fail_with is not None:
            raise self.fail_with
        self.deleted.append(user_id)


class FakeAuth:
    def __init__(self):
        self.tokens = {}      # token -> user id
        self.passwords = {}   # email -> (password, user id)
        self.reset_requests = []
        self.admin = FakeAdminAuth()

    def get_user(self, token):
        user_id = self.tokens.get(token)
        if user_id is None:
            raise FakeAuthError("invalid JWT", 401)
        return SimpleNamespace(user=SimpleNamespace(id=str(user_id), user_metadata={}, app_metadata={}))

    def sign_in_with_password(self, credentials):
        entry = self.passwords.get(credentials["email"])
        if entry is None or entry[0] != credentials["password"]:
            raise FakeAuthError("Invalid login credentials", 400)
        user_id = entry[1]
        token = f"token-{user_id}"
        self.tokens[token] = user_id
        return SimpleNamespace(
            session=SimpleNamespace(access_token=token, refresh_token="refresh"),
            user=SimpleNamespace(id=str(user_id), user_metadata={}, app_metadata={}),
        )

    def reset_password_for_email(self, email, options=None):
        self.reset_requests.append((email, options))


class FakeSupabase:
    def __init__(self):
        self.auth = FakeAuth()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncSession:
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


async def _make_profile(db: AsyncSession, role: ProfileRole, name: str, **fields) -> Profile:
    profile = Profile(
        id=uuid.uuid4(),
        role=role.value,
        email=f"{name.lower().replace(' ', '.')}@example.com",
        full_name=name,
        **fields,
    )
    db.add(profile)
    await db.flush()
    return profile


@pytest.fixture
async def admin(db) -> Profile:
    return await _make_profile(db, ProfileRole.ADMIN, "Ana Admin", is_admin=True)


@pytest.fixture
async def producer(db) -> Profile:
    return await _make_profile(db, ProfileRole.PRODUCER, "Paulo Produtor")


@pytest.fixture
async def dj_a(db) -> Profile:
    return await _make_profile(db, ProfileRole.DJ, "Alice Silva", artist_name="DJ Alice")


@pytest.fixture
async def dj_b(db) -> Profile:
    return await _make_profile(db, ProfileRole.DJ, "Bruno Costa", artist_name="DJ Bruno")


@pytest.fixture
def storage_client() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def storage(storage_client) -> StorageService:
    return StorageService(client_factory=lambda: storage_client, max_bytes=1024)


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def accounts(supabase) -> AccountService:
    return AccountService(client_factory=lambda: supabase, admin_client_factory=lambda: supabase)


@pytest.fixture
def current_user(admin):
    """Mutable holder for the profile the API client acts as."""
    return {"profile": admin}


@pytest.fixture
async def client(db, storage, accounts, current_user):
    async def override_get_db():
        try:
            yield db
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_profile] = lambda: current_user["profile"]
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_account_service] = lambda: accounts

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
