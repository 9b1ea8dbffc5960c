import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_BACKEND", "cache+memory://")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.session import get_db
from app.models.base import Base
from app.models.quote import SavedQuote
from app.models.user import User
from app.core.security import create_access_token, hash_password
from app.core.enums import UserRole, SiteType, DesignLevel, Timeline


class TaskStub:
    """Stands in for a Celery task; records what would have been enqueued."""

    def __init__(self):
        self.calls = []

    def delay(self, *args):
        self.calls.append(args)


class FakeRedis:
    """In-memory subset of the redis.asyncio client used by the service."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value if isinstance(value, bytes) else str(value).encode()

    async def incr(self, key):
        value = int(self.store.get(key, b"0")) + 1
        self.store[key] = str(value).encode()
        return value

    async def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def crm_task(monkeypatch):
    stub = TaskStub()
    monkeypatch.setattr("app.api.quotes.sync_quote_to_crm", stub)
    return stub


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr("app.core.rate_limit.get_redis", lambda: fake)
    monkeypatch.setattr("app.utils.idempotency.get_redis", lambda: fake)
    return fake


@pytest.fixture
async def test_client(session_factory, crm_task):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _create_user(session_factory, username, role):
    async with session_factory() as db:
        user = User(username=username, password_hash=hash_password("s3cret-pass"), role=role)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


@pytest.fixture
async def admin_token(session_factory):
    user = await _create_user(session_factory, "admin", UserRole.ADMIN)
    return create_access_token(str(user.id), user.role)


@pytest.fixture
async def agent_token(session_factory):
    user = await _create_user(session_factory, "agent", UserRole.AGENT)
    return create_access_token(str(user.id), user.role)


@pytest.fixture
def valid_quote_data():
    return {
        "site_type": "ecommerce",
        "page_count": 12,
        "features": ["payments", "seo"],
        "design_level": "custom",
        "timeline": "rush",
    }


@pytest.fixture
def valid_submission_data(valid_quote_data):
    return {
        **valid_quote_data,
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-1234",
        "company": "Doe Outfitters",
        "notes": "Need it before the spring sale",
    }


@pytest.fixture
def create_saved_quote(session_factory):
    async def _create(**overrides):
        data = {
            "site_type": SiteType.BUSINESS,
            "page_count": 5,
            "features": [],
            "design_level": DesignLevel.TEMPLATE,
            "timeline": Timeline.STANDARD,
            "location": None,
            "contact_name": "Sam Client",
            "email": "sam@example.com",
            "total": 2500,
            "quote_min": 2375,
            "quote_max": 2625,
            "breakdown": {
                "base": 2500, "pages_cost": 0, "features_cost": 0,
                "design_adjustment": 0, "timeline_adjustment": 0, "location_adjustment": 0,
                "total": 2500, "min": 2375, "max": 2625,
                "estimated_timeline": "4-6 weeks", "price_table_version": "2025.1",
            },
        }
        data.update(overrides)
        async with session_factory() as db:
            quote = SavedQuote(**data)
            db.add(quote)
            await db.commit()
            await db.refresh(quote)
            return quote

    return _create
