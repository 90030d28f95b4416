"""
Pytest fixtures for MedInfo Service tests.
"""

import json
import os
import tempfile
from datetime import date
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set environment variables before imports
_db_dir = tempfile.mkdtemp(prefix="medinfo-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["ADMIN_API_KEY"] = "test-api-key-12345"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEBUG"] = "true"

from app.core.cache import KEY_NAMESPACE, CacheService  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.models import Medicine  # noqa: E402
from app.db.session import create_db_engine, get_engine, get_session_factory  # noqa: E402
from app.main import app  # noqa: E402
from app.schemas.schedule import ScheduleCreate  # noqa: E402

MEDICINES = [
    {"id": 1, "name": "Aspirin", "category": "Analgesic,Antiplatelet", "otc_rx": "OTC"},
    {"id": 2, "name": "Ibuprofen", "category": "Analgesic,NSAID", "otc_rx": "OTC"},
    {"id": 3, "name": "Warfarin", "category": "Anticoagulant", "otc_rx": "Rx"},
    {"id": 4, "name": "Paracetamol", "category": "Analgesic", "otc_rx": "OTC"},
]


def add_medicines(db: Session) -> None:
    """Insert the standard medicine fixtures."""
    for data in MEDICINES:
        db.add(Medicine(description=f"{data['name']} tablets", **data))
    db.commit()


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """In-memory database session with medicines loaded."""
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    session = factory()
    add_medicines(session)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """Application client on a freshly emptied database."""
    Base.metadata.drop_all(bind=get_engine())

    with TestClient(app) as client:
        session = get_session_factory()()
        try:
            add_medicines(session)
        finally:
            session.close()
        yield client


@pytest.fixture
def api_key_headers():
    """Headers with valid API key."""
    return {"X-API-Key": "test-api-key-12345"}


@pytest.fixture
def user_headers():
    """Headers identifying user 1."""
    return {"X-User-Id": "1"}


@pytest.fixture
def other_user_headers():
    """Headers identifying user 2."""
    return {"X-User-Id": "2"}


@pytest.fixture
def schedule_payload() -> ScheduleCreate:
    return ScheduleCreate(
        medicine_id=1,
        dosage_amount=75,
        dosage_unit="mg",
        instructions="Take with food",
        start_date=date(2024, 1, 1),
    )


class MemoryCache(CacheService):
    """Dict-backed stand-in for Redis that keeps the real key handling."""

    def __init__(self) -> None:
        super().__init__()
        self.store: dict[str, str] = {}

    @property
    def is_connected(self) -> bool:
        return True

    async def get(self, key):
        value = self.store.get(key)
        return json.loads(value) if value else None

    async def set(self, key, value, ttl=None):
        self.store[key] = json.dumps(value, default=str)
        return True

    async def incr(self, key):
        value = int(self.store.get(key, "0")) + 1
        self.store[key] = str(value)
        return value

    async def clear_prefix(self, prefix):
        keys = [key for key in self.store if key.startswith(f"{KEY_NAMESPACE}:{prefix}:")]
        for key in keys:
            del self.store[key]
        return len(keys)


@pytest.fixture
def memory_cache() -> MemoryCache:
    """Connected in-memory cache."""
    return MemoryCache()
