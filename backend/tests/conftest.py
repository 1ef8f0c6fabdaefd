from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import SQLModel, Session, create_engine
from sqlmodel.pool import StaticPool

import backup_monitor.models  # noqa: F401  registers all tables
from backup_monitor.db.session import get_session
from backup_monitor.main import app
from backup_monitor.storage.memory import MemoryStorage
from backup_monitor.storage.sql import SqlStorage

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="clock")
def clock_fixture():
    return FixedClock()


@pytest.fixture(name="memory_storage")
def memory_storage_fixture(clock):
    return MemoryStorage(clock=clock)


@pytest.fixture(name="storage", params=["memory", "sql"])
def storage_fixture(request, clock):
    if request.param == "memory":
        return MemoryStorage(clock=clock)
    return SqlStorage(request.getfixturevalue("session"), clock=clock)


@pytest.fixture(name="client")
def client_fixture(session):
    from fastapi.testclient import TestClient

    def override_session():
        yield session

    app.dependency_overrides[get_session] = override_session
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
