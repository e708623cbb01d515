import os

# Must be set before anything imports app.config / app.db.
os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient

import app.models  # noqa: F401
from app.db import Base, SessionLocal, engine, get_db
from app.main import app as fastapi_app

pytest_plugins = [
    "tests.fixtures.user_fixtures",
    "tests.fixtures.provider_fixtures",
    "tests.fixtures.message_fixtures",
]


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client whose requests share the test's session."""

    def override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()
