import os

# Tests always run against a throwaway in-memory database
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from typing import Dict, Generator
from faker import Faker

from app.main import app
from app.database import Base, SessionLocal, engine

fake = Faker()


def reset_db():
    """Reset the database by dropping all tables and recreating them"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_database():
    """Every test starts from empty tables"""
    reset_db()
    yield


@pytest.fixture
def db() -> Generator:
    """Get test database session"""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client() -> Generator:
    """Test client with the application lifespan running (timer registry, tick loop)"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def test_user() -> Dict:
    """A caller identity, sent the way an upstream gateway would"""
    user_id = fake.uuid4()
    return {
        "user_id": user_id,
        "headers": {"X-User-Id": user_id}
    }


@pytest.fixture
def test_user2() -> Dict:
    """Create a second caller for testing user isolation"""
    user_id = fake.uuid4()
    return {
        "user_id": user_id,
        "headers": {"X-User-Id": user_id}
    }
