import os

# Point the application at SQLite before proptrack.core.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from proptrack.core.auth import AuthService
from proptrack.core.database import Base, get_db
from proptrack.db.models import User, Property, Client, Viewing, utcnow
from proptrack.main import app

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return engine


@pytest.fixture(scope="function")
def test_db_session(test_engine):
    """Create a test database session"""
    Base.metadata.create_all(bind=test_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def override_get_db(test_db_session):
    """Override the get_db dependency for testing"""
    def _override_get_db():
        try:
            yield test_db_session
        finally:
            pass
    return _override_get_db


@pytest.fixture(scope="function")
def client(override_get_db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_user(session, email: str, role: str = "admin", name: str = "Test Agent") -> User:
    user = User(
        email=email,
        hashed_password=AuthService.get_password_hash("secret123"),
        role=role,
        name=name,
        is_active=True,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = AuthService.create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def agent(test_db_session):
    return _create_user(test_db_session, "agent@example.com")


@pytest.fixture
def other_agent(test_db_session):
    return _create_user(test_db_session, "other.agent@example.com", name="Other Agent")


@pytest.fixture
def regular_user(test_db_session):
    return _create_user(test_db_session, "user@example.com", role="user", name="Regular User")


@pytest.fixture
def auth_headers(agent):
    return _headers_for(agent)


@pytest.fixture
def other_auth_headers(other_agent):
    return _headers_for(other_agent)


@pytest.fixture
def user_auth_headers(regular_user):
    return _headers_for(regular_user)


@pytest.fixture
def make_property(test_db_session, agent):
    """Factory inserting a property row; keyword arguments override the defaults"""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = dict(
            title=f"Test Property {counter['n']}",
            description="Spacious home close to the marina",
            price=1_000_000,
            property_type="villa",
            listing_type="sale",
            bedrooms=3,
            bathrooms=2,
            area=2500,
            address=f"{counter['n']} Palm Street",
            city="Dubai",
            state="Dubai",
            zip_code="00000",
            images=[],
            status="active",
            featured=False,
            agent_id=agent.id,
            # Strictly increasing so "newest first" is deterministic
            created_at=datetime(2024, 1, 1) + timedelta(minutes=counter["n"]),
        )
        values.update(overrides)
        amenities = values.pop("amenities", [])
        row = Property(**values)
        row.amenities.extend(amenities)
        test_db_session.add(row)
        test_db_session.commit()
        test_db_session.refresh(row)
        return row

    return _make


@pytest.fixture
def make_client(test_db_session):
    counter = {"n": 0}

    def _make(property_row, **overrides):
        counter["n"] += 1
        values = dict(
            name=f"Client {counter['n']}",
            email=f"client{counter['n']}@example.com",
            phone="+971500000000",
            property_id=property_row.id,
            status="new",
            priority="medium",
        )
        values.update(overrides)
        row = Client(**values)
        test_db_session.add(row)
        test_db_session.commit()
        test_db_session.refresh(row)
        return row

    return _make


@pytest.fixture
def make_viewing(test_db_session):
    def _make(property_row, client_row, scheduled_at, **overrides):
        values = dict(
            property_id=property_row.id,
            client_id=client_row.id,
            scheduled_at=scheduled_at,
            duration=60,
            status="scheduled",
            is_active=True,
        )
        values.update(overrides)
        row = Viewing(**values)
        test_db_session.add(row)
        test_db_session.commit()
        test_db_session.refresh(row)
        return row

    return _make


@pytest.fixture
def tomorrow_at():
    """Naive UTC instant on tomorrow's date at the given hour/minute"""
    def _at(hour: int, minute: int = 0, days: int = 1) -> datetime:
        base = utcnow() + timedelta(days=days)
        return base.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return _at
