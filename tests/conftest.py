"""
Shared fixtures: in-memory SQLite database and a TestClient wired to it.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from alumnihive.main import app
from alumnihive.db.base import Base
from alumnihive.db.session import get_db
from alumnihive.db.models.user import User, Role
from alumnihive.core.security import hash_password
import alumnihive.db.models  # noqa: F401


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_PASSWORD = "testpass123"
TEST_KEY_SECRET = "rzp_test_key_secret"
TEST_WEBHOOK_SECRET = "rzp_test_webhook_secret"


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def razorpay_secrets(monkeypatch):
    """Sign and verify with real secrets unless a test clears them."""
    monkeypatch.setattr("alumnihive.core.security.RAZORPAY_KEY_SECRET", TEST_KEY_SECRET)
    monkeypatch.setattr("alumnihive.core.security.RAZORPAY_WEBHOOK_SECRET", TEST_WEBHOOK_SECRET)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(db):
    """Factory: make_user(Role.STUDENT, "s1") creates and returns a committed user."""
    counter = {"n": 0}
    password_hash = hash_password(TEST_PASSWORD)

    def _make(role: Role, name: str = None, **fields) -> User:
        counter["n"] += 1
        name = name or f"{role.value}{counter['n']}"
        user = User(
            email=f"{name}@example.com",
            password_hash=password_hash,
            first_name=name.capitalize(),
            last_name="Test",
            role=role,
            **fields
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT, "s1")


@pytest.fixture
def alumni(make_user):
    return make_user(Role.ALUMNI, "a1")
