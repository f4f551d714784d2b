"""Pytest configuration and fixtures."""

import os
import tempfile

# Use test database - PostgreSQL when TEST_DATABASE_URL is set, SQLite locally
SQLALCHEMY_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///./test.db")

# Settings are read at import time, so configure them before importing the app
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="photo-share-uploads-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.api.dependencies import get_image_storage  # noqa: E402
from src.database import Base, Database, get_db  # noqa: E402
from src.main import app  # noqa: E402
from src.services.storage import ImageStorage  # noqa: E402


class AuthHeaders(dict):
    """Dict subclass that also stores the logged-in user's details."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


TEST_PASSWORD = "testpass123"

database = Database(SQLALCHEMY_DATABASE_URL)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    database.create_all()
    yield
    database.dispose()


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = database.session_factory()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def upload_dir(tmp_path):
    """Directory the image store writes to during a test."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture(scope="function")
def client(db, upload_dir):
    """Create a test client with database and storage overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_storage] = lambda: ImageStorage(upload_dir)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_user(
    client, email: str, username: str, password: str = TEST_PASSWORD, name: str = "Test User"
):
    """Register a user through the API and return the response."""
    return client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name, "username": username},
    )


def login_headers(client, email: str, password: str = TEST_PASSWORD) -> AuthHeaders:
    """Log in and return bearer headers for the session."""
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=email,
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    response = register_user(client, "test@example.com", "testuser")
    assert response.status_code == 200
    return login_headers(client, "test@example.com")


@pytest.fixture
def other_auth_headers(client):
    """A second, independent user."""
    response = register_user(client, "other@example.com", "otheruser", name="Other User")
    assert response.status_code == 200
    return login_headers(client, "other@example.com")
