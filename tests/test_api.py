"""API endpoint tests for health and authentication."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from src.database import get_db
from src.main import app
from src.models.user import User
from src.schemas.auth import Identity
from src.services.auth import build_token_claims, encode_token, enrich_token


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["timestamp"]


def test_health_check_database_down(client):
    """Test health check reports the database error when the ping fails."""
    broken = MagicMock()
    broken.execute.side_effect = Exception("Database connection failed")

    def override_get_db():
        yield broken

    app.dependency_overrides[get_db] = override_get_db

    response = client.get("/api/health")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"] == "disconnected"
    assert data["error"] == "Database connection failed"
    assert data["timestamp"]


def test_register_user(client, db):
    """Test user registration returns the identity without the password."""
    response = client.post(
        "/api/auth/register",
        json={"email": "a@b.com", "password": "password123", "name": "A", "username": "a1"},
    )
    assert response.status_code == 200
    data = response.json()
    assert "id" in data
    assert data["email"] == "a@b.com"
    assert data["name"] == "A"
    assert data["username"] == "a1"
    assert "password" not in data
    assert "password_hash" not in data

    user = db.query(User).filter(User.email == "a@b.com").one()
    assert user.password_hash != "password123"
    assert len(user.password_hash) >= 20


def test_register_duplicate_email(client, db, auth_headers):
    """Test registration with duplicate email fails and keeps one row."""
    response = client.post(
        "/api/auth/register",
        json={
            "email": auth_headers.email,
            "password": "password123",
            "name": "Duplicate",
            "username": "someoneelse",
        },
    )
    assert response.status_code == 400
    assert response.json() == {"error": "User already exists"}
    assert db.query(User).filter(User.email == auth_headers.email).count() == 1


def test_register_duplicate_username(client, db, auth_headers):
    """Test registration with duplicate username fails and keeps one row."""
    response = client.post(
        "/api/auth/register",
        json={
            "email": "fresh@example.com",
            "password": "password123",
            "name": "Duplicate",
            "username": "testuser",
        },
    )
    assert response.status_code == 400
    assert response.json()["error"] == "User already exists"
    assert db.query(User).filter(User.username == "testuser").count() == 1
    assert db.query(User).filter(User.email == "fresh@example.com").count() == 0


def test_register_invalid_email(client, db):
    """Test registration with a malformed email is rejected with field detail."""
    response = client.post(
        "/api/auth/register",
        json={"email": "invalid-email", "password": "password123", "name": "A", "username": "a1"},
    )
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Validation failed"
    assert [d["field"] for d in data["details"]] == ["email"]
    assert db.query(User).count() == 0


def test_register_short_password(client, db):
    """Test registration with a password under 6 characters is rejected."""
    response = client.post(
        "/api/auth/register",
        json={"email": "a@b.com", "password": "123", "name": "A", "username": "a1"},
    )
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "password"
    assert db.query(User).count() == 0


def test_register_missing_name_and_username(client, db):
    """Test registration requires non-empty name and username."""
    response = client.post(
        "/api/auth/register",
        json={"email": "a@b.com", "password": "password123", "name": ""},
    )
    assert response.status_code == 400
    fields = {d["field"] for d in response.json()["details"]}
    assert fields == {"name", "username"}
    assert db.query(User).count() == 0


def test_login(client, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"] == {
        "id": auth_headers.user_id,
        "email": "test@example.com",
        "name": "Test User",
        "username": "testuser",
    }


def test_login_with_mixed_case_email(client):
    """Test logging in with exactly the email used at registration."""
    response = client.post(
        "/api/auth/register",
        json={
            "email": "Alice@Example.COM",
            "password": "password123",
            "name": "Alice",
            "username": "alice",
        },
    )
    assert response.status_code == 200

    response = client.post(
        "/api/auth/login", json={"email": "Alice@Example.COM", "password": "password123"}
    )
    assert response.status_code == 200
    assert response.json()["user"]["username"] == "alice"


def test_login_wrong_password(client, auth_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/auth/login", json={"email": auth_headers.email, "password": "wrongpass"}
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid email or password"


def test_login_unknown_email(client):
    """Test login with an email nobody registered."""
    response = client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": "testpass123"}
    )
    assert response.status_code == 401


def test_login_missing_fields(client):
    """Test login with missing credentials is a rejection, not a schema error."""
    response = client.post("/api/auth/login", json={})
    assert response.status_code == 401


def test_get_session(client, auth_headers):
    """Test the session carries the user id and username from the token."""
    response = client.get("/api/auth/session", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == auth_headers.user_id
    assert data["user"]["username"] == "testuser"
    assert data["access_token"] is None
    assert data["expires"]


def test_get_session_rotates_old_token(client, auth_headers):
    """Test a token past the update age is reissued on session read."""
    identity = Identity(
        id=auth_headers.user_id, email="test@example.com", name="Test User", username="testuser"
    )
    issued = datetime.now(UTC) - timedelta(days=2)
    old_token = encode_token(enrich_token(build_token_claims(identity, now=issued), identity))

    response = client.get("/api/auth/session", headers={"Authorization": f"Bearer {old_token}"})
    assert response.status_code == 200
    data = response.json()
    assert data["access_token"]
    assert data["access_token"] != old_token
    assert data["user"]["username"] == "testuser"

    # The replacement token is itself a valid session
    response = client.get(
        "/api/auth/session", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert response.status_code == 200
    assert response.json()["access_token"] is None


def test_session_requires_token(client):
    """Test the session endpoint rejects anonymous and forged callers."""
    assert client.get("/api/auth/session").status_code == 401

    response = client.get("/api/auth/session", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_logout(client):
    """Test logout is accepted without a session."""
    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"
