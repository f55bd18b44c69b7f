"""Tests for authentication and current-user router."""

from fastapi.testclient import TestClient

from identity_manager.core.security import decode_access_token
from identity_manager.models.role import RoleName
from identity_manager.models.user import User


def test_login_success(test_client: TestClient, create_user):
    """Test successful login returns a bearer token for the user's email."""
    user, _ = create_user("login@example.com")

    response = test_client.post(
        "/api/auth/login",
        json={"email": "login@example.com", "password": "password123"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 3600
    assert data["user"]["id"] == user.id
    assert data["user"]["roles"] == ["USER"]
    assert "password_hash" not in data["user"]
    assert decode_access_token(data["access_token"])["sub"] == "login@example.com"


def test_login_wrong_password(test_client: TestClient, create_user):
    create_user("login@example.com")

    response = test_client.post(
        "/api/auth/login",
        json={"email": "login@example.com", "password": "wrongpassword"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_login_unknown_user(test_client: TestClient):
    response = test_client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": "password123"},
    )

    assert response.status_code == 401


def test_me_requires_authentication(test_client: TestClient):
    response = test_client.get("/api/me")

    assert response.status_code == 401
    assert response.json()["path"] == "/api/me"
    assert "WWW-Authenticate" in response.headers


def test_me_with_bearer_token(test_client: TestClient, create_user):
    _, token = create_user("me@example.com", first_name="Maria")

    response = test_client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["first_name"] == "Maria"


def test_me_with_basic_credentials(test_client: TestClient, create_user, basic_auth):
    create_user("me@example.com")

    response = test_client.get("/api/me", headers=basic_auth("me@example.com"))

    assert response.status_code == 200
    assert response.json()["email"] == "me@example.com"


def test_me_with_wrong_basic_password(test_client: TestClient, create_user, basic_auth):
    create_user("me@example.com")

    response = test_client.get("/api/me", headers=basic_auth("me@example.com", "not-it"))

    assert response.status_code == 401


def test_me_with_invalid_token(test_client: TestClient):
    response = test_client.get("/api/me", headers={"Authorization": "Bearer invalid.token.here"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_me_with_unsupported_scheme(test_client: TestClient):
    response = test_client.get("/api/me", headers={"Authorization": "Digest abc"})

    assert response.status_code == 401


def test_token_of_deleted_user_is_rejected(test_client: TestClient, create_user, test_db_session):
    user, token = create_user("gone@example.com")
    test_db_session.delete(user)
    test_db_session.commit()

    response = test_client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_update_me(test_client: TestClient, create_user, test_db_session):
    user, token = create_user("me@example.com")

    response = test_client.put(
        "/api/me",
        json={"first_name": "  Jean-Pierre ", "last_name": "Müller", "phone": "+1 (555) 123-4567"},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["first_name"] == "Jean-Pierre"
    assert data["last_name"] == "Müller"

    test_db_session.refresh(user)
    assert user.phone == "+1 (555) 123-4567"


def test_update_me_invalid_name(test_client: TestClient, create_user):
    _, token = create_user("me@example.com")

    response = test_client.put(
        "/api/me",
        json={"first_name": "John123", "last_name": "Doe"},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 400
    assert "first_name" in response.json()["errors"]


def test_update_my_privacy(test_client: TestClient, create_user, test_db_session):
    user, token = create_user("me@example.com")

    response = test_client.patch(
        "/api/me/privacy",
        json={"is_privacy_enabled": True},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 200
    assert response.json()["is_privacy_enabled"] is True
    test_db_session.refresh(user)
    assert user.is_privacy_enabled is True


def test_admin_login_reports_both_roles(test_client: TestClient, create_user):
    create_user("admin@example.com", roles=(RoleName.ADMIN,))

    response = test_client.post(
        "/api/auth/login",
        json={"email": "admin@example.com", "password": "password123"},
    )

    assert sorted(response.json()["user"]["roles"]) == ["ADMIN", "USER"]


def test_zero_role_user_can_authenticate(test_client: TestClient, create_user, test_db_session):
    user, token = create_user("bare@example.com")
    user.roles.clear()
    test_db_session.commit()

    response = test_client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["roles"] == []
    assert test_db_session.get(User, user.id).role_names == set()
