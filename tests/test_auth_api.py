# tests/test_auth_api.py

"""
Tests for login, password reset and token-based authentication.
"""

from datetime import timedelta
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from backoffice.core.enums import UserStatus
from backoffice.core.security import create_access_token
from backoffice.models.password_reset_token import PasswordResetToken
from backoffice.services.auth_service import hash_reset_token
from factories import PASSWORD, auth_header, make_user


def test_login_returns_token_and_user(client, plain_user):
    response = client.post(
        "/api/auth/login", json={"email": "USER@example.com", "password": PASSWORD},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == 200
    assert body["data"]["token"]
    assert body["data"]["user"]["email"] == "user@example.com"
    assert body["data"]["user"]["role_name"] == "user"
    assert "password" not in body["data"]["user"]


def test_login_wrong_password(client, plain_user):
    response = client.post(
        "/api/auth/login", json={"email": "user@example.com", "password": "nope"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_login_unknown_email(client, roles):
    response = client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_login_rejects_inactive_user(client, db, roles):
    make_user(db, "off@example.com", roles["user"], status=UserStatus.suspended)

    response = client.post(
        "/api/auth/login", json={"email": "off@example.com", "password": PASSWORD},
    )

    assert response.status_code == 401


def test_login_validation_error_is_400(client):
    response = client.post("/api/auth/login", json={"email": "a@b.c"})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert any(err["field"] == "password" for err in body["error"])


def test_me_requires_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_me_rejects_garbage_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_me_rejects_expired_token(client, plain_user):
    token = create_access_token(
        plain_user.id, plain_user.role_id, plain_user.email, expires_delta=timedelta(seconds=-5),
    )

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_me_returns_profile(client, plain_user):
    response = client.get("/api/auth/me", headers=auth_header(plain_user))

    assert response.status_code == 200
    assert response.json()["data"]["id"] == plain_user.id


def test_role_name_is_read_per_request(client, db, admin, roles):
    """Renaming a role takes effect without a new token."""
    headers = auth_header(admin)
    assert client.get("/api/roles", headers=headers).status_code == 200

    roles["admin"].name = "demoted"
    db.commit()

    assert client.get("/api/roles", headers=headers).status_code == 403


def test_forgot_password_unknown_email_is_success_shaped(client, roles):
    with patch("backoffice.services.auth_service.mail_service.send_password_reset_email") as send:
        response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert response.status_code == 200
    send.assert_not_called()


def test_password_reset_flow(client, db, plain_user):
    with patch(
        "backoffice.services.auth_service.mail_service.send_password_reset_email",
    ) as send:
        response = client.post("/api/auth/forgot-password", json={"email": "user@example.com"})

    assert response.status_code == 200
    to, reset_url = send.call_args[0]
    assert to == "user@example.com"
    query = parse_qs(urlparse(reset_url).query)
    token, uid = query["token"][0], int(query["uid"][0])
    assert uid == plain_user.id
    stored = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == uid).one()
    assert stored.token_hash == hash_reset_token(token)

    reset = client.post(
        "/api/auth/reset-password",
        json={"user_id": uid, "token": token, "new_password": "brand-new-pass"},
    )
    assert reset.status_code == 200

    login = client.post(
        "/api/auth/login", json={"email": "user@example.com", "password": "brand-new-pass"},
    )
    assert login.status_code == 200

    reused = client.post(
        "/api/auth/reset-password",
        json={"user_id": uid, "token": token, "new_password": "another-pass"},
    )
    assert reused.status_code == 400
    assert reused.json()["message"] == "Invalid or expired token"


def test_new_reset_request_invalidates_previous_token(client, db, plain_user):
    with patch(
        "backoffice.services.auth_service.mail_service.send_password_reset_email",
    ) as send:
        client.post("/api/auth/forgot-password", json={"email": "user@example.com"})
        first_url = send.call_args[0][1]
        client.post("/api/auth/forgot-password", json={"email": "user@example.com"})

    first_token = parse_qs(urlparse(first_url).query)["token"][0]
    assert db.query(PasswordResetToken).filter(PasswordResetToken.user_id == plain_user.id).count() == 1

    response = client.post(
        "/api/auth/reset-password",
        json={"user_id": plain_user.id, "token": first_token, "new_password": "whatever1"},
    )
    assert response.status_code == 400


def test_reset_token_bound_to_its_user(client, db, plain_user, admin):
    with patch(
        "backoffice.services.auth_service.mail_service.send_password_reset_email",
    ) as send:
        client.post("/api/auth/forgot-password", json={"email": "user@example.com"})
    token = parse_qs(urlparse(send.call_args[0][1]).query)["token"][0]

    response = client.post(
        "/api/auth/reset-password",
        json={"user_id": admin.id, "token": token, "new_password": "hijacked1"},
    )

    assert response.status_code == 400
