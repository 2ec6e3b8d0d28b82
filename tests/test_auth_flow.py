"""Tests covering registration, login, profile and sign-out."""

from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from models import db
from models.user import User


def _login(client: FlaskClient, email: str, password: str) -> str:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    payload = response.get_json()
    return payload["access_token"]


def test_register_creates_applicant_account(client: FlaskClient, app):
    response = client.post(
        "/auth/register",
        json={
            "email": "  New.User@Example.com ",
            "password": "Secret123",
            "full_name": "New User",
            "preferred_language": "fr",
            "role": "super_admin",
        },
    )

    assert response.status_code == 201
    user = response.get_json()["user"]
    assert user["email"] == "new.user@example.com"
    assert user["role"] == "user"
    assert user["preferred_language"] == "fr"

    with app.app_context():
        stored = User.query.filter_by(email="new.user@example.com").one()
        assert stored.check_password("Secret123")


def test_register_rejects_duplicate_email(client: FlaskClient, make_user):
    make_user("taken@example.com")

    response = client.post(
        "/auth/register",
        json={"email": "TAKEN@example.com", "password": "Secret123", "full_name": "Dup"},
    )

    assert response.status_code == 409


def test_login_returns_access_token(client: FlaskClient, make_user):
    """Users should receive a JWT when providing valid credentials."""

    make_user("j1@example.com", password="J1Pass123")

    response = client.post(
        "/auth/login",
        json={"email": "j1@example.com", "password": "J1Pass123"},
    )

    assert response.status_code == 200
    data = response.get_json()
    assert "access_token" in data
    assert data["user"]["email"] == "j1@example.com"
    assert data["user"]["role"] == "user"


@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"email": "j1@example.com"}, 400),
        ({"password": "J1Pass123"}, 400),
        ({"email": "j1@example.com", "password": "wrong"}, 401),
    ],
)
def test_login_validation(client: FlaskClient, make_user, payload, status_code):
    """Login endpoint should validate request bodies and credentials."""

    make_user("j1@example.com", password="J1Pass123")

    response = client.post("/auth/login", json=payload)

    assert response.status_code == status_code


def test_inactive_user_cannot_log_in(client: FlaskClient, app, make_user):
    user_id = make_user("gone@example.com", password="J1Pass123")
    with app.app_context():
        db.session.get(User, user_id).is_active = False
        db.session.commit()

    response = client.post(
        "/auth/login", json={"email": "gone@example.com", "password": "J1Pass123"}
    )

    assert response.status_code == 401


def test_me_and_profile_update(client: FlaskClient, make_user):
    make_user("me@example.com", password="J1Pass123", full_name="Me")
    headers = {"Authorization": f"Bearer {_login(client, 'me@example.com', 'J1Pass123')}"}

    response = client.get("/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.get_json()["full_name"] == "Me"

    response = client.patch(
        "/auth/me",
        json={"phone": "+213555000222", "preferred_language": "ar"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.get_json()["phone"] == "+213555000222"
    assert response.get_json()["preferred_language"] == "ar"

    response = client.patch("/auth/me", json={"preferred_language": "de"}, headers=headers)
    assert response.status_code == 400


def test_logout_revokes_token(client: FlaskClient, make_user):
    make_user("bye@example.com", password="J1Pass123")
    headers = {"Authorization": f"Bearer {_login(client, 'bye@example.com', 'J1Pass123')}"}

    assert client.post("/auth/logout", headers=headers).status_code == 200

    response = client.get("/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.get_json()["detail"] == "Token has been revoked."
