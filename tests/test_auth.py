"""Tests for the auth blueprint and bearer tokens.

Covers:
- Registration (success, duplicate email, validation)
- Login with valid and invalid credentials
- /v2/auth/me with valid, invalid and expired tokens
"""

from lovevibes.extensions import db
from lovevibes.models.user import User
from lovevibes.services.auth_service import issue_token, load_user_from_token


class TestRegistration:
    """Tests for POST /v2/auth/register."""

    def test_register_success(self, client, app):
        resp = client.post("/v2/auth/register", json={
            "email": "  New.User@Example.com ",
            "password": "longenough",
            "name": "New User",
        })
        assert resp.status_code == 201

        data = resp.get_json()
        assert data["token"]
        assert data["user"]["email"] == "new.user@example.com"
        assert data["user"]["credits_balance"] == 0
        assert data["user"]["subscription_tier"] == "free"

        with app.app_context():
            user = User.query.filter_by(email="new.user@example.com").first()
            assert user is not None
            assert user.password_hash != "longenough"

    def test_token_from_register_works(self, client):
        resp = client.post("/v2/auth/register", json={
            "email": "fresh@example.com",
            "password": "longenough",
        })
        token = resp.get_json()["token"]

        resp = client.get("/v2/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["email"] == "fresh@example.com"

    def test_duplicate_email_rejected(self, client, users):
        resp = client.post("/v2/auth/register", json={
            "email": "ava@test.local",
            "password": "longenough",
        })
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "CONFLICT"

    def test_short_password_rejected(self, client):
        resp = client.post("/v2/auth/register", json={
            "email": "short@example.com",
            "password": "short",
        })
        assert resp.status_code == 400
        assert "password" in resp.get_json()["error"]

    def test_invalid_email_rejected(self, client):
        resp = client.post("/v2/auth/register", json={
            "email": "not-an-email",
            "password": "longenough",
        })
        assert resp.status_code == 400

    def test_non_json_body_rejected(self, client):
        resp = client.post("/v2/auth/register", data="email=x", content_type="text/plain")
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_INPUT"


class TestLogin:
    """Tests for POST /v2/auth/login."""

    def test_login_success(self, client, users):
        resp = client.post("/v2/auth/login", json={
            "email": "AVA@test.local",
            "password": "password123",
        })
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["user"]["id"] == "u1"
        assert data["token"]

    def test_wrong_password(self, client, users):
        resp = client.post("/v2/auth/login", json={
            "email": "ava@test.local",
            "password": "wrong-password",
        })
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "UNAUTHENTICATED"

    def test_unknown_email(self, client, users):
        resp = client.post("/v2/auth/login", json={
            "email": "nobody@test.local",
            "password": "password123",
        })
        assert resp.status_code == 401


class TestBearerTokens:
    """Tests for token issue / resolution."""

    def test_me_with_token(self, client, users, auth_headers):
        resp = client.get("/v2/auth/me", headers=auth_headers("u2"))
        assert resp.status_code == 200
        assert resp.get_json()["user"]["name"] == "Noah"

    def test_me_without_token(self, client):
        resp = client.get("/v2/auth/me")
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Unauthorized", "code": "UNAUTHENTICATED"}

    def test_non_bearer_scheme_ignored(self, client, users):
        resp = client.get("/v2/auth/me", headers={"Authorization": "Basic dTE6cGFzcw=="})
        assert resp.status_code == 401

    def test_token_signed_with_other_key(self, app, client, users):
        with app.app_context():
            token = issue_token(db.session.get(User, "u1"), secret_key="some-other-key")

        resp = client.get("/v2/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_expired_token(self, app, users):
        with app.app_context():
            token = issue_token(db.session.get(User, "u1"))
            assert load_user_from_token(token).id == "u1"
            assert load_user_from_token(token, max_age=-1) is None

    def test_token_for_deleted_user(self, app, users):
        with app.app_context():
            user = db.session.get(User, "u3")
            token = issue_token(user)
            db.session.delete(user)
            db.session.commit()

            assert load_user_from_token(token) is None
