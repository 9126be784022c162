"""Shared test fixtures for the LoveVibes API test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, fake Stripe secrets)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- users: three registered users with fixed ids u1, u2, u3
- auth_headers: builds a Bearer header for a user id
- signed_webhook: serialises an event and signs it like Stripe does
- stripe_signature: raw header signer for hand-built payloads
"""

import hashlib
import hmac
import json
import time

import pytest
from werkzeug.security import generate_password_hash

from lovevibes import create_app
from lovevibes.extensions import db as _db
from lovevibes.models.user import User
from lovevibes.services.auth_service import issue_token

TEST_PASSWORD = "password123"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after.

    The app context is not held open while the test runs, so every test
    client request gets its own context (and its own current_user).
    In-memory SQLite keeps a single shared connection, so data survives
    between contexts.
    """
    with app.app_context():
        _db.create_all()
    yield _db
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def users(app, db_session):
    """Seed three users. Returns {"u1": id, "u2": id, "u3": id}."""
    with app.app_context():
        for user_id, name in (("u1", "Ava"), ("u2", "Noah"), ("u3", "Mia")):
            _db.session.add(User(
                id=user_id,
                email=f"{name.lower()}@test.local",
                password_hash=generate_password_hash(TEST_PASSWORD),
                name=name,
            ))
        _db.session.commit()

    return {"u1": "u1", "u2": "u2", "u3": "u3"}


@pytest.fixture
def auth_headers(app):
    """Return a function that builds Authorization headers for a user id."""

    def _headers(user_id):
        with app.app_context():
            user = _db.session.get(User, user_id)
            return {"Authorization": f"Bearer {issue_token(user)}"}

    return _headers


def sign_payload(payload, secret, timestamp=None):
    """Build a Stripe-Signature header: t=<unix>,v1=HMAC-SHA256("{t}.{payload}")."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def signed_webhook(app):
    """Return a function: event dict -> (payload, headers) signed with the test secret."""

    def _sign(event, timestamp=None, secret=None):
        payload = json.dumps(event)
        header = sign_payload(
            payload, secret or app.config["STRIPE_WEBHOOK_SECRET"], timestamp
        )
        return payload, {"Stripe-Signature": header}

    return _sign


@pytest.fixture
def stripe_signature():
    """Expose sign_payload to tests that build headers by hand."""
    return sign_payload
