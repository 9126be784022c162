"""Auth service — registration, password login and bearer tokens.

Tokens are the user id signed with SECRET_KEY (itsdangerous), valid for
AUTH_TOKEN_MAX_AGE seconds. The Flask-Login request_loader calls
load_user_from_token() for every request carrying a Bearer header.
"""

import logging

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from lovevibes.errors import ConflictError, UnauthenticatedError
from lovevibes.extensions import db
from lovevibes.models.user import User

logger = logging.getLogger(__name__)

TOKEN_SALT = "lovevibes-auth-token"


def _serializer(secret_key):
    return URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)


def issue_token(user, secret_key=None):
    """Return a signed bearer token for `user`."""
    secret_key = secret_key or current_app.config["SECRET_KEY"]
    return _serializer(secret_key).dumps(user.id)


def load_user_from_token(token, secret_key=None, max_age=None):
    """Resolve a bearer token to a User, or None if invalid/expired."""
    secret_key = secret_key or current_app.config["SECRET_KEY"]
    if max_age is None:
        max_age = current_app.config["AUTH_TOKEN_MAX_AGE"]
    try:
        user_id = _serializer(secret_key).loads(token, max_age=max_age)
    except SignatureExpired:
        logger.info("Expired auth token presented")
        return None
    except BadSignature:
        logger.warning("Invalid auth token presented")
        return None
    return db.session.get(User, user_id)


def register_user(email, password, name=None):
    """Create a user. Raises ConflictError if the email is taken."""
    if User.query.filter_by(email=email).first():
        raise ConflictError("An account with this email already exists")

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        name=name,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Concurrent registration with the same email won the insert.
        db.session.rollback()
        raise ConflictError("An account with this email already exists")

    logger.info(f"Registered user {user.id}")
    return user


def authenticate(email, password):
    """Return the user for valid credentials, else raise UnauthenticatedError."""
    user = User.query.filter_by(email=email).first()
    if user is None or not check_password_hash(user.password_hash, password):
        raise UnauthenticatedError("Invalid email or password")
    return user
