"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

from flask import jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No global limit; limits are per-route
    storage_uri="memory://",
)


@login_manager.request_loader
def load_user_from_request(req):
    """Resolve `Authorization: Bearer <token>` into a User.

    Imports lazily to avoid circular deps.
    """
    auth_header = req.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    from lovevibes.services.auth_service import load_user_from_token

    return load_user_from_token(auth_header[7:])


@login_manager.unauthorized_handler
def unauthorized():
    """API clients get JSON 401 instead of a login redirect."""
    return jsonify({"error": "Unauthorized", "code": "UNAUTHENTICATED"}), 401
