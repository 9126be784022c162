"""Auth blueprint — /v2/auth/*

Password registration and login. Both return a bearer token to send as
`Authorization: Bearer <token>` on every other API call.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from lovevibes.extensions import limiter
from lovevibes.schemas import LoginRequest, RegisterRequest, parse_body
from lovevibes.services import auth_service

auth_bp = Blueprint("auth", __name__, url_prefix="/v2/auth")


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per minute")
def register():
    data = parse_body(RegisterRequest, request.get_json(silent=True))
    user = auth_service.register_user(data.email, data.password, data.name)
    return jsonify({
        "token": auth_service.issue_token(user),
        "user": user.to_dict(),
    }), 201


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    data = parse_body(LoginRequest, request.get_json(silent=True))
    user = auth_service.authenticate(data.email, data.password)
    return jsonify({
        "token": auth_service.issue_token(user),
        "user": user.to_dict(),
    })


@auth_bp.route("/me")
@login_required
def me():
    return jsonify({"user": current_user.to_dict()})
