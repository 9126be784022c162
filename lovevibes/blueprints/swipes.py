"""Swipes blueprint — /like, /pass, /v2/matches

Routes:
- POST /like?id=<target>   — like a profile; reports a match on mutual like
- POST /pass?id=<target>   — pass on a profile
- GET  /v2/matches         — the caller's matches, newest first

The target may also be sent as a JSON body: {"target_id": "..."}.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from lovevibes.extensions import db, limiter
from lovevibes.models.swipe import Swipe
from lovevibes.schemas import SwipeRequest, parse_body
from lovevibes.services.swipe_service import list_matches, record_swipe

swipes_bp = Blueprint("swipes", __name__)


def _swipe(action):
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    target_id = request.args.get("id") or body.get("target_id")
    data = parse_body(SwipeRequest, {"target_id": target_id})

    result = record_swipe(db.session, current_user.id, data.target_id, action)
    return jsonify(result.to_dict())


@swipes_bp.route("/like", methods=["POST"])
@limiter.limit("120 per minute")
@login_required
def like():
    return _swipe(Swipe.LIKE)


@swipes_bp.route("/pass", methods=["POST"])
@limiter.limit("120 per minute")
@login_required
def pass_():
    return _swipe(Swipe.PASS)


@swipes_bp.route("/v2/matches")
@login_required
def matches():
    return jsonify({"matches": list_matches(db.session, current_user.id)})
