"""Health blueprint — GET /health

Reports database reachability and whether the webhook secret is set.
200 when everything is fine, 503 when degraded.
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lovevibes.extensions import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health():
    checks = {}

    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Health check database error: {e}")
        checks["database"] = "error"

    checks["webhook_secret"] = (
        "ok" if current_app.config.get("STRIPE_WEBHOOK_SECRET") else "missing"
    )

    healthy = all(value == "ok" for value in checks.values())
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }), 200 if healthy else 503
