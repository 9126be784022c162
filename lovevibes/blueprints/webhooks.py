"""Webhooks blueprint — /v2/billing/webhook

Receives Stripe webhook events. Server-to-server, no bearer auth.
Raw body is required for signature verification.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from lovevibes.extensions import db
from lovevibes.services.stripe_service import handle_webhook

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/v2/billing")


@webhooks_bp.route("/webhook", methods=["POST"])
def stripe_webhook():
    """Receive and process Stripe webhook events.

    1. Get raw body (required for signature verification)
    2. Verify signature with STRIPE_WEBHOOK_SECRET
    3. Process the event (idempotent via processed_webhooks table)
    4. Return 200 to acknowledge receipt

    401 on a bad signature, 503 if the secret is missing, 500 when
    processing fails so that Stripe retries.
    """
    payload = request.get_data(as_text=True)
    sig_header = request.headers.get("Stripe-Signature")

    result = handle_webhook(
        db.session,
        payload,
        sig_header,
        current_app.config.get("STRIPE_WEBHOOK_SECRET"),
        tolerance=current_app.config.get("STRIPE_WEBHOOK_TOLERANCE", 300),
    )
    return jsonify(result.to_dict()), 200
