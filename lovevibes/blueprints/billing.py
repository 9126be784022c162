"""Billing blueprint — /v2/billing/*

Routes:
- POST /v2/billing/purchase-credits — start a Checkout Session for a credit pack
- POST /v2/billing/subscribe        — start a Checkout Session for Plus / Platinum
- GET  /v2/billing/info             — current balance and subscription

Balances only change when the signed webhook arrives (see webhooks.py).
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from lovevibes.schemas import PurchaseCreditsRequest, SubscribeRequest, parse_body
from lovevibes.services.billing_service import get_billing_info
from lovevibes.services.stripe_service import (
    create_credit_checkout,
    create_subscription_checkout,
)

logger = logging.getLogger(__name__)

billing_bp = Blueprint("billing", __name__, url_prefix="/v2/billing")


@billing_bp.route("/purchase-credits", methods=["POST"])
@login_required
def purchase_credits():
    data = parse_body(PurchaseCreditsRequest, request.get_json(silent=True))
    checkout = create_credit_checkout(current_user, data.package_id, current_app.config)
    logger.info(f"Credit checkout started: user={current_user.id} package={data.package_id}")
    return jsonify(checkout)


@billing_bp.route("/subscribe", methods=["POST"])
@login_required
def subscribe():
    data = parse_body(SubscribeRequest, request.get_json(silent=True))
    checkout = create_subscription_checkout(
        current_user, data.tier, data.interval, current_app.config
    )
    logger.info(f"Subscription checkout started: user={current_user.id} tier={data.tier}")
    return jsonify(checkout)


@billing_bp.route("/info")
@login_required
def info():
    return jsonify(get_billing_info(current_user))
