"""Stripe service — all Stripe API calls and webhook handling.

Responsible for:
- Creating Stripe Checkout Sessions (credit packs and subscriptions)
- Verifying webhook signatures (HMAC-SHA256, 5-minute replay window)
- Idempotency via the processed_webhooks ledger
- Dispatching to event-specific handlers

Webhook side effects and the ledger row are committed together: either
the event is fully applied and recorded, or nothing is written and Stripe
retries it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

import stripe
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from lovevibes.errors import MisconfiguredError, UnauthenticatedError, UpstreamError
from lovevibes.models.webhook_event import WebhookEvent
from lovevibes.schemas import parse_webhook_event
from lovevibes.services.billing_service import (
    get_credit_package,
    get_subscription_price_id,
    grant_credits,
    log_billing_audit,
    reset_subscription,
    set_subscription,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 300  # seconds


@dataclass
class WebhookResult:
    event_id: str
    event_type: str
    already_processed: bool = False

    def to_dict(self):
        body = {"received": True}
        if self.already_processed:
            body["idempotent"] = True
        return body


# ──────────────────────────────────────────────
# Checkout Sessions
# ──────────────────────────────────────────────

def create_credit_checkout(user, package_id, app_config):
    """Create a one-time Checkout Session for a credit package.

    Credits are not granted here: the checkout.session.completed webhook
    reads them back from the session metadata once payment succeeds.

    Raises InvalidInputError for an unknown package, UpstreamError if
    Stripe fails.
    """
    package = get_credit_package(package_id)
    stripe.api_key = app_config["STRIPE_SECRET_KEY"]
    app_base_url = app_config["APP_BASE_URL"]

    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            client_reference_id=user.id,
            customer_email=user.email,
            line_items=[{
                "price_data": {
                    "currency": app_config.get("CREDITS_CURRENCY", "usd"),
                    "unit_amount": package["price_cents"],
                    "product_data": {"name": f"{package['credits']} Vibe Credits"},
                },
                "quantity": 1,
            }],
            success_url=f"{app_base_url}/credits?checkout=success",
            cancel_url=f"{app_base_url}/credits?checkout=cancel",
            metadata={
                "user_id": user.id,
                "package_id": package_id,
                "credits": str(package["credits"]),
            },
        )
    except stripe.StripeError as e:
        logger.error(f"Credit checkout failed for user {user.id}: {e}", exc_info=True)
        raise UpstreamError("Could not start checkout, please retry") from e

    return {
        "checkout_url": session.url,
        "package_id": package_id,
        "credits": package["credits"],
    }


def create_subscription_checkout(user, tier, interval, app_config):
    """Create a subscription Checkout Session for `tier` billed per `interval`.

    user_id and tier ride along in subscription metadata so the
    customer.subscription.* webhooks know whom to upgrade.
    """
    price_id = get_subscription_price_id(tier, interval, app_config)
    stripe.api_key = app_config["STRIPE_SECRET_KEY"]
    app_base_url = app_config["APP_BASE_URL"]

    try:
        session = stripe.checkout.Session.create(
            mode="subscription",
            client_reference_id=user.id,
            customer_email=user.email,
            line_items=[{"price": price_id, "quantity": 1}],
            subscription_data={"metadata": {"user_id": user.id, "tier": tier}},
            success_url=f"{app_base_url}/premium?checkout=success",
            cancel_url=f"{app_base_url}/premium?checkout=cancel",
            metadata={"user_id": user.id, "tier": tier, "interval": interval},
        )
    except stripe.StripeError as e:
        logger.error(f"Subscription checkout failed for user {user.id}: {e}", exc_info=True)
        raise UpstreamError("Could not start checkout, please retry") from e

    return {"checkout_url": session.url, "tier": tier, "interval": interval}


# ──────────────────────────────────────────────
# Webhook Handling
# ──────────────────────────────────────────────

def verify_webhook_signature(payload, sig_header, webhook_secret,
                             tolerance=DEFAULT_TOLERANCE):
    """Check a `t=<unix>,v1=<hex hmac>` signature header against the payload.

    The expected signature is HMAC-SHA256 of "{t}.{payload}" keyed by the
    webhook secret; signatures older than `tolerance` seconds are refused.

    Raises UnauthenticatedError (missing/stale/invalid signature) or
    MisconfiguredError (no secret on this deployment).
    """
    if not sig_header:
        logger.warning("Webhook received without Stripe-Signature header")
        raise UnauthenticatedError("Missing signature")
    if not webhook_secret:
        logger.error("Webhook received but STRIPE_WEBHOOK_SECRET is not set")
        raise MisconfiguredError("Webhook not configured")

    try:
        stripe.WebhookSignature.verify_header(
            payload, sig_header, webhook_secret, tolerance=tolerance
        )
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise UnauthenticatedError("Invalid signature") from e


def handle_webhook(session, payload, sig_header, webhook_secret,
                   tolerance=DEFAULT_TOLERANCE):
    """Verify, parse and process a raw webhook delivery.

    Returns a WebhookResult. Raises UnauthenticatedError,
    MisconfiguredError, InvalidInputError (malformed event) or
    UpstreamError (processing failed, ledger untouched).
    """
    verify_webhook_signature(payload, sig_header, webhook_secret, tolerance)
    event = parse_webhook_event(payload)
    return handle_webhook_event(session, event)


def handle_webhook_event(session, event):
    """Process a verified, parsed webhook event exactly once.

    Idempotency: checks the processed_webhooks ledger before processing.
    If the event was already processed, returns immediately.
    """
    try:
        existing = (
            session.query(WebhookEvent.id)
            .filter_by(event_id=event.id)
            .first()
        )
    except SQLAlchemyError as e:
        session.rollback()
        raise UpstreamError("Webhook ledger unavailable") from e

    if existing:
        logger.info(f"Duplicate webhook event {event.id}, skipping")
        return WebhookResult(event.id, event.type, already_processed=True)

    handler = _HANDLERS.get(event.type)
    try:
        if handler:
            handler(session, event)
        else:
            logger.info(f"Unhandled webhook event type {event.type} ({event.id})")

        # --- Record event for idempotency (same transaction) ---
        session.add(WebhookEvent(event_id=event.id, event_type=event.type))
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if _is_recorded(session, event.id):
            # A concurrent delivery of the same event committed first.
            logger.info(f"Webhook event {event.id} recorded concurrently, skipping")
            return WebhookResult(event.id, event.type, already_processed=True)
        logger.error(f"Error handling {event.type} ({event.id}): {e}", exc_info=True)
        raise UpstreamError("Webhook processing failed") from e
    except Exception as e:
        logger.error(f"Error handling {event.type} ({event.id}): {e}", exc_info=True)
        session.rollback()
        raise UpstreamError("Webhook processing failed") from e

    return WebhookResult(event.id, event.type)


def _is_recorded(session, event_id):
    try:
        return session.query(WebhookEvent.id).filter_by(event_id=event_id).first() is not None
    except SQLAlchemyError:
        session.rollback()
        return False


# ──────────────────────────────────────────────
# Event Handlers
# ──────────────────────────────────────────────

def _handle_checkout_completed(session, event):
    """Handle checkout.session.completed.

    Grants metadata.credits to client_reference_id. The event is already
    authenticated by its signature, so metadata is trusted. Subscription
    checkouts carry no credits and are applied by the subscription events.
    """
    checkout = event.data.object
    user_id = checkout.client_reference_id
    credits = checkout.credits

    if not user_id or credits <= 0:
        logger.info(f"checkout.session.completed {checkout.id}: no credits to grant")
        return

    amount = (Decimal(checkout.amount_total or 0) / 100).quantize(Decimal("0.01"))
    transaction = grant_credits(
        session, user_id, credits, amount=amount, stripe_event_id=event.id
    )
    if transaction is None:
        logger.warning(f"checkout.session.completed: unknown user {user_id}")
        return

    log_billing_audit(session, user_id, "credits.granted", {
        "credits": credits,
        "transaction_id": transaction.id,
        "stripe_event_id": event.id,
    })
    logger.info(f"Granted {credits} credits to user {user_id}")


def _handle_subscription_changed(session, event):
    """Handle customer.subscription.created / .updated.

    Overwrites tier + expiry from subscription metadata and period end.
    """
    sub = event.data.object
    user_id = sub.user_id
    if not user_id:
        logger.warning(f"{event.type}: no user_id in metadata for sub={sub.id}")
        return

    period_end = sub.period_end
    expires_at = datetime.fromtimestamp(period_end, tz=timezone.utc) if period_end else None

    if not set_subscription(session, user_id, sub.tier, expires_at):
        logger.warning(f"{event.type}: unknown user {user_id}")
        return

    log_billing_audit(session, user_id, "subscription.updated", {
        "stripe_subscription_id": sub.id,
        "tier": sub.tier,
        "status": sub.status,
    })
    logger.info(f"User {user_id} subscription set to {sub.tier} until {expires_at}")


def _handle_subscription_deleted(session, event):
    """Handle customer.subscription.deleted — back to the free tier."""
    sub = event.data.object
    user_id = sub.user_id
    if not user_id:
        logger.warning(f"{event.type}: no user_id in metadata for sub={sub.id}")
        return

    if not reset_subscription(session, user_id):
        logger.warning(f"{event.type}: unknown user {user_id}")
        return

    log_billing_audit(session, user_id, "subscription.deleted", {
        "stripe_subscription_id": sub.id,
    })
    logger.info(f"User {user_id} subscription cancelled")


def _handle_payment_failed(session, event):
    """Handle invoice.payment_failed. Logged only; Stripe drives dunning."""
    invoice = event.data.object
    logger.warning(
        f"invoice.payment_failed: customer={invoice.customer} "
        f"subscription={invoice.subscription} amount_due={invoice.amount_due}"
    )


_HANDLERS = {
    "checkout.session.completed": _handle_checkout_completed,
    "customer.subscription.created": _handle_subscription_changed,
    "customer.subscription.updated": _handle_subscription_changed,
    "customer.subscription.deleted": _handle_subscription_deleted,
    "invoice.payment_failed": _handle_payment_failed,
}
