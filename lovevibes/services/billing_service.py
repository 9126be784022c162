"""Billing service — DB helpers for balances, subscriptions and the ledger.

Responsible for:
- The static credit package table
- Mapping (tier, interval) to configured Stripe price IDs
- Atomically granting credits + appending Transaction rows
- Overwriting / resetting subscription fields on users
- Billing audit events

Nothing here commits; callers own the transaction boundary.
"""

from decimal import Decimal

from lovevibes.errors import InvalidInputError, MisconfiguredError
from lovevibes.models.audit import AuditEvent
from lovevibes.models.transaction import Transaction
from lovevibes.models.user import User

# package_id -> credits granted and checkout price in cents
CREDIT_PACKAGES = {
    "starter": {"credits": 50, "price_cents": 499},
    "popular": {"credits": 120, "price_cents": 999},
    "premium": {"credits": 300, "price_cents": 1999},
    "ultimate": {"credits": 1000, "price_cents": 4999},
}

FREE_TIER = "free"


def get_credit_package(package_id):
    """Look up a credit package. Unknown ids are rejected, never zero-credit."""
    package = CREDIT_PACKAGES.get(package_id)
    if package is None:
        raise InvalidInputError(f"Unknown credit package: {package_id}")
    return package


def get_subscription_price_id(tier, interval, app_config):
    """Map a tier + billing interval to its configured Stripe price ID."""
    key = f"STRIPE_PRICE_{tier.upper()}_{interval.upper()}"
    price_id = app_config.get(key)
    if not price_id:
        raise MisconfiguredError(f"{key} is not configured")
    return price_id


def grant_credits(session, user_id, credits, amount=Decimal("0"),
                  tx_type="credit_purchase", stripe_event_id=None):
    """Add `credits` to the user's balance and append a Transaction.

    The balance change is a single UPDATE ... SET credits_balance =
    credits_balance + :credits, so concurrent grants never lose an update.

    Returns the Transaction, or None if the user does not exist.
    """
    updated = (
        session.query(User)
        .filter_by(id=user_id)
        .update(
            {User.credits_balance: User.credits_balance + credits},
            synchronize_session=False,
        )
    )
    if not updated:
        return None

    transaction = Transaction(
        user_id=user_id,
        type=tx_type,
        amount=amount,
        credits_granted=credits,
        status="COMPLETED",
        stripe_event_id=stripe_event_id,
    )
    session.add(transaction)
    session.flush()
    return transaction


def set_subscription(session, user_id, tier, expires_at):
    """Overwrite the user's tier and expiry. Returns False if no such user."""
    updated = (
        session.query(User)
        .filter_by(id=user_id)
        .update(
            {User.subscription_tier: tier, User.subscription_expires_at: expires_at},
            synchronize_session=False,
        )
    )
    return bool(updated)


def reset_subscription(session, user_id):
    """Drop the user back to the free tier with no expiry."""
    return set_subscription(session, user_id, FREE_TIER, None)


def log_billing_audit(session, user_id, action, metadata=None):
    """Log a billing-related audit event.

    Actor is None because webhook events are system-initiated; the
    affected user goes in metadata.
    """
    event = AuditEvent(
        actor_user_id=None,
        action=action,
        metadata_={"user_id": user_id, **(metadata or {})},
    )
    session.add(event)
    session.flush()


def get_billing_info(user):
    return {
        "credits_balance": user.credits_balance,
        "subscription_tier": user.subscription_tier,
        "subscription_expires_at": (
            user.subscription_expires_at.isoformat()
            if user.subscription_expires_at else None
        ),
        "is_premium": user.is_premium,
    }
