"""Ledger of webhook deliveries that have been fully applied.

A row is written in the very commit that carries the event's balance or
tier changes, so its presence means "applied" and its absence means
"nothing happened yet". The unique event_id is the final arbiter when two
deliveries of one event race: the second commit fails and is reported
as already processed.
"""

import uuid

from lovevibes.extensions import db


class WebhookEvent(db.Model):
    __tablename__ = "processed_webhooks"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    event_id = db.Column(
        db.String(255), unique=True, nullable=False
    )  # e.g. "evt_1Abc..."
    event_type = db.Column(
        db.String(255), nullable=False
    )  # e.g. "checkout.session.completed"
    processed_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<WebhookEvent {self.event_id} ({self.event_type})>"
