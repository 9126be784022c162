"""User model.

Stores authentication credentials, profile basics and the balance /
subscription fields mutated by the billing webhooks.
Flask-Login integration via UserMixin.
"""

import uuid
from datetime import datetime, timezone

from flask_login import UserMixin

from lovevibes.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255))
    credits_balance = db.Column(
        db.Integer, nullable=False, default=0, server_default="0"
    )
    subscription_tier = db.Column(
        db.String(20), nullable=False, default="free", server_default="free"
    )  # free | plus | platinum
    subscription_expires_at = db.Column(
        db.DateTime(timezone=True), nullable=True
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    transactions = db.relationship(
        "Transaction", back_populates="user", lazy="dynamic"
    )

    @property
    def is_premium(self):
        """Paid tier with an expiry still in the future."""
        if self.subscription_tier == "free" or self.subscription_expires_at is None:
            return False
        expires = self.subscription_expires_at
        # SQLite returns naive datetimes; Postgres returns aware ones.
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) < expires

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "credits_balance": self.credits_balance,
            "subscription_tier": self.subscription_tier,
        }

    def __repr__(self):
        return f"<User {self.email}>"
