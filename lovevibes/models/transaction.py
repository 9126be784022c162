"""Transaction model — append-only financial ledger.

One row per successful purchase or manual grant. Never updated.
"""

import uuid

from lovevibes.extensions import db


class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    type = db.Column(db.String(50), nullable=False)  # credit_purchase | admin_grant
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    credits_granted = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="COMPLETED")
    stripe_event_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="transactions")

    def __repr__(self):
        return f"<Transaction {self.type} +{self.credits_granted} ({self.status})>"
