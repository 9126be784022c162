"""Swipe model.

One row per (actor, target). A later swipe by the same actor on the same
target overwrites the earlier one; rows are never deleted.
"""

from lovevibes.extensions import db


class Swipe(db.Model):
    __tablename__ = "swipes"

    LIKE = "LIKE"
    PASS = "PASS"
    ACTIONS = [LIKE, PASS]

    actor_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), primary_key=True
    )
    target_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), primary_key=True
    )
    action = db.Column(db.String(10), nullable=False)  # LIKE | PASS
    swiped_at = db.Column(db.DateTime(timezone=True), nullable=False)

    __table_args__ = (
        db.CheckConstraint("action IN ('LIKE', 'PASS')", name="ck_swipe_action"),
        db.Index("ix_swipes_target_id", "target_id"),
    )

    def __repr__(self):
        return f"<Swipe {self.actor_id} -> {self.target_id} ({self.action})>"
