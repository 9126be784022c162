"""Match model.

A match is stored once per unordered pair: user_a_id is always the
smaller id. The unique constraint on the canonical pair is what keeps
racing mutual likes from producing two rows.
"""

import uuid

from lovevibes.extensions import db


def canonical_pair(first_id, second_id):
    """Order two user ids the way matches.user_a_id / user_b_id store them."""
    return (first_id, second_id) if first_id < second_id else (second_id, first_id)


class Match(db.Model):
    __tablename__ = "matches"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_a_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    user_b_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    chat_room_handle = db.Column(db.String(64), unique=True, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    __table_args__ = (
        db.UniqueConstraint("user_a_id", "user_b_id", name="uq_match_pair"),
        db.CheckConstraint("user_a_id < user_b_id", name="ck_match_pair_order"),
        db.Index("ix_matches_user_b_id", "user_b_id"),
    )

    # --- Relationships ---
    user_a = db.relationship("User", foreign_keys=[user_a_id])
    user_b = db.relationship("User", foreign_keys=[user_b_id])

    def other_user(self, user_id):
        return self.user_b if user_id == self.user_a_id else self.user_a

    def __repr__(self):
        return f"<Match {self.user_a_id} <-> {self.user_b_id}>"
