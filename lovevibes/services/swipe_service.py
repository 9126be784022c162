"""Swipe service — likes, passes and mutual-match detection.

Responsible for:
- Recording a swipe (one row per actor/target, last write wins)
- Detecting a reciprocal LIKE
- Creating exactly one Match per unordered pair, with its chat-room handle
- Listing a user's matches

The store session is passed in explicitly. Every write goes through a
single commit per call; a store failure rolls everything back and is
reported as a retryable UpstreamError. Swipes are safe to replay.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from lovevibes.db_helpers import advisory_xact_lock, insert_for
from lovevibes.errors import InvalidInputError, NotFoundError, UpstreamError
from lovevibes.models.audit import AuditEvent
from lovevibes.models.match import Match, canonical_pair
from lovevibes.models.swipe import Swipe
from lovevibes.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class SwipeResult:
    matched: bool
    match_id: Optional[str] = None
    chat_room_handle: Optional[str] = None
    created: bool = False  # True only for the call that inserted the Match

    def to_dict(self):
        match = None
        if self.matched:
            match = {
                "match_id": self.match_id,
                "is_match": True,
                "chat_room_id": self.chat_room_handle,
            }
        return {"swiped": True, "match": match}


def new_chat_room_handle():
    """Allocate an opaque, collision-resistant chat-room id (64 hex chars)."""
    return secrets.token_hex(32)


def normalise_action(action):
    value = (action or "").strip().upper()
    if value not in Swipe.ACTIONS:
        raise InvalidInputError("action must be LIKE or PASS")
    return value


# ──────────────────────────────────────────────
# Swipes
# ──────────────────────────────────────────────

def record_swipe(session, actor_id, target_id, action,
                 allocate_room=new_chat_room_handle, now=None):
    """Record `actor_id` swiping `action` on `target_id`.

    Returns a SwipeResult. On a mutual LIKE the match is created (or the
    existing one returned) in the same transaction as the swipe.

    Raises InvalidInputError for missing ids, self-swipes and unknown
    actions, NotFoundError for an unknown target, UpstreamError if the
    store fails.
    """
    action = normalise_action(action)
    if not actor_id or not target_id:
        raise InvalidInputError("target_id is required")
    if actor_id == target_id:
        raise InvalidInputError("You cannot swipe on yourself")

    now = now or datetime.now(timezone.utc)

    try:
        if session.get(User, target_id) is None:
            raise NotFoundError("User")

        _lock_pair(session, actor_id, target_id)
        _upsert_swipe(session, actor_id, target_id, action, now)

        if action == Swipe.PASS or not _has_reciprocal_like(session, actor_id, target_id):
            session.commit()
            return SwipeResult(matched=False)

        match, created = _get_or_create_match(
            session, actor_id, target_id, allocate_room, now
        )
        if created:
            session.add(AuditEvent(
                actor_user_id=actor_id,
                action="match.created",
                metadata_={
                    "match_id": match.id,
                    "user_a_id": match.user_a_id,
                    "user_b_id": match.user_b_id,
                },
            ))
        session.commit()
    except (NotFoundError, UpstreamError):
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Swipe {actor_id} -> {target_id} failed: {e}", exc_info=True)
        raise UpstreamError("Could not record swipe, please retry") from e

    if created:
        logger.info(f"Match {match.id} created for {match.user_a_id} and {match.user_b_id}")
    return SwipeResult(
        matched=True,
        match_id=match.id,
        chat_room_handle=match.chat_room_handle,
        created=created,
    )


def _lock_pair(session, actor_id, target_id):
    """Hold the pair lock until commit.

    Swipes in either direction between the same two users run one at a
    time, so the reciprocal-LIKE read always sees the other direction's
    latest committed swipe.
    """
    user_a_id, user_b_id = canonical_pair(actor_id, target_id)
    advisory_xact_lock(session, f"swipe-pair:{user_a_id}:{user_b_id}")


def _upsert_swipe(session, actor_id, target_id, action, now):
    """Atomic INSERT ... ON CONFLICT DO UPDATE on (actor_id, target_id)."""
    stmt = insert_for(session, Swipe).values(
        actor_id=actor_id,
        target_id=target_id,
        action=action,
        swiped_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["actor_id", "target_id"],
        set_={"action": stmt.excluded.action, "swiped_at": stmt.excluded.swiped_at},
    )
    session.execute(stmt)


def _has_reciprocal_like(session, actor_id, target_id):
    # Column select, not an entity: a Swipe already in the identity map
    # would not reflect the upsert above.
    action = (
        session.query(Swipe.action)
        .filter_by(actor_id=target_id, target_id=actor_id)
        .scalar()
    )
    return action == Swipe.LIKE


# ──────────────────────────────────────────────
# Matches
# ──────────────────────────────────────────────

def _find_match(session, user_a_id, user_b_id):
    return (
        session.query(Match)
        .filter_by(user_a_id=user_a_id, user_b_id=user_b_id)
        .first()
    )


def _get_or_create_match(session, actor_id, target_id, allocate_room, now):
    """Return (match, created) for the pair.

    Insert-if-absent on the canonical pair: if a concurrent request
    inserted first, ON CONFLICT DO NOTHING leaves its row in place and we
    read that one back.
    """
    user_a_id, user_b_id = canonical_pair(actor_id, target_id)

    existing = _find_match(session, user_a_id, user_b_id)
    if existing:
        return existing, False

    match_id = str(uuid.uuid4())
    stmt = insert_for(session, Match).values(
        id=match_id,
        user_a_id=user_a_id,
        user_b_id=user_b_id,
        chat_room_handle=allocate_room(),
        created_at=now,
    ).on_conflict_do_nothing(index_elements=["user_a_id", "user_b_id"])
    session.execute(stmt)

    match = _find_match(session, user_a_id, user_b_id)
    if match is None:
        # The pair row must exist after an insert-if-absent.
        raise UpstreamError("Match row missing after insert")
    return match, match.id == match_id


def list_matches(session, user_id):
    """Return the user's matches, newest first, as JSON-ready dicts."""
    matches = (
        session.query(Match)
        .filter(or_(Match.user_a_id == user_id, Match.user_b_id == user_id))
        .order_by(Match.created_at.desc())
        .all()
    )
    results = []
    for match in matches:
        other = match.other_user(user_id)
        results.append({
            "match_id": match.id,
            "user_id": other.id,
            "name": other.name,
            "chat_room_id": match.chat_room_handle,
            "created_at": match.created_at.isoformat() if match.created_at else None,
        })
    return results
