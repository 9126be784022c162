"""Dialect-aware helpers.

Swipe upserts and match creation rely on ON CONFLICT, which SQLAlchemy
only exposes through the dialect-specific insert() constructs. Pair locks
use Postgres transaction-level advisory locks.
"""

from sqlalchemy import text
from sqlalchemy.dialects import postgresql, sqlite


def insert_for(session, model):
    """Return an insert(model) that supports on_conflict_do_*()."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported on {dialect}")


def advisory_xact_lock(session, key):
    """Block until no other transaction holds the lock for `key`.

    Released automatically at commit or rollback. SQLite needs no lock:
    it admits one writer at a time.
    """
    if session.get_bind().dialect.name != "postgresql":
        return
    session.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key}
    )
