"""
Concurrency control

Database-level row locks that serialize writers per event. The in-memory
EntrantTracker has its own lock; these cover the window in which a manager
rebuilds a tracker from storage, mutates it and writes the change back.

Uses SELECT ... FOR UPDATE (pessimistic locking). SQLite ignores the clause
and relies on its database-wide write lock instead.
"""
from sqlalchemy.orm import Session, Query

from models import Event


def with_event_lock(event_id: str, db: Session) -> Query:
    """
    Lock one Event row

    When to use:
    - before rebuilding a tracker that is about to be mutated
    - whenever several status rows of one event change in a single transaction

    Example:
        event = with_event_lock(event_id, db).first()
        if not event:
            raise EventNotFound(event_id)
        tracker = EntrantManager.load_tracker(db, event_id)
        ...

    Parameters:
        event_id: Event id
        db: SQLAlchemy Session

    Returns:
        Query object (call .first() or .one())

    Notes:
        - nowait=False waits for a held lock instead of failing
        - must run inside a transaction (commit or rollback releases it)
    """
    return db.query(Event).filter(
        Event.id == event_id
    ).with_for_update(nowait=False)
