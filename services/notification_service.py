"""
Notification service: record a message for every entrant holding a status

Nothing is delivered here. The message is appended to each recipient's
notification history; push delivery belongs to another system.
"""
from typing import List
import logging

from sqlalchemy.orm import Session

from models import User
from core.entrant_status import EntrantStatus
from core.entrant_manager import EntrantManager

logger = logging.getLogger(__name__)


def notify_entrants(
    event_id: str,
    status: EntrantStatus,
    message: str,
    db: Session
) -> List[str]:
    """
    Append `message` to the history of every entrant currently in `status`

    Entrants without a user profile are skipped.

    Parameters:
        event_id: Event id
        status: recipients are the entrants holding exactly this status
        message: text to record
        db: SQLAlchemy Session

    Returns:
        device ids of the notified users, in join order

    Raises:
        EventNotFound: no event with this id
    """
    recipients = EntrantManager.get_entrants(db, event_id, status)
    device_ids = [entrant.device_id for entrant in recipients]
    users = {
        user.device_id: user
        for user in db.query(User).filter(User.device_id.in_(device_ids)).all()
    } if device_ids else {}

    notified = []
    for device_id in device_ids:
        user = users.get(device_id)
        if user is None:
            continue
        user.notification_history = list(user.notification_history or []) + [message]
        notified.append(device_id)

    db.flush()  # commit is up to the caller

    skipped = len(device_ids) - len(notified)
    if skipped:
        logger.warning(f"Event {event_id}: {skipped} {status.value} entrants have no profile, not notified")
    logger.info(f"Event {event_id}: recorded notification for {len(notified)} {status.value} entrants")
    return notified
