"""
Entrant Manager: persisted entrant statuses of an event

Responsibilities:
1. Rebuild an EntrantTracker from the stored status rows
2. Apply one transition and mirror it to storage in the same transaction
3. Run the selection lottery
4. Status queries

Every write follows the same path:
lock event row -> rebuild tracker -> mutate tracker -> write changed rows -> log
"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Dict, Iterable, List, Optional, Tuple
import logging
import random

from models import EntrantRecord, EventLog, User
from core.entrant_status import EntrantStatus, SetStatusResult
from core.entrant_tracker import Entrant, EntrantTracker
from core.exceptions import EventNotFound
from core.locks import with_event_lock
from core.state_machine import EntrantStateMachine, PERMISSIVE, STRICT
from core.event_manager import EventManager
from services.lottery_service import draw_lottery
from database import get_settings, transactional

logger = logging.getLogger(__name__)

# Named transition -> target status
TRANSITIONS: Dict[str, EntrantStatus] = {
    "join": EntrantStatus.WAITING,
    "leave": EntrantStatus.SELF_LEFT,
    "invite": EntrantStatus.INVITED,
    "accept": EntrantStatus.ACCEPTED,
    "decline": EntrantStatus.DECLINED,
    "remove": EntrantStatus.FORCE_LEFT,
}


def default_state_machine() -> EntrantStateMachine:
    return STRICT if get_settings().strict_transitions else PERMISSIVE


class EntrantManager:
    """Entrant status manager (one event at a time)"""

    @staticmethod
    def _resolve_entrants(db: Session, device_ids: Iterable[str]) -> Dict[str, Entrant]:
        device_ids = list(device_ids)
        users = {}
        if device_ids:
            users = {
                user.device_id: user
                for user in db.query(User).filter(User.device_id.in_(device_ids)).all()
            }

        entrants = {}
        for device_id in device_ids:
            user = users.get(device_id)
            entrants[device_id] = Entrant(
                device_id=device_id,
                name=user.name if user else None,
                email=user.email if user else None
            )
        return entrants

    @staticmethod
    def load_tracker(
        db: Session,
        event_id: str,
        state_machine: Optional[EntrantStateMachine] = None
    ) -> EntrantTracker:
        """
        Rebuild the tracker of an event from its EntrantRecord rows

        Parameters:
            db: SQLAlchemy Session
            event_id: Event id
            state_machine: transition policy, defaults to the configured one

        Returns:
            EntrantTracker in stored insertion order

        Raises:
            EventNotFound: no event with this id
        """
        EventManager.get_event_by_id(db, event_id)

        rows = db.query(EntrantRecord).filter(
            EntrantRecord.event_id == event_id
        ).order_by(EntrantRecord.position).all()

        entrants = EntrantManager._resolve_entrants(db, [row.device_id for row in rows])
        return EntrantTracker.from_records(
            ((entrants[row.device_id], row.status) for row in rows),
            state_machine=state_machine or default_state_machine()
        )

    @staticmethod
    def _mirror(db: Session, event_id: str, entrant: Entrant, status: EntrantStatus) -> None:
        """Write one tracker record back to its row, inserting it if missing"""
        row = db.query(EntrantRecord).filter(
            EntrantRecord.event_id == event_id,
            EntrantRecord.device_id == entrant.device_id
        ).first()

        if row:
            row.status = status
            return

        last_position = db.query(func.max(EntrantRecord.position)).filter(
            EntrantRecord.event_id == event_id
        ).scalar()
        db.add(EntrantRecord(
            event_id=event_id,
            device_id=entrant.device_id,
            status=status,
            position=0 if last_position is None else last_position + 1
        ))
        db.flush()

    @staticmethod
    @transactional
    def set_status(
        db: Session,
        event_id: str,
        device_id: str,
        status: EntrantStatus
    ) -> Tuple[Optional[EntrantStatus], SetStatusResult]:
        """
        Set an entrant's status for an event and persist it

        Flow:
        1. Lock the event row
        2. Rebuild the tracker
        3. Apply the transition (identity and policy checks happen here)
        4. Mirror the record and append ENTRANT_STATUS_CHANGED

        Parameters:
            db: SQLAlchemy Session
            event_id: Event id
            device_id: entrant device id
            status: target status

        Returns:
            (previous status or None, SetStatusResult)

        Raises:
            EventNotFound: no event with this id
            InvalidEntrantIdentity: device_id is empty
            InvalidStateTransition: rejected by the strict policy
        """
        event = with_event_lock(event_id, db).first()
        if not event:
            raise EventNotFound(event_id)

        tracker = EntrantManager.load_tracker(db, event_id)
        entrant = EntrantManager._resolve_entrants(db, [device_id])[device_id]

        previous = tracker.get_status(entrant)
        result = tracker.set_status(entrant, status)
        current = tracker.get_status(entrant)

        EntrantManager._mirror(db, event_id, entrant, current)
        db.add(EventLog(
            event_id=event_id,
            event_type="ENTRANT_STATUS_CHANGED",
            data={
                "device_id": device_id,
                "from": previous.value if previous else None,
                "to": current.value,
                "result": result.value,
            }
        ))

        logger.info(
            "Entrant %s in event %s: %s -> %s (%s)",
            device_id,
            event_id,
            previous.value if previous else "UNTRACKED",
            current.value,
            result.value
        )
        return previous, result

    @staticmethod
    def transition(
        db: Session,
        event_id: str,
        device_id: str,
        action: str
    ) -> Tuple[Optional[EntrantStatus], SetStatusResult]:
        """
        Apply a named transition (join, leave, invite, accept, decline, remove)

        Raises:
            KeyError: unknown action name
        """
        return EntrantManager.set_status(db, event_id, device_id, TRANSITIONS[action])

    @staticmethod
    def join(db: Session, event_id: str, device_id: str):
        return EntrantManager.transition(db, event_id, device_id, "join")

    @staticmethod
    def leave(db: Session, event_id: str, device_id: str):
        return EntrantManager.transition(db, event_id, device_id, "leave")

    @staticmethod
    def invite(db: Session, event_id: str, device_id: str):
        return EntrantManager.transition(db, event_id, device_id, "invite")

    @staticmethod
    def accept(db: Session, event_id: str, device_id: str):
        return EntrantManager.transition(db, event_id, device_id, "accept")

    @staticmethod
    def decline(db: Session, event_id: str, device_id: str):
        return EntrantManager.transition(db, event_id, device_id, "decline")

    @staticmethod
    def remove(db: Session, event_id: str, device_id: str):
        return EntrantManager.transition(db, event_id, device_id, "remove")

    @staticmethod
    def get_status(db: Session, event_id: str, device_id: str) -> Optional[EntrantStatus]:
        """
        Returns:
            the entrant's status, None if the entrant never joined this event

        Raises:
            EventNotFound: no event with this id
            InvalidEntrantIdentity: device_id is empty
        """
        tracker = EntrantManager.load_tracker(db, event_id)
        return tracker.get_status(Entrant(device_id=device_id))

    @staticmethod
    def get_entrants(
        db: Session,
        event_id: str,
        status: Optional[EntrantStatus] = None
    ) -> List[Entrant]:
        """Entrants of an event in join order, optionally filtered by status"""
        tracker = EntrantManager.load_tracker(db, event_id)
        return tracker.get_entrants(status)

    @staticmethod
    def run_lottery(
        db: Session,
        event_id: str,
        slots: int,
        seed: Optional[int] = None
    ) -> List[Entrant]:
        """
        Invite up to `slots` randomly drawn waiting entrants

        Parameters:
            db: SQLAlchemy Session
            event_id: Event id
            slots: number of invitations
            seed: optional seed for a reproducible draw

        Returns:
            invited entrants in draw order

        Raises:
            EventNotFound: no event with this id
            ValueError: slots is negative (checked before the event row is locked)
        """
        if slots < 0:
            raise ValueError(f"slots must be >= 0, got {slots}")
        return EntrantManager._draw_and_invite(db, event_id, slots, seed)

    @staticmethod
    @transactional
    def _draw_and_invite(db: Session, event_id: str, slots: int, seed: Optional[int]) -> List[Entrant]:
        event = with_event_lock(event_id, db).first()
        if not event:
            raise EventNotFound(event_id)

        tracker = EntrantManager.load_tracker(db, event_id)
        winners = draw_lottery(tracker, slots, random.Random(seed))

        for entrant in winners:
            EntrantManager._mirror(db, event_id, entrant, EntrantStatus.INVITED)

        db.add(EventLog(
            event_id=event_id,
            event_type="LOTTERY_DRAWN",
            data={
                "slots": slots,
                "invited": [entrant.device_id for entrant in winners],
            }
        ))

        logger.info(f"Lottery for event {event_id}: invited {len(winners)} of {slots} slots")
        return winners
