"""
Event Manager: lifecycle of an Event

Responsibilities:
1. Create an event
2. Look events up and update their details
3. Delete (retire) an event together with its status rows and logs

Entrant statuses are not handled here, see EntrantManager.
"""
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from models import Event, EventLog
from core.exceptions import EventNotFound
from database import transactional

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "capacity")


class EventManager:
    """Event lifecycle manager"""

    @staticmethod
    @transactional
    def create_event(
        db: Session,
        name: str,
        organizer_device_id: str,
        description: Optional[str] = None,
        capacity: Optional[int] = None
    ) -> Event:
        """
        Create a new event with an empty entrant list

        Parameters:
            db: SQLAlchemy Session
            name: display name
            organizer_device_id: device id of the organizing user
            description: optional free text
            capacity: optional number of attendee slots

        Returns:
            the new Event
        """
        event = Event(
            name=name,
            description=description,
            organizer_device_id=organizer_device_id,
            capacity=capacity
        )
        db.add(event)
        db.flush()  # assigns event.id

        db.add(EventLog(
            event_id=event.id,
            event_type="EVENT_CREATED",
            data={"organizer_device_id": organizer_device_id}
        ))

        logger.info(f"Created event {event.id} ({name}) for organizer {organizer_device_id}")
        return event

    @staticmethod
    def get_event_by_id(db: Session, event_id: str) -> Event:
        """
        Raises:
            EventNotFound: no event with this id
        """
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise EventNotFound(event_id)
        return event

    @staticmethod
    def list_events(db: Session, organizer_device_id: Optional[str] = None) -> List[Event]:
        """All events, or only those of one organizer, oldest first"""
        query = db.query(Event)
        if organizer_device_id is not None:
            query = query.filter(Event.organizer_device_id == organizer_device_id)
        return query.order_by(Event.created_at).all()

    @staticmethod
    @transactional
    def update_event(db: Session, event_id: str, **fields) -> Event:
        """
        Merge the given fields into an existing event

        Only keys in UPDATABLE_FIELDS are accepted; fields not passed (or
        passed as None) keep their stored value. Entrant statuses are never
        touched here.

        Raises:
            EventNotFound: no event with this id
            ValueError: unknown field, or a negative capacity
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        if fields.get("capacity") is not None and fields["capacity"] < 0:
            raise ValueError(f"capacity must be >= 0, got {fields['capacity']}")

        event = EventManager.get_event_by_id(db, event_id)
        changed = sorted(name for name, value in fields.items() if value is not None)
        for name in changed:
            setattr(event, name, fields[name])

        db.add(EventLog(
            event_id=event.id,
            event_type="EVENT_UPDATED",
            data={"fields": changed}
        ))

        logger.info(f"Updated event {event_id}: {changed}")
        return event

    @staticmethod
    @transactional
    def delete_event(db: Session, event_id: str) -> None:
        """
        Delete an event; its entrant records and logs go with it

        Raises:
            EventNotFound: no event with this id
        """
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise EventNotFound(event_id)

        db.delete(event)
        logger.info(f"Deleted event {event_id}")
