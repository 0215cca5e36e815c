"""
Event API Endpoints

Responsibilities:
1. Create / list / read / update / delete events
2. Run the selection lottery
3. Record a notification for one status group
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import Event
from schemas import (
    EventCreate,
    EventDetailResponse,
    EventResponse,
    EventUpdate,
    LotteryRequest,
    LotteryResponse,
    NotifyRequest,
    NotifyResponse,
)
from api.entrants import entrant_response
from core.event_manager import EventManager
from core.entrant_manager import EntrantManager
from core.exceptions import EventNotFound
from services.participant_list_service import build_participant_lists
from services.notification_service import notify_entrants

router = APIRouter(prefix="/api/events", tags=["events"])
logger = logging.getLogger(__name__)


def event_response(event: Event) -> EventResponse:
    return EventResponse(
        event_id=event.id,
        name=event.name,
        description=event.description,
        organizer_device_id=event.organizer_device_id,
        capacity=event.capacity,
        created_at=event.created_at
    )


@router.post("", response_model=EventResponse)
def create_event(event_data: EventCreate, db: Session = Depends(get_db)):
    """Create an event (organizer endpoint)"""
    try:
        event = EventManager.create_event(
            db,
            name=event_data.name,
            organizer_device_id=event_data.organizer_device_id,
            description=event_data.description,
            capacity=event_data.capacity
        )
        return event_response(event)

    except Exception as e:
        logger.error(f"Failed to create event: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("", response_model=List[EventResponse])
def list_events(
    organizer: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """All events, or only the events of one organizer"""
    events = EventManager.list_events(db, organizer_device_id=organizer)
    return [event_response(event) for event in events]


@router.get("/{event_id}", response_model=EventDetailResponse)
def get_event(event_id: str, db: Session = Depends(get_db)):
    """
    Event details

    Returns the event plus:
        - status_counts: number of entrants per status
        - participant_lists: waitingList / selectedList / attendingList / cancelledList
    """
    try:
        event = EventManager.get_event_by_id(db, event_id)
        tracker = EntrantManager.load_tracker(db, event_id)

        return EventDetailResponse(
            **event_response(event).model_dump(),
            status_counts=tracker.counts(),
            participant_lists=build_participant_lists(tracker)
        )

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except Exception as e:
        logger.error(f"Failed to get event {event_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{event_id}", response_model=EventResponse)
def update_event(event_id: str, update: EventUpdate, db: Session = Depends(get_db)):
    """Change name, description or capacity; omitted fields are kept"""
    try:
        event = EventManager.update_event(db, event_id, **update.model_dump(exclude_none=True))
        return event_response(event)

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update event {event_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{event_id}")
def delete_event(event_id: str, db: Session = Depends(get_db)):
    """Retire an event; entrant statuses and logs are deleted with it"""
    try:
        EventManager.delete_event(db, event_id)
        return {"status": "ok"}

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except Exception as e:
        logger.error(f"Failed to delete event {event_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{event_id}/lottery", response_model=LotteryResponse)
def run_lottery(event_id: str, request: LotteryRequest, db: Session = Depends(get_db)):
    """
    Invite randomly drawn waiting entrants (organizer endpoint)

    Parameters:
        slots: number of invitations
        seed: optional, makes the draw reproducible
    """
    try:
        winners = EntrantManager.run_lottery(db, event_id, request.slots, seed=request.seed)
        return LotteryResponse(
            event_id=event_id,
            invited=[entrant_response(entrant) for entrant in winners]
        )

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to run lottery for event {event_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{event_id}/notify", response_model=NotifyResponse)
def notify(event_id: str, request: NotifyRequest, db: Session = Depends(get_db)):
    """Record a message in the history of every entrant holding `status`"""
    try:
        notified = notify_entrants(event_id, request.status, request.message, db)
        db.commit()
        return NotifyResponse(event_id=event_id, notified=notified)

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except Exception as e:
        logger.error(f"Failed to notify entrants of event {event_id}: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")
