"""
Entrant API Endpoints

Responsibilities:
1. Status transitions (join, leave, invite, accept, decline, remove)
2. Direct status overwrite
3. Status lookup and enumeration for one event
"""
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    EntrantListResponse,
    EntrantResponse,
    EntrantStatusResponse,
    StatusUpdate,
    TransitionResponse,
)
from core.entrant_status import EntrantStatus
from core.entrant_manager import EntrantManager, TRANSITIONS
from core.exceptions import EventNotFound, InvalidEntrantIdentity, InvalidStateTransition

router = APIRouter(prefix="/api/events", tags=["entrants"])
logger = logging.getLogger(__name__)


class TransitionAction(str, Enum):
    JOIN = "join"
    LEAVE = "leave"
    INVITE = "invite"
    ACCEPT = "accept"
    DECLINE = "decline"
    REMOVE = "remove"


def entrant_response(entrant) -> EntrantResponse:
    return EntrantResponse(device_id=entrant.device_id, name=entrant.name, email=entrant.email)


def _transition_response(event_id, device_id, previous, status, result) -> TransitionResponse:
    return TransitionResponse(
        event_id=event_id,
        device_id=device_id,
        previous_status=previous,
        status=status,
        result=result
    )


@router.post("/{event_id}/entrants/{device_id}/{action}", response_model=TransitionResponse)
def apply_transition(
    event_id: str,
    device_id: str,
    action: TransitionAction,
    db: Session = Depends(get_db)
):
    """
    Apply a named transition to an entrant

    join/leave/accept/decline are entrant actions, invite/remove are
    organizer actions; the tracker treats them the same way.

    Returns:
        - previous_status: status before the call (null if not tracked)
        - status: status after the call
        - result: "created" if the entrant was added, "updated" otherwise
    """
    try:
        previous, result = EntrantManager.transition(db, event_id, device_id, action.value)
        return _transition_response(event_id, device_id, previous, TRANSITIONS[action.value], result)

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except (InvalidEntrantIdentity, InvalidStateTransition) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to {action.value} entrant {device_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.put("/{event_id}/entrants/{device_id}", response_model=TransitionResponse)
def set_entrant_status(
    event_id: str,
    device_id: str,
    update: StatusUpdate,
    db: Session = Depends(get_db)
):
    """Overwrite an entrant's status, adding the entrant if needed"""
    try:
        previous, result = EntrantManager.set_status(db, event_id, device_id, update.status)
        return _transition_response(event_id, device_id, previous, update.status, result)

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except (InvalidEntrantIdentity, InvalidStateTransition) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to set status of entrant {device_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{event_id}/entrants/{device_id}", response_model=EntrantStatusResponse)
def get_entrant_status(event_id: str, device_id: str, db: Session = Depends(get_db)):
    """
    Status of one entrant

    An entrant that never joined is reported with tracked=false and
    status=null, never with a default status.
    """
    try:
        status = EntrantManager.get_status(db, event_id, device_id)
        return EntrantStatusResponse(
            event_id=event_id,
            device_id=device_id,
            tracked=status is not None,
            status=status
        )

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except InvalidEntrantIdentity as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get status of entrant {device_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{event_id}/entrants", response_model=EntrantListResponse)
def list_entrants(
    event_id: str,
    status: Optional[EntrantStatus] = Query(None),
    db: Session = Depends(get_db)
):
    """Entrants of an event in join order, optionally only those in `status`"""
    try:
        entrants = EntrantManager.get_entrants(db, event_id, status)
        return EntrantListResponse(
            event_id=event_id,
            status=status,
            entrants=[entrant_response(entrant) for entrant in entrants]
        )

    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except Exception as e:
        logger.error(f"Failed to list entrants of event {event_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
