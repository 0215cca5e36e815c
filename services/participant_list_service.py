"""
Participant list service: the four-list view of an event

Clients that predate per-entrant statuses read an event as four lists of
device ids. This module maps statuses onto those lists.
"""
from typing import Dict, List

from core.entrant_status import EntrantStatus
from core.entrant_tracker import Entrant, EntrantTracker

LIST_ATTENDING = "attendingList"
LIST_SELECTED = "selectedList"
LIST_WAITING = "waitingList"
LIST_CANCELLED = "cancelledList"

ALL_LISTS = (LIST_WAITING, LIST_SELECTED, LIST_ATTENDING, LIST_CANCELLED)

STATUS_TO_LIST: Dict[EntrantStatus, str] = {
    EntrantStatus.WAITING: LIST_WAITING,
    EntrantStatus.INVITED: LIST_SELECTED,
    EntrantStatus.ACCEPTED: LIST_ATTENDING,
    EntrantStatus.DECLINED: LIST_CANCELLED,
    EntrantStatus.SELF_LEFT: LIST_CANCELLED,
    EntrantStatus.FORCE_LEFT: LIST_CANCELLED,
}


def list_for_status(status: EntrantStatus) -> str:
    """Name of the participant list an entrant in `status` belongs to"""
    return STATUS_TO_LIST[EntrantStatus(status)]


def build_participant_lists(tracker: EntrantTracker) -> Dict[str, List[str]]:
    """
    Split a tracker into the four participant lists

    Every list is present (possibly empty); ids keep tracker order.
    Non-Entrant keys are converted with str().
    """
    lists: Dict[str, List[str]] = {name: [] for name in ALL_LISTS}
    for entrant, status in tracker.records():
        device_id = entrant.device_id if isinstance(entrant, Entrant) else str(entrant)
        lists[list_for_status(status)].append(device_id)
    return lists
