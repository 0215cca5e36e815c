"""
Entrant status enums shared by the tracker, the ORM models and the API
"""
from enum import Enum


class EntrantStatus(str, Enum):
    """Enrollment state of one entrant for one event"""
    WAITING = "WAITING"
    INVITED = "INVITED"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    SELF_LEFT = "SELF_LEFT"      # entrant withdrew
    FORCE_LEFT = "FORCE_LEFT"    # organizer/admin removed the entrant


class SetStatusResult(str, Enum):
    """Outcome of a status write"""
    CREATED = "created"    # entrant was not tracked before
    UPDATED = "updated"    # existing record overwritten
