"""
Custom exceptions

All business-logic errors live here so the API layer can translate them
in one place.
"""


class AuroraEventsException(Exception):
    """Base class for every domain error"""
    pass


# ============ Entrant errors ============

class InvalidEntrantIdentity(AuroraEventsException):
    """The entrant identity cannot be used as a key (None, empty, unhashable)"""
    def __init__(self, entrant):
        self.entrant = entrant
        super().__init__(f"Invalid entrant identity: {entrant!r}")


# ============ State transition errors ============

class InvalidStateTransition(AuroraEventsException):
    """Transition rejected by the strict transition policy"""
    def __init__(self, current, target):
        self.current = current
        self.target = target
        current_name = current.value if current is not None else "UNTRACKED"
        super().__init__(f"Cannot transition from {current_name} to {target.value}")


# ============ Event errors ============

class EventNotFound(AuroraEventsException):
    """Event does not exist"""
    def __init__(self, event_id):
        self.event_id = event_id
        super().__init__(f"Event {event_id} not found")


# ============ User errors ============

class UserNotFound(AuroraEventsException):
    """User profile does not exist"""
    def __init__(self, device_id):
        self.device_id = device_id
        super().__init__(f"User {device_id} not found")
