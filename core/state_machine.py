"""
Entrant state machine: the transition policy used by EntrantTracker

Two modes:
- permissive (default): any status may be set from any other status,
  including for an entrant that has never been tracked
- strict: only the transitions listed in STRICT_TRANSITIONS are allowed,
  everything else raises InvalidStateTransition

Setting an entrant to the status it already holds is always allowed, so
repeated calls stay idempotent in both modes.
"""
from typing import Dict, FrozenSet, Optional

from core.entrant_status import EntrantStatus
from core.exceptions import InvalidStateTransition


# None is the key for an entrant the tracker has never seen
STRICT_TRANSITIONS: Dict[Optional[EntrantStatus], FrozenSet[EntrantStatus]] = {
    None: frozenset({EntrantStatus.WAITING, EntrantStatus.INVITED}),
    EntrantStatus.WAITING: frozenset({
        EntrantStatus.INVITED,
        EntrantStatus.SELF_LEFT,
        EntrantStatus.FORCE_LEFT,
    }),
    EntrantStatus.INVITED: frozenset({
        EntrantStatus.ACCEPTED,
        EntrantStatus.DECLINED,
        EntrantStatus.SELF_LEFT,
        EntrantStatus.FORCE_LEFT,
    }),
    EntrantStatus.ACCEPTED: frozenset({
        EntrantStatus.SELF_LEFT,
        EntrantStatus.FORCE_LEFT,
    }),
    EntrantStatus.DECLINED: frozenset(),
    EntrantStatus.SELF_LEFT: frozenset({EntrantStatus.WAITING}),
    EntrantStatus.FORCE_LEFT: frozenset(),
}


class EntrantStateMachine:
    """Decides whether an entrant may move from one status to another"""

    def __init__(self, strict: bool = False):
        self.strict = strict

    def can_transition(
        self,
        current: Optional[EntrantStatus],
        target: EntrantStatus
    ) -> bool:
        """
        Check a single transition

        Parameters:
            current: the entrant's status, None if not tracked yet
            target: the requested status

        Returns:
            True if the transition is allowed under this policy
        """
        if not self.strict or current == target:
            return True
        return target in STRICT_TRANSITIONS[current]

    def validate(
        self,
        current: Optional[EntrantStatus],
        target: EntrantStatus
    ) -> None:
        """
        Raise if the transition is not allowed

        Raises:
            InvalidStateTransition: strict policy rejects current -> target
        """
        if not self.can_transition(current, target):
            raise InvalidStateTransition(current, target)


PERMISSIVE = EntrantStateMachine(strict=False)
STRICT = EntrantStateMachine(strict=True)
