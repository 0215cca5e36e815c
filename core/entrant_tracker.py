"""
Entrant tracker: the in-memory status table for one event

Responsibilities:
1. Keep exactly one StatusRecord per entrant, in insertion order
2. Apply status transitions (join, leave, invite, accept, decline, remove)
3. Answer status lookups and status-filtered enumeration

The tracker does no I/O. Managers rebuild it from storage, mutate it and
mirror the change back (see core/entrant_manager.py).

Records are keyed by value, never by object identity: an Entrant is keyed
by its device_id, so two Entrant objects with the same device_id, and the
bare device_id string itself, all refer to one entrant. The record keeps
the entrant value it was first created with.
"""
import threading
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

from core.entrant_status import EntrantStatus, SetStatusResult
from core.exceptions import InvalidEntrantIdentity
from core.state_machine import EntrantStateMachine, PERMISSIVE


@dataclass(frozen=True)
class Entrant:
    """
    Entrant identity

    Only device_id takes part in equality and hashing; name and email are
    carried along for display.
    """
    device_id: str
    name: Optional[str] = field(default=None, compare=False)
    email: Optional[str] = field(default=None, compare=False)


def _is_valid_identity(entrant) -> bool:
    if isinstance(entrant, Entrant):
        entrant = entrant.device_id
    if entrant is None:
        return False
    if isinstance(entrant, str) and not entrant.strip():
        return False
    try:
        hash(entrant)
    except TypeError:
        return False
    return True


class StatusRecord:
    """One entrant and its current status"""

    def __init__(self, entrant: Hashable, status: EntrantStatus):
        self._entrant = entrant
        self._status = EntrantStatus(status)

    @property
    def entrant(self) -> Hashable:
        return self._entrant

    @property
    def status(self) -> EntrantStatus:
        return self._status

    def set_status(self, status: EntrantStatus) -> None:
        """
        Overwrite the status

        Raises:
            ValueError: status is not an EntrantStatus value
        """
        self._status = EntrantStatus(status)

    def __repr__(self):
        return f"StatusRecord({self._entrant!r}, {self._status.value})"


class EntrantTracker:
    """
    Status table for the entrants of one event

    All operations take the same lock, so a tracker can be shared between
    threads. Enumerations return copies taken under the lock.
    """

    def __init__(self, state_machine: EntrantStateMachine = PERMISSIVE):
        self.state_machine = state_machine
        self._records: Dict[Hashable, StatusRecord] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_records(
        cls,
        records: Iterable[Tuple[Hashable, EntrantStatus]],
        state_machine: EntrantStateMachine = PERMISSIVE
    ) -> "EntrantTracker":
        """
        Rebuild a tracker from stored (entrant, status) pairs

        Stored rows are trusted: the transition policy is not applied while
        loading. Order of the iterable becomes the enumeration order.

        Raises:
            InvalidEntrantIdentity: a stored entrant is not a usable key
        """
        tracker = cls(state_machine=state_machine)
        for entrant, status in records:
            key = tracker._key(entrant)
            record = tracker._records.get(key)
            if record is None:
                tracker._records[key] = StatusRecord(entrant, status)
            else:
                record.set_status(status)
        return tracker

    @staticmethod
    def _key(entrant) -> Hashable:
        """
        Mapping key for an entrant

        An Entrant and its bare device id are the same entrant, so both map
        to the device id.

        Raises:
            InvalidEntrantIdentity: entrant cannot be used as a key
        """
        if not _is_valid_identity(entrant):
            raise InvalidEntrantIdentity(entrant)
        return entrant.device_id if isinstance(entrant, Entrant) else entrant

    # ============ Transitions ============

    def set_status(self, entrant: Hashable, status: EntrantStatus) -> SetStatusResult:
        """
        Set an entrant's status, adding the entrant if it is not tracked yet

        Flow:
        1. Validate identity and status (nothing is written on failure)
        2. Ask the state machine whether current -> status is allowed
        3. Overwrite the existing record or append a new one

        Parameters:
            entrant: entrant identity (Entrant or any non-empty hashable key)
            status: target status

        Returns:
            SetStatusResult.CREATED if the entrant was added,
            SetStatusResult.UPDATED if it was already tracked

        Raises:
            InvalidEntrantIdentity: entrant cannot be used as a key
            ValueError: status is not an EntrantStatus value
            InvalidStateTransition: rejected by a strict state machine
        """
        key = self._key(entrant)
        status = EntrantStatus(status)

        with self._lock:
            record = self._records.get(key)
            current = record.status if record is not None else None
            self.state_machine.validate(current, status)

            if record is not None:
                record.set_status(status)
                return SetStatusResult.UPDATED

            self._records[key] = StatusRecord(entrant, status)
            return SetStatusResult.CREATED

    def join(self, entrant: Hashable) -> SetStatusResult:
        """Entrant joins the waiting list"""
        return self.set_status(entrant, EntrantStatus.WAITING)

    def leave(self, entrant: Hashable) -> SetStatusResult:
        """Entrant withdraws on their own"""
        return self.set_status(entrant, EntrantStatus.SELF_LEFT)

    def invite(self, entrant: Hashable) -> SetStatusResult:
        return self.set_status(entrant, EntrantStatus.INVITED)

    def accept(self, entrant: Hashable) -> SetStatusResult:
        return self.set_status(entrant, EntrantStatus.ACCEPTED)

    def decline(self, entrant: Hashable) -> SetStatusResult:
        return self.set_status(entrant, EntrantStatus.DECLINED)

    def remove(self, entrant: Hashable) -> SetStatusResult:
        """Organizer/admin removes the entrant; the record is kept"""
        return self.set_status(entrant, EntrantStatus.FORCE_LEFT)

    # ============ Queries ============

    def get_status(self, entrant: Hashable) -> Optional[EntrantStatus]:
        """
        Current status of an entrant

        Returns:
            the status, or None if the entrant has never been referenced

        Raises:
            InvalidEntrantIdentity: entrant cannot be used as a key
        """
        key = self._key(entrant)
        with self._lock:
            record = self._records.get(key)
            return record.status if record is not None else None

    def get_record(self, entrant: Hashable) -> Optional[StatusRecord]:
        """Copy of the entrant's record; writes must go through set_status"""
        key = self._key(entrant)
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            return StatusRecord(record.entrant, record.status)

    def get_entrants(self, status: Optional[EntrantStatus] = None) -> List[Hashable]:
        """
        Tracked entrants in insertion order

        Parameters:
            status: if given, only entrants currently holding exactly this status

        Raises:
            ValueError: status is not an EntrantStatus value
        """
        if status is not None:
            status = EntrantStatus(status)
        with self._lock:
            return [
                record.entrant for record in self._records.values()
                if status is None or record.status == status
            ]

    def records(self) -> List[Tuple[Hashable, EntrantStatus]]:
        """Snapshot of (entrant, status) pairs in insertion order"""
        with self._lock:
            return [(record.entrant, record.status) for record in self._records.values()]

    def counts(self) -> Dict[EntrantStatus, int]:
        """Number of entrants per status (every status present, zero if unused)"""
        result = {status: 0 for status in EntrantStatus}
        with self._lock:
            for record in self._records.values():
                result[record.status] += 1
        return result

    def __len__(self):
        with self._lock:
            return len(self._records)

    def __contains__(self, entrant):
        if not _is_valid_identity(entrant):
            return False
        key = self._key(entrant)
        with self._lock:
            return key in self._records
