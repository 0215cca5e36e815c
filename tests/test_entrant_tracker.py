"""Unit tests for core/entrant_tracker.py - EntrantTracker and StatusRecord."""
import threading

import pytest

from core.entrant_status import EntrantStatus, SetStatusResult
from core.entrant_tracker import Entrant, EntrantTracker, StatusRecord
from core.exceptions import InvalidEntrantIdentity
from core.state_machine import STRICT
from services.participant_list_service import (
    LIST_ATTENDING,
    LIST_CANCELLED,
    LIST_SELECTED,
    LIST_WAITING,
    build_participant_lists,
)


@pytest.fixture
def tracker():
    return EntrantTracker()


@pytest.fixture
def robert():
    return Entrant(device_id="dev-robert", name="Robert", email="rob@bank.org")


class TestStatusRecord:
    """StatusRecord holds a fixed entrant and an overwritable status."""

    def test_constructor_and_getters(self):
        entrant = Entrant("dev-alex", "Alex Romanoff", "a.roman@gmail.com")
        record = StatusRecord(entrant, EntrantStatus.WAITING)

        assert record.entrant == entrant
        assert record.status == EntrantStatus.WAITING

    def test_set_status(self):
        record = StatusRecord(Entrant("dev-jane", "Jane Robinson", "jr@math.org"), EntrantStatus.WAITING)

        record.set_status(EntrantStatus.SELF_LEFT)

        assert record.status == EntrantStatus.SELF_LEFT

    def test_set_status_accepts_name(self):
        record = StatusRecord("dev-1", EntrantStatus.WAITING)
        record.set_status("INVITED")
        assert record.status is EntrantStatus.INVITED

    def test_set_status_rejects_unknown_value(self):
        record = StatusRecord("dev-1", EntrantStatus.WAITING)

        with pytest.raises(ValueError):
            record.set_status("PENDING")

        assert record.status == EntrantStatus.WAITING


class TestEntrantIdentity:
    def test_equality_uses_device_id_only(self):
        a = Entrant("dev-1", name="Becky Hopper", email="beckhop@yahoo.ca")
        b = Entrant("dev-1", name="Becky H.", email=None)

        assert a == b
        assert hash(a) == hash(b)
        assert a != Entrant("dev-2", name="Becky Hopper", email="beckhop@yahoo.ca")


class TestEntrantTracker:
    def test_new_tracker_is_empty(self, tracker):
        assert tracker.get_entrants() == []
        assert len(tracker) == 0

    def test_untracked_entrant_has_no_status(self, tracker):
        assert tracker.get_status(Entrant("dev-becky", "Becky Hopper", "beckhop@yahoo.ca")) is None

    def test_join(self, tracker, robert):
        result = tracker.join(robert)

        assert result == SetStatusResult.CREATED
        assert tracker.get_status(robert) == EntrantStatus.WAITING
        assert tracker.get_entrants() == [robert]
        assert tracker.get_entrants().count(robert) == 1

    @pytest.mark.parametrize("operation, expected", [
        ("join", EntrantStatus.WAITING),
        ("leave", EntrantStatus.SELF_LEFT),
        ("invite", EntrantStatus.INVITED),
        ("accept", EntrantStatus.ACCEPTED),
        ("decline", EntrantStatus.DECLINED),
        ("remove", EntrantStatus.FORCE_LEFT),
    ])
    def test_named_transition_twice_keeps_one_record(self, tracker, robert, operation, expected):
        assert getattr(tracker, operation)(robert) == SetStatusResult.CREATED
        assert getattr(tracker, operation)(robert) == SetStatusResult.UPDATED

        assert tracker.get_status(robert) == expected
        assert tracker.get_entrants() == [robert]

    def test_most_recent_transition_wins(self, tracker, robert):
        tracker.join(robert)
        tracker.decline(robert)
        tracker.invite(robert)

        assert tracker.get_status(robert) == EntrantStatus.INVITED
        assert len(tracker) == 1

    def test_join_invite_accept(self, tracker, robert):
        tracker.join(robert)
        tracker.invite(robert)
        tracker.accept(robert)

        assert tracker.get_status(robert) == EntrantStatus.ACCEPTED
        assert robert in tracker.get_entrants(EntrantStatus.ACCEPTED)
        assert robert not in tracker.get_entrants(EntrantStatus.WAITING)

    def test_remove_keeps_record(self, tracker, robert):
        tracker.join(robert)
        tracker.remove(robert)

        assert tracker.get_status(robert) == EntrantStatus.FORCE_LEFT
        assert robert in tracker.get_entrants()

    def test_rejoin_is_update_and_keeps_position(self, tracker):
        first, second, third = Entrant("a"), Entrant("b"), Entrant("c")
        for entrant in (first, second, third):
            tracker.join(entrant)

        assert tracker.join(second) == SetStatusResult.UPDATED
        assert tracker.get_entrants() == [first, second, third]

    def test_permissive_transitions_ignore_prior_status(self, tracker, robert):
        # accept without invite, decline after removal: both just overwrite
        assert tracker.accept(robert) == SetStatusResult.CREATED
        tracker.remove(robert)
        tracker.decline(robert)

        assert tracker.get_status(robert) == EntrantStatus.DECLINED

    def test_value_equal_entrants_are_the_same_entrant(self, tracker):
        tracker.join(Entrant("dev-7", name="Stored copy"))

        result = tracker.invite(Entrant("dev-7", name="Rebuilt from storage"))

        assert result == SetStatusResult.UPDATED
        assert len(tracker) == 1
        assert tracker.get_status(Entrant("dev-7")) == EntrantStatus.INVITED

    def test_plain_string_keys(self, tracker):
        tracker.join("dev-1")
        tracker.join("dev-1")

        assert tracker.get_entrants() == ["dev-1"]
        assert "dev-1" in tracker

    def test_device_id_and_entrant_are_one_entrant(self, tracker):
        tracker.join("dev-1")

        result = tracker.invite(Entrant("dev-1", name="Robert"))

        assert result == SetStatusResult.UPDATED
        assert len(tracker) == 1
        assert tracker.get_entrants() == ["dev-1"]
        assert tracker.get_status("dev-1") == EntrantStatus.INVITED
        assert tracker.get_status(Entrant("dev-1")) == EntrantStatus.INVITED
        assert Entrant("dev-1") in tracker
        assert build_participant_lists(tracker) == {
            LIST_WAITING: [],
            LIST_SELECTED: ["dev-1"],
            LIST_ATTENDING: [],
            LIST_CANCELLED: [],
        }

    def test_record_keeps_first_entrant_value(self, tracker, robert):
        tracker.join(robert)
        tracker.accept(robert.device_id)

        assert tracker.get_entrants() == [robert]
        assert tracker.get_entrants()[0].name == "Robert"

    def test_from_records_merges_device_id_and_entrant(self):
        tracker = EntrantTracker.from_records([
            (Entrant("dev-1"), EntrantStatus.WAITING),
            ("dev-1", EntrantStatus.DECLINED),
        ])

        assert len(tracker) == 1
        assert tracker.get_status(Entrant("dev-1")) == EntrantStatus.DECLINED

    def test_get_record(self, tracker, robert):
        assert tracker.get_record(robert) is None

        tracker.join(robert)
        record = tracker.get_record(robert)

        assert record.entrant == robert
        assert record.status == EntrantStatus.WAITING

    def test_get_record_is_a_copy(self, robert):
        tracker = EntrantTracker(state_machine=STRICT)
        tracker.join(robert)
        tracker.remove(robert)

        tracker.get_record(robert).set_status(EntrantStatus.ACCEPTED)

        assert tracker.get_status(robert) == EntrantStatus.FORCE_LEFT

    def test_get_entrants_rejects_unknown_status(self, tracker, robert):
        tracker.join(robert)

        with pytest.raises(ValueError):
            tracker.get_entrants("BOGUS")

    def test_get_entrants_accepts_status_name(self, tracker, robert):
        tracker.join(robert)
        assert tracker.get_entrants("WAITING") == [robert]

    def test_filtered_enumeration_matches_full_enumeration(self, tracker):
        entrants = [Entrant(f"dev-{i}") for i in range(6)]
        for entrant in entrants:
            tracker.join(entrant)
        tracker.invite(entrants[1])
        tracker.invite(entrants[4])
        tracker.leave(entrants[2])
        tracker.accept(entrants[4])
        tracker.join(entrants[2])

        everyone = tracker.get_entrants()
        for status in EntrantStatus:
            expected = [e for e in everyone if tracker.get_status(e) == status]
            assert tracker.get_entrants(status) == expected

        assert tracker.get_entrants(EntrantStatus.WAITING) == [
            entrants[0], entrants[2], entrants[3], entrants[5]
        ]
        assert tracker.get_entrants(EntrantStatus.INVITED) == [entrants[1]]

    def test_get_entrants_returns_copy(self, tracker, robert):
        tracker.join(robert)
        snapshot = tracker.get_entrants()
        snapshot.clear()

        assert tracker.get_entrants() == [robert]

    def test_counts(self, tracker):
        tracker.join("a")
        tracker.join("b")
        tracker.invite("c")

        counts = tracker.counts()

        assert counts[EntrantStatus.WAITING] == 2
        assert counts[EntrantStatus.INVITED] == 1
        assert counts[EntrantStatus.FORCE_LEFT] == 0
        assert set(counts) == set(EntrantStatus)

    def test_records_snapshot(self, tracker):
        tracker.join("a")
        tracker.remove("b")

        assert tracker.records() == [
            ("a", EntrantStatus.WAITING),
            ("b", EntrantStatus.FORCE_LEFT),
        ]


class TestInvalidIdentity:
    @pytest.mark.parametrize("bad", [None, "", "   ", Entrant(""), Entrant(None), ["not", "hashable"]])
    def test_transition_rejects_invalid_identity(self, tracker, bad):
        tracker.join("existing")

        with pytest.raises(InvalidEntrantIdentity):
            tracker.join(bad)

        assert tracker.get_entrants() == ["existing"]

    def test_get_status_rejects_invalid_identity(self, tracker):
        with pytest.raises(InvalidEntrantIdentity):
            tracker.get_status(None)

    def test_contains_is_false_for_invalid_identity(self, tracker):
        assert None not in tracker

    def test_invalid_status_leaves_state_unchanged(self, tracker, robert):
        tracker.join(robert)

        with pytest.raises(ValueError):
            tracker.set_status(robert, "LOST")
        with pytest.raises(ValueError):
            tracker.set_status(Entrant("new"), "LOST")

        assert tracker.get_status(robert) == EntrantStatus.WAITING
        assert tracker.get_entrants() == [robert]


class TestFromRecords:
    def test_preserves_order_and_status(self):
        tracker = EntrantTracker.from_records([
            (Entrant("b"), EntrantStatus.INVITED),
            (Entrant("a"), EntrantStatus.WAITING),
        ])

        assert tracker.get_entrants() == [Entrant("b"), Entrant("a")]
        assert tracker.get_status(Entrant("b")) == EntrantStatus.INVITED

    def test_duplicate_rows_collapse_to_last_status(self):
        tracker = EntrantTracker.from_records([
            ("a", EntrantStatus.WAITING),
            ("a", EntrantStatus.DECLINED),
        ])

        assert len(tracker) == 1
        assert tracker.get_status("a") == EntrantStatus.DECLINED


class TestConcurrency:
    def test_concurrent_joins_never_duplicate(self, tracker):
        entrants = [Entrant(f"dev-{i}") for i in range(50)]

        def worker():
            for entrant in entrants:
                tracker.join(entrant)
                tracker.get_entrants(EntrantStatus.WAITING)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(tracker) == 50
        assert sorted(e.device_id for e in tracker.get_entrants()) == sorted(e.device_id for e in entrants)
