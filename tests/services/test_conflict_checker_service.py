# tests/services/test_conflict_checker_service.py
"""
Database-backed tests for ConflictChecker.
"""

from datetime import date, time

import pytest

from cfa_planning.core.exceptions import NotFoundException
from cfa_planning.models import Occurrence, OccurrenceStatus
from cfa_planning.schemas.scheduling import RecurringSlotDraft
from cfa_planning.services.conflict_checker import ConflictChecker
from cfa_planning.services.occurrence_materializer import OccurrenceMaterializer


class TestSlotConflicts:
    @pytest.mark.parametrize(
        "first,second,expected",
        [
            ("A", "B", 0),
            ("B", "A", 0),
            (None, "A", 1),
            ("B", None, 1),
            (None, None, 1),
            ("A", "A", 1),
            ("B", "B", 1),
        ],
    )
    def test_parity_exactness(self, db, make_slot, other_instructor, first, second, expected):
        slot = make_slot(week_parity=first)
        make_slot(week_parity=second, instructors=[other_instructor])

        result = ConflictChecker(db).validate_slot(slot.id)

        assert len(result.room_conflicts) == expected
        assert result.instructor_conflicts == []

    def test_slot_never_conflicts_with_itself(self, db, make_slot):
        slot = make_slot()
        assert not ConflictChecker(db).has_conflicts(slot.id)

    def test_touching_windows_do_not_conflict(self, db, make_slot):
        slot = make_slot()
        make_slot(start_time=time(10, 0), end_time=time(12, 0))
        make_slot(start_time=time(6, 0), end_time=time(8, 0))

        assert ConflictChecker(db).count_conflicts(slot.id) == 0

    def test_overlapping_window_conflicts_in_room_and_instructor(self, db, make_slot):
        slot = make_slot()
        make_slot(start_time=time(9, 45), end_time=time(11, 0))

        result = ConflictChecker(db).validate_slot(slot.id)

        assert len(result.room_conflicts) == 1
        assert len(result.instructor_conflicts) == 1
        assert result.count == 2

    def test_disjoint_date_ranges(self, db, make_slot):
        slot = make_slot()
        make_slot(recurrence_start=date(2025, 1, 6), recurrence_end=date(2025, 6, 30))
        # Shared boundary day counts as overlap
        make_slot(
            day_of_week=1,
            start_time=time(8, 0),
            end_time=time(9, 0),
            recurrence_start=date(2024, 12, 20),
            recurrence_end=date(2025, 3, 31),
        )

        result = ConflictChecker(db).validate_slot(slot.id)

        assert len(result.room_conflicts) == 1
        assert result.room_conflicts[0].recurrence_start == date(2024, 12, 20)

    def test_other_weekday_does_not_conflict(self, db, make_slot):
        slot = make_slot()
        make_slot(day_of_week=2)
        assert ConflictChecker(db).count_conflicts(slot.id) == 0

    def test_inactive_slots_are_ignored(self, db, make_slot):
        slot = make_slot()
        make_slot(is_active=False)
        assert ConflictChecker(db).count_conflicts(slot.id) == 0

    def test_instructor_conflict_across_rooms(self, db, make_slot, room_b202, instructor):
        slot = make_slot()
        make_slot(room=room_b202)

        result = ConflictChecker(db).validate_slot(slot.id)

        assert result.room_conflicts == []
        assert [c.instructor_id for c in result.instructor_conflicts] == [instructor.id]

    def test_virtual_room_skips_room_check_only(self, db, make_slot, virtual_room):
        slot = make_slot(room=virtual_room)
        make_slot(room=virtual_room)

        result = ConflictChecker(db).validate_slot(slot.id)

        assert result.room_conflicts == []
        assert len(result.instructor_conflicts) == 1

    def test_draft_validation_before_saving(
        self, db, make_slot, calendar, room_a101, other_instructor, offering
    ):
        make_slot(week_parity="A")
        draft = RecurringSlotDraft(
            calendar_id=calendar.id,
            room_id=room_a101.id,
            instructor_ids=[other_instructor.id],
            subject_offering_id=offering.id,
            day_of_week=1,
            start_time=time(9, 0),
            end_time=time(10, 30),
            recurrence_start=date(2024, 10, 1),
            recurrence_end=date(2025, 2, 28),
            week_parity="B",
        )
        checker = ConflictChecker(db)

        assert not checker.has_conflicts(draft)
        assert checker.has_conflicts(draft.model_copy(update={"week_parity": None}))

    def test_conflict_messages(self, db, make_slot):
        slot = make_slot()
        make_slot(start_time=time(9, 0), end_time=time(11, 0))

        messages = ConflictChecker(db).conflict_messages(slot.id)

        assert len(messages) == 2
        assert messages[0].startswith("Room A101 is already used by slot")
        assert "BTS-SIO-1" in messages[0]
        assert messages[1].startswith("Camille Martin already teaches slot")

    def test_missing_slot_propagates(self, db):
        with pytest.raises(NotFoundException):
            ConflictChecker(db).validate_slot("01J8ZK3Q7Y6W0V5T4S3R2Q1P0N")

    def test_missing_room_propagates(self, db, calendar, instructor, offering):
        draft = RecurringSlotDraft(
            calendar_id=calendar.id,
            room_id="01J8ZK3Q7Y6W0V5T4S3R2Q1P0N",
            instructor_ids=[instructor.id],
            subject_offering_id=offering.id,
            day_of_week=1,
            start_time=time(8, 0),
            end_time=time(10, 0),
            recurrence_start=date(2024, 9, 2),
            recurrence_end=date(2024, 12, 20),
        )
        with pytest.raises(NotFoundException):
            ConflictChecker(db).validate_slot(draft)


class TestOccurrenceConflicts:
    def _materialized(self, db, make_slot, **kwargs):
        slot = make_slot(**kwargs)
        OccurrenceMaterializer(db).materialize(slot.id)
        return (
            db.query(Occurrence)
            .filter(Occurrence.recurring_slot_id == slot.id)
            .order_by(Occurrence.session_date)
            .all()
        )

    def test_room_conflict_on_a_date(self, db, make_slot, room_a101):
        occurrences = self._materialized(db, make_slot)
        checker = ConflictChecker(db)

        clash = checker.find_room_conflict_for_occurrence(
            room_a101.id, date(2024, 9, 2), time(9, 0), time(9, 30)
        )
        none = checker.find_room_conflict_for_occurrence(
            room_a101.id, date(2024, 9, 2), time(10, 0), time(11, 0)
        )

        assert clash is not None
        assert clash.id == occurrences[0].id
        assert none is None

    def test_instructor_conflict_on_a_date(self, db, make_slot, instructor):
        self._materialized(db, make_slot)

        clash = ConflictChecker(db).find_instructor_conflict_for_occurrence(
            instructor.id, date(2024, 9, 9), time(7, 0), time(8, 15)
        )
        assert clash is not None
        assert clash.session_date == date(2024, 9, 9)

    def test_excluded_occurrence_is_not_a_conflict(self, db, make_slot, room_a101):
        occurrences = self._materialized(db, make_slot)
        target = occurrences[0]

        clash = ConflictChecker(db).find_room_conflict_for_occurrence(
            room_a101.id, target.session_date, target.start_time, target.end_time, target.id
        )
        assert clash is None

    def test_cancelled_occurrences_never_conflict(self, db, make_slot, room_a101):
        occurrences = self._materialized(db, make_slot)
        occurrences[0].status = OccurrenceStatus.CANCELLED.value
        db.commit()
        checker = ConflictChecker(db)

        assert (
            checker.find_room_conflict_for_occurrence(
                room_a101.id, date(2024, 9, 2), time(8, 0), time(10, 0)
            )
            is None
        )
        assert not checker.validate_occurrence(occurrences[0].id).has_conflicts

    def test_validate_occurrence(self, db, make_slot, other_instructor):
        first = self._materialized(db, make_slot)
        self._materialized(db, make_slot, instructors=[other_instructor])

        result = ConflictChecker(db).validate_occurrence(first[0].id)

        assert result.room_conflict is not None
        assert result.room_conflict.session_date == first[0].session_date
        assert result.instructor_conflicts == []
