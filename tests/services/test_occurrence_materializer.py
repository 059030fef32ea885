# tests/services/test_occurrence_materializer.py
"""
Database-backed tests for OccurrenceMaterializer.
"""

from datetime import date, time

import pytest
from sqlalchemy.orm import Session

from cfa_planning.core.exceptions import InactiveSlotException, NotFoundException
from cfa_planning.models import Occurrence, OccurrenceStatus
from cfa_planning.schemas.scheduling import OccurrenceUpdate, PreviewOutcome, RecurringSlotDraft
from cfa_planning.services.occurrence_materializer import OccurrenceMaterializer
from cfa_planning.services.occurrence_service import OccurrenceService

ARMISTICE = date(2024, 11, 11)


def occurrences_of(db: Session, slot_id: str):
    return (
        db.query(Occurrence)
        .filter(Occurrence.recurring_slot_id == slot_id)
        .order_by(Occurrence.session_date)
        .all()
    )


class TestMaterialize:
    def test_reference_scenario_with_closed_day(self, db, make_slot, add_closed_day):
        slot = make_slot()
        add_closed_day(ARMISTICE, "Armistice Day")

        result = OccurrenceMaterializer(db).materialize(slot.id)

        assert result.created == 15
        assert result.skipped == 1
        assert result.deleted == 0
        dates = [occurrence.session_date for occurrence in occurrences_of(db, slot.id)]
        assert ARMISTICE not in dates
        assert dates[0] == date(2024, 9, 2)
        assert dates[-1] == date(2024, 12, 16)

    def test_occurrences_copy_the_slot(self, db, make_slot, instructor):
        slot = make_slot()

        OccurrenceMaterializer(db).materialize(slot.id)

        occurrence = occurrences_of(db, slot.id)[0]
        assert occurrence.room_id == slot.room_id
        assert occurrence.subject_offering_id == slot.subject_offering_id
        assert occurrence.instructor_ids == [instructor.id]
        assert (occurrence.start_time, occurrence.end_time) == (time(8, 0), time(10, 0))
        assert occurrence.status == OccurrenceStatus.PLANNED.value
        assert occurrence.manually_modified is False

    def test_second_run_is_idempotent(self, db, make_slot):
        slot = make_slot()
        materializer = OccurrenceMaterializer(db)

        first = materializer.materialize(slot.id)
        second = materializer.materialize(slot.id)

        assert first.created == 16
        assert second.created == 0
        assert second.skipped == 16
        assert len(occurrences_of(db, slot.id)) == 16

    def test_force_regeneration_keeps_manual_edits(self, db, make_slot):
        slot = make_slot()
        materializer = OccurrenceMaterializer(db)
        materializer.materialize(slot.id)

        edited = occurrences_of(db, slot.id)[3]
        OccurrenceService(db).update_occurrence(edited.id, OccurrenceUpdate(start_time=time(8, 30)))

        result = materializer.regenerate(slot.id)

        assert result.deleted == 15
        assert result.created == 15
        assert result.skipped == 1
        survivors = [o for o in occurrences_of(db, slot.id) if o.manually_modified]
        assert [o.id for o in survivors] == [edited.id]
        assert survivors[0].start_time == time(8, 30)
        assert len(occurrences_of(db, slot.id)) == 16

    def test_closed_day_wins_on_forced_regeneration(self, db, make_slot, add_closed_day):
        slot = make_slot()
        materializer = OccurrenceMaterializer(db)
        assert materializer.materialize(slot.id).created == 16

        add_closed_day(ARMISTICE, "Armistice Day")
        result = materializer.materialize(slot.id, force_regenerate=True)

        assert result.deleted == 16
        assert result.created == 15
        assert result.skipped == 1
        assert ARMISTICE not in [o.session_date for o in occurrences_of(db, slot.id)]

    def test_moved_occurrence_frees_its_original_date(self, db, make_slot):
        # A rescheduled session no longer holds its original date, so the
        # next run plans the slot on that date again
        slot = make_slot()
        materializer = OccurrenceMaterializer(db)
        materializer.materialize(slot.id)
        first = occurrences_of(db, slot.id)[0]
        OccurrenceService(db).update_occurrence(
            first.id, OccurrenceUpdate(session_date=date(2024, 9, 3))
        )

        result = materializer.materialize(slot.id)

        assert (result.created, result.skipped) == (1, 15)
        dates = [o.session_date for o in occurrences_of(db, slot.id)]
        assert dates[:2] == [date(2024, 9, 2), date(2024, 9, 3)]
        assert len(dates) == 17

    def test_parity_slot_uses_pinned_reference(self, db, make_slot):
        slot = make_slot(week_parity="B", week_reference=date(2024, 9, 2))

        result = OccurrenceMaterializer(db).materialize(slot.id)

        dates = [o.session_date for o in occurrences_of(db, slot.id)]
        assert result.created == 8
        assert dates[:2] == [date(2024, 9, 9), date(2024, 9, 23)]

    def test_parity_slot_falls_back_to_calendar_reference(self, db, calendar, make_slot):
        calendar.week_a_reference = date(2024, 9, 9)
        db.commit()
        slot = make_slot(week_parity="A")

        OccurrenceMaterializer(db).materialize(slot.id)

        assert occurrences_of(db, slot.id)[0].session_date == date(2024, 9, 9)

    def test_inactive_slot_is_refused(self, db, make_slot):
        slot = make_slot(is_active=False)

        with pytest.raises(InactiveSlotException):
            OccurrenceMaterializer(db).materialize(slot.id)
        assert occurrences_of(db, slot.id) == []

    def test_unknown_slot(self, db):
        with pytest.raises(NotFoundException):
            OccurrenceMaterializer(db).materialize("01J8ZK3Q7Y6W0V5T4S3R2Q1P0N")

    def test_conflicts_reported_for_created_dates(self, db, make_slot, other_instructor):
        first = make_slot()
        second = make_slot(
            instructors=[other_instructor], start_time=time(9, 0), end_time=time(11, 0)
        )
        materializer = OccurrenceMaterializer(db)
        materializer.materialize(first.id)

        result = materializer.materialize(second.id)

        assert result.created == 16
        assert len(result.conflicts) == 16
        assert all(conflict.instructor_id is None for conflict in result.conflicts)
        first_ids = {o.id for o in occurrences_of(db, first.id)}
        assert {conflict.occurrence_id for conflict in result.conflicts} == first_ids

    def test_virtual_room_never_conflicts(self, db, make_slot, virtual_room, other_instructor):
        first = make_slot(room=virtual_room)
        second = make_slot(room=virtual_room, instructors=[other_instructor])
        materializer = OccurrenceMaterializer(db)
        materializer.materialize(first.id)

        assert materializer.materialize(second.id).conflicts == []

    def test_materialize_many_skips_inactive(self, db, make_slot):
        active = make_slot()
        inactive = make_slot(day_of_week=2, is_active=False)

        results = OccurrenceMaterializer(db).materialize_many([active.id, inactive.id])

        assert list(results) == [active.id]
        assert results[active.id].created == 16
        assert occurrences_of(db, inactive.id) == []

    def test_materialize_many_unknown_slot(self, db, make_slot):
        slot = make_slot()

        with pytest.raises(NotFoundException):
            OccurrenceMaterializer(db).materialize_many([slot.id, "01J8ZK3Q7Y6W0V5T4S3R2Q1P0N"])
        assert occurrences_of(db, slot.id) == []


class TestPreviewAndEstimate:
    def test_preview_breakdown(self, db, make_slot, add_closed_day):
        slot = make_slot()
        add_closed_day(ARMISTICE, "Armistice Day")
        materializer = OccurrenceMaterializer(db)
        materializer.materialize(slot.id)
        add_closed_day(date(2024, 12, 16), "Winter break")

        preview = materializer.preview(slot.id)

        assert preview.total == 16
        assert preview.closed == 2
        assert preview.existing == 14
        assert preview.to_create == 0
        by_date = {entry.date: entry for entry in preview.dates}
        assert by_date[ARMISTICE].outcome == PreviewOutcome.CLOSED.value
        assert by_date[ARMISTICE].label == "Armistice Day"

    def test_preview_does_not_write(self, db, make_slot):
        slot = make_slot()

        preview = OccurrenceMaterializer(db).preview(slot.id)

        assert preview.to_create == 16
        assert occurrences_of(db, slot.id) == []

    def test_preview_of_unsaved_draft(
        self, db, calendar, room_a101, instructor, offering, add_closed_day
    ):
        add_closed_day(ARMISTICE)
        draft = RecurringSlotDraft(
            calendar_id=calendar.id,
            room_id=room_a101.id,
            instructor_ids=[instructor.id],
            subject_offering_id=offering.id,
            day_of_week=1,
            start_time=time(8, 0),
            end_time=time(10, 0),
            recurrence_start=date(2024, 9, 2),
            recurrence_end=date(2024, 12, 20),
        )

        preview = OccurrenceMaterializer(db).preview(draft)

        assert (preview.to_create, preview.closed, preview.existing) == (15, 1, 0)

    def test_estimate_counts_closed_days(self, db, make_slot, add_closed_day):
        slot = make_slot()
        add_closed_day(ARMISTICE)
        materializer = OccurrenceMaterializer(db)

        estimate = materializer.estimate_count(slot.id)
        result = materializer.materialize(slot.id)

        assert estimate == 16
        assert estimate == result.created + result.skipped
