# tests/services/test_slot_service.py
"""
Database-backed tests for the recurring slot lifecycle.
"""

from datetime import date, time

import pytest

from cfa_planning.core.exceptions import InactiveSlotException, NotFoundException
from cfa_planning.models import Occurrence, RecurringSlot
from cfa_planning.schemas.scheduling import OccurrenceUpdate, RecurringSlotDraft
from cfa_planning.services.occurrence_materializer import OccurrenceMaterializer
from cfa_planning.services.occurrence_service import OccurrenceService
from cfa_planning.services.slot_service import SlotService


@pytest.fixture
def draft(calendar, room_a101, instructor, offering) -> RecurringSlotDraft:
    return RecurringSlotDraft(
        calendar_id=calendar.id,
        room_id=room_a101.id,
        instructor_ids=[instructor.id],
        subject_offering_id=offering.id,
        day_of_week=1,
        start_time=time(8, 0),
        end_time=time(10, 0),
        recurrence_start=date(2024, 9, 2),
        recurrence_end=date(2024, 12, 20),
        week_parity="A",
    )


class TestCreateSlot:
    def test_create_slot(self, db, draft, instructor):
        result = SlotService(db).create_slot(draft)

        slot = db.get(RecurringSlot, result.slot_id)
        assert slot is not None
        assert slot.week_parity == "A"
        assert slot.instructor_ids == [instructor.id]
        assert result.warnings == []
        assert not result.conflicts.has_conflicts

    def test_calendar_reference_is_pinned(self, db, calendar, draft):
        calendar.week_a_reference = date(2024, 9, 9)
        db.commit()

        result = SlotService(db).create_slot(draft)

        calendar.week_a_reference = date(2024, 9, 2)
        db.commit()
        slot = db.get(RecurringSlot, result.slot_id)
        assert slot.week_reference == date(2024, 9, 9)

    def test_capacity_warning_does_not_block(self, db, draft, room_b202):
        result = SlotService(db).create_slot(draft.model_copy(update={"room_id": room_b202.id}))

        assert len(result.warnings) == 1
        assert "B202" in result.warnings[0]
        assert db.get(RecurringSlot, result.slot_id) is not None

    def test_virtual_room_has_no_capacity_warning(self, db, draft, virtual_room):
        result = SlotService(db).create_slot(draft.model_copy(update={"room_id": virtual_room.id}))
        assert result.warnings == []

    def test_conflicts_are_returned_not_raised(self, db, draft):
        service = SlotService(db)
        first = service.create_slot(draft)

        second = service.create_slot(draft)

        assert second.slot_id != first.slot_id
        assert len(second.conflicts.room_conflicts) == 1
        assert second.conflicts.room_conflicts[0].slot_id == first.slot_id
        assert len(second.conflicts.instructor_conflicts) == 1

    def test_missing_instructor(self, db, draft):
        bad = draft.model_copy(update={"instructor_ids": ["01J8ZK3Q7Y6W0V5T4S3R2Q1P0N"]})

        with pytest.raises(NotFoundException):
            SlotService(db).create_slot(bad)
        assert db.query(RecurringSlot).count() == 0

    def test_missing_calendar(self, db, draft):
        with pytest.raises(NotFoundException):
            SlotService(db).create_slot(
                draft.model_copy(update={"calendar_id": "01J8ZK3Q7Y6W0V5T4S3R2Q1P0N"})
            )


class TestUpdateSlot:
    def test_update_excludes_itself_from_conflicts(self, db, draft):
        service = SlotService(db)
        created = service.create_slot(draft)

        result = service.update_slot(
            created.slot_id, draft.model_copy(update={"end_time": time(11, 0)})
        )

        assert not result.conflicts.has_conflicts
        assert db.get(RecurringSlot, created.slot_id).end_time == time(11, 0)

    def test_update_does_not_rewrite_occurrences(self, db, make_slot):
        slot = make_slot()
        OccurrenceMaterializer(db).materialize(slot.id)
        service = SlotService(db)

        updated = RecurringSlotDraft.from_slot(slot).model_copy(
            update={"start_time": time(13, 0), "end_time": time(15, 0)}
        )
        service.update_slot(slot.id, updated)

        times = {(o.start_time, o.end_time) for o in db.query(Occurrence).all()}
        assert times == {(time(8, 0), time(10, 0))}


class TestDeactivateAndDelete:
    def test_deactivate_keeps_occurrences(self, db, make_slot):
        slot = make_slot()
        materializer = OccurrenceMaterializer(db)
        materializer.materialize(slot.id)

        SlotService(db).deactivate_slot(slot.id)

        assert db.query(Occurrence).count() == 16
        with pytest.raises(InactiveSlotException):
            materializer.materialize(slot.id)

    def test_delete_removes_unmodified_and_detaches_modified(self, db, make_slot):
        slot = make_slot()
        OccurrenceMaterializer(db).materialize(slot.id)
        kept = db.query(Occurrence).order_by(Occurrence.session_date).first()
        OccurrenceService(db).update_occurrence(kept.id, OccurrenceUpdate(end_time=time(9, 30)))

        summary = SlotService(db).delete_slot(slot.id)

        assert summary == {"deleted": 15, "detached": 1}
        assert db.get(RecurringSlot, slot.id) is None
        remaining = db.query(Occurrence).all()
        assert [o.id for o in remaining] == [kept.id]
        assert remaining[0].recurring_slot_id is None
        assert remaining[0].manually_modified is True

    def test_delete_unknown_slot(self, db):
        with pytest.raises(NotFoundException):
            SlotService(db).delete_slot("01J8ZK3Q7Y6W0V5T4S3R2Q1P0N")
