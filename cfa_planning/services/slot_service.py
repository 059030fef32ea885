# cfa_planning/services/slot_service.py
"""
Recurring slot lifecycle: create, edit, deactivate, delete.

Conflicts found while creating or editing a slot are returned to the caller
and never block the write; deciding whether to override them is the
caller's job.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.recurring_slot import RecurringSlot
from ..models.room import Room
from ..models.subject_offering import SubjectOffering
from ..repositories.factory import RepositoryFactory
from ..repositories.occurrence_repository import OccurrenceRepository
from ..repositories.recurring_slot_repository import RecurringSlotRepository
from ..schemas.scheduling import RecurringSlotDraft, SlotCreationResult
from .base import BaseService
from .calendar_service import CalendarService
from .conflict_checker import ConflictChecker
from .reference_service import ReferenceService

logger = logging.getLogger(__name__)


def capacity_warnings(room: Room, offering: SubjectOffering) -> List[str]:
    """Advisory check: a finite room capacity should fit the cohort headcount."""
    if room.capacity is None or offering.max_headcount is None:
        return []
    if room.capacity < offering.max_headcount:
        return [
            f"Room {room.name} holds {room.capacity} people but {offering.cohort_code} "
            f"has up to {offering.max_headcount} learners"
        ]
    return []


class SlotService(BaseService):
    """Creates and maintains recurring slots."""

    def __init__(
        self,
        db: Session,
        slot_repository: Optional[RecurringSlotRepository] = None,
        occurrence_repository: Optional[OccurrenceRepository] = None,
    ):
        super().__init__(db)
        self.slot_repository = (
            slot_repository or RepositoryFactory.create_recurring_slot_repository(db)
        )
        self.occurrence_repository = (
            occurrence_repository or RepositoryFactory.create_occurrence_repository(db)
        )
        self.references = ReferenceService(db)
        self.calendar_service = CalendarService(db)
        self.conflict_checker = ConflictChecker(
            db,
            slot_repository=self.slot_repository,
            occurrence_repository=self.occurrence_repository,
            references=self.references,
        )

    def get_slot(self, slot_id: str) -> RecurringSlot:
        slot = self.slot_repository.get_by_id(slot_id)
        if slot is None:
            raise NotFoundException(
                f"Recurring slot {slot_id} not found",
                code="SLOT_NOT_FOUND",
                details={"slot_id": slot_id},
            )
        return slot

    @BaseService.measure_operation("create_slot")
    def create_slot(self, draft: RecurringSlotDraft) -> SlotCreationResult:
        """
        Persist a new recurring slot.

        The calendar's week-A reference is pinned on the slot unless the draft
        carries its own, so later changes to the calendar do not reclassify
        the slot's weeks.

        Raises:
            NotFoundException: If the calendar, room, an instructor or the
                subject offering does not exist
        """
        calendar = self.calendar_service.get_calendar(draft.calendar_id)
        room = self.references.get_room(draft.room_id)
        instructors = self.references.get_instructors(draft.instructor_ids)
        offering = self.references.get_subject_offering(draft.subject_offering_id)

        warnings = capacity_warnings(room, offering)
        conflicts = self.conflict_checker.validate_slot(draft.model_copy(update={"id": None}))

        with self.transaction():
            slot = RecurringSlot(
                calendar_id=calendar.id,
                room_id=room.id,
                subject_offering_id=offering.id,
                day_of_week=draft.day_of_week,
                start_time=draft.start_time,
                end_time=draft.end_time,
                recurrence_start=draft.recurrence_start,
                recurrence_end=draft.recurrence_end,
                week_parity=draft.week_parity.value if draft.week_parity else None,
                week_reference=draft.week_reference or calendar.week_a_reference,
                is_active=draft.is_active,
                comment=draft.comment,
            )
            slot.instructors = instructors
            self.db.add(slot)
            self.db.flush()

        for warning in warnings:
            self.logger.warning(warning)
        self.logger.info(f"Created recurring slot {slot.id} ({slot.label})")
        return SlotCreationResult(slot_id=slot.id, warnings=warnings, conflicts=conflicts)

    @BaseService.measure_operation("update_slot")
    def update_slot(self, slot_id: str, draft: RecurringSlotDraft) -> SlotCreationResult:
        """
        Apply a new definition to an existing slot.

        Occurrences already materialized are snapshots and are not touched;
        regenerate the slot to rebuild the unmodified ones.
        """
        slot = self.get_slot(slot_id)
        self.calendar_service.get_calendar(draft.calendar_id)
        room = self.references.get_room(draft.room_id)
        instructors = self.references.get_instructors(draft.instructor_ids)
        offering = self.references.get_subject_offering(draft.subject_offering_id)

        conflicts = self.conflict_checker.validate_slot(draft.model_copy(update={"id": slot_id}))

        with self.transaction():
            slot.calendar_id = draft.calendar_id
            slot.room_id = room.id
            slot.subject_offering_id = offering.id
            slot.day_of_week = draft.day_of_week
            slot.start_time = draft.start_time
            slot.end_time = draft.end_time
            slot.recurrence_start = draft.recurrence_start
            slot.recurrence_end = draft.recurrence_end
            slot.week_parity = draft.week_parity.value if draft.week_parity else None
            if draft.week_reference is not None:
                slot.week_reference = draft.week_reference
            slot.is_active = draft.is_active
            slot.comment = draft.comment
            slot.instructors = instructors
            self.db.flush()

        return SlotCreationResult(slot_id=slot.id, conflicts=conflicts)

    def deactivate_slot(self, slot_id: str) -> RecurringSlot:
        """Stop future materialization; existing occurrences stay."""
        slot = self.get_slot(slot_id)
        with self.transaction():
            slot.is_active = False
        self.logger.info(f"Deactivated recurring slot {slot_id}")
        return slot

    @BaseService.measure_operation("delete_slot")
    def delete_slot(self, slot_id: str) -> Dict[str, int]:
        """
        Delete a slot with its unmodified occurrences.

        Manually modified occurrences are detached (slot reference cleared)
        and kept.

        Returns:
            {"deleted": <occurrences deleted>, "detached": <occurrences kept>}
        """
        with self.transaction():
            slot = self.slot_repository.get_for_update(slot_id)
            if slot is None:
                raise NotFoundException(
                    f"Recurring slot {slot_id} not found",
                    code="SLOT_NOT_FOUND",
                    details={"slot_id": slot_id},
                )
            detached = self.occurrence_repository.detach_modified_for_slot(slot_id)
            deleted = self.occurrence_repository.delete_unmodified_for_slot(slot_id)
            self.db.delete(slot)
            self.db.flush()

        self.logger.info(
            f"Deleted recurring slot {slot_id}: {deleted} occurrences deleted, {detached} detached"
        )
        return {"deleted": deleted, "detached": detached}
