# cfa_planning/services/conflict_checker.py
"""
Conflict Checker Service for the planning core

Detects room and instructor double-booking:
- between recurring slots (day of week, time window, date range, week parity)
- between concrete occurrences on a single date

Conflicts are returned as data. The checker never raises for a conflict;
only a missing referenced entity (room, instructor, slot) propagates as
NotFoundException.
"""

from datetime import date, time
import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.occurrence import Occurrence, OccurrenceStatus
from ..models.recurring_slot import DAY_NAMES, RecurringSlot, WeekParity
from ..repositories.factory import RepositoryFactory
from ..repositories.occurrence_repository import OccurrenceRepository
from ..repositories.recurring_slot_repository import RecurringSlotRepository
from ..schemas.scheduling import (
    OccurrenceConflict,
    OccurrenceValidationResult,
    RecurringSlotDraft,
    SlotConflict,
    SlotValidationResult,
)
from .base import BaseService
from .reference_service import ReferenceService

logger = logging.getLogger(__name__)

SlotOrDraft = Union[str, RecurringSlotDraft]


def parities_compatible(first: Optional[WeekParity], second: Optional[WeekParity]) -> bool:
    """
    Whether two week parities can share a week.

    "Every week" (None) touches both A and B weeks; A and B never meet.
    """
    if first is None or second is None:
        return True
    return first == second


class ConflictChecker(BaseService):
    """
    Service for checking room and instructor conflicts.

    Candidate queries narrow by room/instructor, day, time and date range in
    the database; the week parity compatibility rule is applied here as the
    final filter.
    """

    def __init__(
        self,
        db: Session,
        slot_repository: Optional[RecurringSlotRepository] = None,
        occurrence_repository: Optional[OccurrenceRepository] = None,
        references: Optional[ReferenceService] = None,
    ):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            slot_repository: Optional RecurringSlotRepository instance
            occurrence_repository: Optional OccurrenceRepository instance
            references: Optional ReferenceService for room/instructor lookups
        """
        super().__init__(db)
        self.slot_repository = (
            slot_repository or RepositoryFactory.create_recurring_slot_repository(db)
        )
        self.occurrence_repository = (
            occurrence_repository or RepositoryFactory.create_occurrence_repository(db)
        )
        self.references = references or ReferenceService(db)

    # Recurring slot conflicts

    @BaseService.measure_operation("find_room_conflicts")
    def find_room_conflicts(
        self,
        room_id: str,
        day_of_week: int,
        start_time: time,
        end_time: time,
        range_start: date,
        range_end: date,
        parity: Optional[WeekParity] = None,
        exclude_slot_id: Optional[str] = None,
    ) -> List[RecurringSlot]:
        """
        Other active slots using the same room at an overlapping time.

        Args:
            room_id: The room to check
            day_of_week: ISO weekday (1=Monday)
            start_time: Start of the window (inclusive)
            end_time: End of the window (exclusive)
            range_start: First date of the recurrence
            range_end: Last date of the recurrence
            parity: Week parity of the slot under validation
            exclude_slot_id: Slot being edited, never a conflict with itself

        Returns:
            Conflicting slots ordered by start time
        """
        candidates = self.slot_repository.find_room_conflicts(
            room_id,
            day_of_week,
            start_time,
            end_time,
            range_start,
            range_end,
            parity,
            exclude_slot_id,
        )
        return [slot for slot in candidates if parities_compatible(parity, slot.parity)]

    @BaseService.measure_operation("find_instructor_conflicts")
    def find_instructor_conflicts(
        self,
        instructor_id: str,
        day_of_week: int,
        start_time: time,
        end_time: time,
        range_start: date,
        range_end: date,
        parity: Optional[WeekParity] = None,
        exclude_slot_id: Optional[str] = None,
    ) -> List[RecurringSlot]:
        """Other active slots taught by the instructor at an overlapping time."""
        candidates = self.slot_repository.find_instructor_conflicts(
            instructor_id,
            day_of_week,
            start_time,
            end_time,
            range_start,
            range_end,
            parity,
            exclude_slot_id,
        )
        return [slot for slot in candidates if parities_compatible(parity, slot.parity)]

    @BaseService.measure_operation("validate_slot")
    def validate_slot(self, slot: SlotOrDraft) -> SlotValidationResult:
        """
        Aggregate room and per-instructor conflicts of a slot.

        Accepts a persisted slot id or an unsaved draft. The room check is
        skipped entirely for virtual rooms.

        Raises:
            NotFoundException: If the slot, its room or an instructor is missing
        """
        draft = self.as_draft(slot)
        result = SlotValidationResult()
        window = (
            draft.day_of_week,
            draft.start_time,
            draft.end_time,
            draft.recurrence_start,
            draft.recurrence_end,
            draft.week_parity,
            draft.id,
        )

        room = self.references.get_room(draft.room_id)
        if not room.is_virtual:
            for other in self.find_room_conflicts(room.id, *window):
                result.room_conflicts.append(
                    self._slot_conflict(
                        other, f"Room {room.name} is already used by slot {self._describe(other)}"
                    )
                )

        for instructor in self.references.get_instructors(draft.instructor_ids):
            for other in self.find_instructor_conflicts(instructor.id, *window):
                result.instructor_conflicts.append(
                    self._slot_conflict(
                        other,
                        f"{instructor.display_name} already teaches slot {self._describe(other)}",
                        instructor_id=instructor.id,
                    )
                )

        if result.has_conflicts:
            self.logger.warning(
                f"Found {result.count} slot conflicts for {DAY_NAMES[draft.day_of_week]} "
                f"{draft.start_time}-{draft.end_time} "
                f"({draft.recurrence_start} to {draft.recurrence_end})"
            )
        return result

    def has_conflicts(self, slot: SlotOrDraft) -> bool:
        return self.validate_slot(slot).has_conflicts

    def count_conflicts(self, slot: SlotOrDraft) -> int:
        return self.validate_slot(slot).count

    def conflict_messages(self, slot: SlotOrDraft) -> List[str]:
        """Human-readable conflict summary, room conflicts first."""
        return self.validate_slot(slot).messages

    # Occurrence conflicts

    def find_room_conflict_for_occurrence(
        self,
        room_id: str,
        session_date: date,
        start_time: time,
        end_time: time,
        exclude_occurrence_id: Optional[str] = None,
    ) -> Optional[Occurrence]:
        """First active occurrence in the room overlapping the window on that date."""
        return self.occurrence_repository.find_room_conflict(
            room_id, session_date, start_time, end_time, exclude_occurrence_id
        )

    def find_instructor_conflict_for_occurrence(
        self,
        instructor_id: str,
        session_date: date,
        start_time: time,
        end_time: time,
        exclude_occurrence_id: Optional[str] = None,
    ) -> Optional[Occurrence]:
        """First active occurrence of the instructor overlapping the window on that date."""
        return self.occurrence_repository.find_instructor_conflict(
            instructor_id, session_date, start_time, end_time, exclude_occurrence_id
        )

    def check_occurrence_window(
        self,
        room_id: str,
        instructor_ids: List[str],
        session_date: date,
        start_time: time,
        end_time: time,
        exclude_occurrence_id: Optional[str] = None,
    ) -> OccurrenceValidationResult:
        """
        Room and instructor conflicts for one concrete date and time window.

        Used for persisted occurrences as well as for windows about to be
        written (manual creation, edits, materialization).
        """
        result = OccurrenceValidationResult()

        room = self.references.get_room(room_id)
        if not room.is_virtual:
            clash = self.find_room_conflict_for_occurrence(
                room_id, session_date, start_time, end_time, exclude_occurrence_id
            )
            if clash is not None:
                result.room_conflict = self._occurrence_conflict(clash)

        for instructor_id in instructor_ids:
            clash = self.find_instructor_conflict_for_occurrence(
                instructor_id, session_date, start_time, end_time, exclude_occurrence_id
            )
            if clash is not None:
                result.instructor_conflicts.append(
                    self._occurrence_conflict(clash, instructor_id=instructor_id)
                )

        if result.has_conflicts:
            self.logger.warning(
                f"Occurrence conflicts on {session_date} between {start_time}-{end_time} "
                f"in room {room_id}"
            )
        return result

    @BaseService.measure_operation("validate_occurrence")
    def validate_occurrence(self, occurrence: Union[str, Occurrence]) -> OccurrenceValidationResult:
        """
        Conflicts of a persisted occurrence with other occurrences.

        A cancelled occurrence occupies nothing and therefore never conflicts.
        """
        if isinstance(occurrence, str):
            occurrence_id = occurrence
            loaded = self.occurrence_repository.get_by_id(occurrence_id)
            if loaded is None:
                raise NotFoundException(
                    f"Occurrence {occurrence_id} not found",
                    code="OCCURRENCE_NOT_FOUND",
                    details={"occurrence_id": occurrence_id},
                )
            occurrence = loaded

        if occurrence.status == OccurrenceStatus.CANCELLED.value:
            return OccurrenceValidationResult()

        return self.check_occurrence_window(
            occurrence.room_id,
            occurrence.instructor_ids,
            occurrence.session_date,
            occurrence.start_time,
            occurrence.end_time,
            exclude_occurrence_id=occurrence.id,
        )

    # Helpers

    def as_draft(self, slot: SlotOrDraft) -> RecurringSlotDraft:
        """Resolve a slot id to a draft of the persisted slot; drafts pass through."""
        if isinstance(slot, RecurringSlotDraft):
            return slot
        persisted = self.slot_repository.get_by_id(slot)
        if persisted is None:
            raise NotFoundException(
                f"Recurring slot {slot} not found",
                code="SLOT_NOT_FOUND",
                details={"slot_id": slot},
            )
        return RecurringSlotDraft.from_slot(persisted)

    @staticmethod
    def _describe(slot: RecurringSlot) -> str:
        cohort = slot.subject_offering.cohort_code if slot.subject_offering else "?"
        return f'"{slot.label}" ({cohort})'

    @staticmethod
    def _slot_conflict(
        slot: RecurringSlot, message: str, instructor_id: Optional[str] = None
    ) -> SlotConflict:
        return SlotConflict(
            slot_id=slot.id,
            room_id=slot.room_id,
            instructor_id=instructor_id,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
            recurrence_start=slot.recurrence_start,
            recurrence_end=slot.recurrence_end,
            week_parity=slot.parity,
            message=message,
        )

    @staticmethod
    def _occurrence_conflict(
        occurrence: Occurrence, instructor_id: Optional[str] = None
    ) -> OccurrenceConflict:
        return OccurrenceConflict(
            occurrence_id=occurrence.id,
            session_date=occurrence.session_date,
            start_time=occurrence.start_time,
            end_time=occurrence.end_time,
            room_id=occurrence.room_id,
            instructor_id=instructor_id,
            status=occurrence.status,
        )
