# cfa_planning/services/occurrence_materializer.py
"""
Occurrence Materializer

Turns a recurring slot into concrete dated occurrences:
- closed days are always skipped, even on forced regeneration
- dates that already carry an occurrence of the slot are left untouched
- forced regeneration only deletes occurrences nobody edited

One materialization runs in a single transaction holding the slot row
lock. Each create runs in its own SAVEPOINT so that losing a race on the
(slot, date) unique constraint is counted as skipped instead of failing the
whole run. Occurrence conflicts are checked inside that same transaction,
right after each create, and returned with the tally.
"""

from datetime import date
import logging
from typing import Dict, List, Optional, Set, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InactiveSlotException, NotFoundException
from ..models.recurring_slot import RecurringSlot
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.occurrence_repository import OccurrenceRepository
from ..repositories.recurring_slot_repository import RecurringSlotRepository
from ..schemas.scheduling import (
    MaterializationPreview,
    MaterializationResult,
    PreviewDate,
    PreviewOutcome,
    RecurringSlotDraft,
)
from .base import BaseService
from .calendar_service import CalendarService
from .conflict_checker import ConflictChecker
from .date_expansion import expand_slot, resolve_week_reference

logger = logging.getLogger(__name__)

SlotOrDraft = Union[str, RecurringSlotDraft]


class OccurrenceMaterializer(BaseService):
    """Creates, keeps or regenerates the occurrences of recurring slots."""

    def __init__(
        self,
        db: Session,
        slot_repository: Optional[RecurringSlotRepository] = None,
        occurrence_repository: Optional[OccurrenceRepository] = None,
        calendar_service: Optional[CalendarService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db)
        self.slot_repository = (
            slot_repository or RepositoryFactory.create_recurring_slot_repository(db)
        )
        self.occurrence_repository = (
            occurrence_repository or RepositoryFactory.create_occurrence_repository(db)
        )
        self.calendar_service = calendar_service or CalendarService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(
            db,
            slot_repository=self.slot_repository,
            occurrence_repository=self.occurrence_repository,
        )

    @BaseService.measure_operation("materialize")
    def materialize(self, slot_id: str, force_regenerate: bool = False) -> MaterializationResult:
        """
        Materialize the occurrences of a slot.

        Args:
            slot_id: The recurring slot
            force_regenerate: Delete unmodified occurrences first

        Returns:
            Tally of created, skipped and deleted occurrences, plus the
            occurrence conflicts found for created dates

        Raises:
            NotFoundException: If the slot does not exist
            InactiveSlotException: If the slot is deactivated
        """
        with self.transaction():
            slot = self.slot_repository.get_for_update(slot_id)
            if slot is None:
                raise NotFoundException(
                    f"Recurring slot {slot_id} not found",
                    code="SLOT_NOT_FOUND",
                    details={"slot_id": slot_id},
                )
            if not slot.is_active:
                raise InactiveSlotException(slot_id)

            result = self._materialize_locked(slot, force_regenerate)

        if settings.metrics_enabled:
            prometheus_metrics.record_materialization(
                result.created, result.skipped, result.deleted
            )
        self.logger.info(
            f"Materialized slot {slot_id} (force={force_regenerate}): "
            f"{result.created} created, {result.skipped} skipped, {result.deleted} deleted"
        )
        if result.conflicts:
            self.logger.warning(
                f"Slot {slot_id} materialized with {len(result.conflicts)} occurrence conflicts"
            )
        return result

    def regenerate(self, slot_id: str) -> MaterializationResult:
        """Forced materialization: unmodified occurrences are rebuilt."""
        return self.materialize(slot_id, force_regenerate=True)

    @BaseService.measure_operation("materialize_many")
    def materialize_many(self, slot_ids: List[str]) -> Dict[str, MaterializationResult]:
        """
        Materialize several slots, one transaction each. Inactive slots are
        skipped and absent from the result.

        Raises:
            NotFoundException: If any slot id is unknown (nothing is materialized)
        """
        slots = {slot.id: slot for slot in self.slot_repository.get_many(slot_ids)}
        missing = [slot_id for slot_id in slot_ids if slot_id not in slots]
        if missing:
            raise NotFoundException(
                f"Recurring slot(s) not found: {', '.join(missing)}",
                code="SLOT_NOT_FOUND",
                details={"slot_ids": missing},
            )

        results: Dict[str, MaterializationResult] = {}
        for slot_id in slot_ids:
            if slot_id in results:
                continue
            if not slots[slot_id].is_active:
                self.logger.info(f"Skipping inactive slot {slot_id}")
                continue
            results[slot_id] = self.materialize(slot_id)
        return results

    @BaseService.measure_operation("preview_materialization")
    def preview(self, slot: SlotOrDraft) -> MaterializationPreview:
        """
        Per-date breakdown of what materialize(force_regenerate=False) would
        do, without writing anything.
        """
        draft = self._as_draft(slot)
        dates = self._expand(draft)
        if not dates:
            return MaterializationPreview()

        closed = self.calendar_service.closed_day_labels(
            draft.calendar_id, draft.recurrence_start, draft.recurrence_end
        )
        existing: Set[date] = (
            self.occurrence_repository.get_dates_for_slot(draft.id) if draft.id else set()
        )

        preview = MaterializationPreview()
        for day in dates:
            if day in closed:
                preview.dates.append(
                    PreviewDate(date=day, outcome=PreviewOutcome.CLOSED, label=closed[day])
                )
                preview.closed += 1
            elif day in existing:
                preview.dates.append(PreviewDate(date=day, outcome=PreviewOutcome.EXISTING))
                preview.existing += 1
            else:
                preview.dates.append(PreviewDate(date=day, outcome=PreviewOutcome.CREATE))
                preview.to_create += 1
        return preview

    def estimate_count(self, slot: SlotOrDraft) -> int:
        """Number of dates the slot expands to (closed days included)."""
        return len(self._expand(self._as_draft(slot)))

    # Internals

    def _materialize_locked(
        self, slot: RecurringSlot, force_regenerate: bool
    ) -> MaterializationResult:
        result = MaterializationResult()

        if force_regenerate:
            result.deleted = self.occurrence_repository.delete_unmodified_for_slot(slot.id)

        reference = resolve_week_reference(slot.week_reference, slot.calendar)
        dates = expand_slot(slot, reference)
        closed = self.calendar_service.closed_dates_in_range(
            slot.calendar_id, slot.recurrence_start, slot.recurrence_end
        )
        existing = self.occurrence_repository.get_dates_for_slot(slot.id)

        for day in dates:
            if day in closed or day in existing:
                result.skipped += 1
                continue

            occurrence = self.occurrence_repository.create_from_slot(slot, day)
            if occurrence is None:
                # Lost the race to a concurrent materialization
                result.skipped += 1
                continue
            result.created += 1

            conflicts = self.conflict_checker.check_occurrence_window(
                occurrence.room_id,
                occurrence.instructor_ids,
                day,
                occurrence.start_time,
                occurrence.end_time,
                exclude_occurrence_id=occurrence.id,
            )
            if conflicts.room_conflict is not None:
                result.conflicts.append(conflicts.room_conflict)
            result.conflicts.extend(conflicts.instructor_conflicts)

        return result

    def _expand(self, draft: RecurringSlotDraft) -> List[date]:
        reference = draft.week_reference
        if reference is None and draft.week_parity is not None:
            reference = self.calendar_service.get_calendar(draft.calendar_id).week_a_reference
        return expand_slot(draft, reference)

    def _as_draft(self, slot: SlotOrDraft) -> RecurringSlotDraft:
        return self.conflict_checker.as_draft(slot)
