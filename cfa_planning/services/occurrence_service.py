# cfa_planning/services/occurrence_service.py
"""
Occurrence lifecycle: manual creation, edits and status changes.

Edits to the denormalized fields of a materialized occurrence set its
manually_modified flag, which shields it from regeneration. Status changes
follow OccurrenceStatus.allowed_transitions; anything else is rejected
before it is applied.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import (
    ConflictException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from ..models.occurrence import Occurrence, OccurrenceStatus
from ..repositories.factory import RepositoryFactory
from ..repositories.occurrence_repository import OccurrenceRepository
from ..schemas.scheduling import OccurrenceCreate, OccurrenceUpdate, OccurrenceValidationResult
from .base import BaseService
from .conflict_checker import ConflictChecker
from .reference_service import ReferenceService

logger = logging.getLogger(__name__)

# Fields copied from the slot at materialization time
DENORMALIZED_FIELDS = (
    "room_id",
    "subject_offering_id",
    "session_date",
    "start_time",
    "end_time",
)


class OccurrenceService(BaseService):
    """Creates and edits individual occurrences."""

    def __init__(self, db: Session, repository: Optional[OccurrenceRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_occurrence_repository(db)
        self.references = ReferenceService(db)
        self.conflict_checker = ConflictChecker(
            db, occurrence_repository=self.repository, references=self.references
        )

    def get_occurrence(self, occurrence_id: str) -> Occurrence:
        occurrence = self.repository.get_by_id(occurrence_id)
        if occurrence is None:
            raise NotFoundException(
                f"Occurrence {occurrence_id} not found",
                code="OCCURRENCE_NOT_FOUND",
                details={"occurrence_id": occurrence_id},
            )
        return occurrence

    @BaseService.measure_operation("create_manual_occurrence")
    def create_manual(
        self, data: OccurrenceCreate
    ) -> Tuple[Occurrence, OccurrenceValidationResult]:
        """
        Create a template-less occurrence.

        Returns:
            The occurrence and the conflicts it has with other occurrences,
            checked in the same transaction as the insert
        """
        room = self.references.get_room(data.room_id)
        instructors = self.references.get_instructors(data.instructor_ids)
        offering = self.references.get_subject_offering(data.subject_offering_id)

        with self.transaction():
            occurrence = self.repository.create(
                recurring_slot_id=None,
                room_id=room.id,
                subject_offering_id=offering.id,
                session_date=data.session_date,
                start_time=data.start_time,
                end_time=data.end_time,
                status=OccurrenceStatus.PLANNED.value,
                manually_modified=False,
                comment=data.comment,
            )
            occurrence.instructors = instructors
            self.db.flush()
            conflicts = self.conflict_checker.validate_occurrence(occurrence)

        self.logger.info(f"Created manual occurrence {occurrence.id} on {occurrence.session_date}")
        return occurrence, conflicts

    @BaseService.measure_operation("update_occurrence")
    def update_occurrence(
        self, occurrence_id: str, data: OccurrenceUpdate
    ) -> Tuple[Occurrence, OccurrenceValidationResult]:
        """
        Edit an occurrence.

        The first effective change to a denormalized field marks the
        occurrence as manually modified. A comment-only edit does not.

        Raises:
            ValidationException: If the resulting time window is inverted
            ConflictException: If the slot already has an occurrence on the new date
        """
        occurrence = self.get_occurrence(occurrence_id)
        changes = data.model_dump(exclude_unset=True)

        # An explicit null keeps the stored value
        start_time = changes.get("start_time") or occurrence.start_time
        end_time = changes.get("end_time") or occurrence.end_time
        if end_time <= start_time:
            raise ValidationException(
                "End time must be after start time",
                code="INVALID_TIME_RANGE",
                details={"start_time": str(start_time), "end_time": str(end_time)},
            )

        new_date = changes.get("session_date")
        if (
            new_date is not None
            and new_date != occurrence.session_date
            and occurrence.recurring_slot_id
            and new_date in self.repository.get_dates_for_slot(occurrence.recurring_slot_id)
        ):
            raise ConflictException(
                f"Slot already has an occurrence on {new_date}",
                code="OCCURRENCE_DATE_TAKEN",
                details={"session_date": new_date.isoformat()},
            )

        if "room_id" in changes and changes["room_id"] is not None:
            self.references.get_room(changes["room_id"])
        if "subject_offering_id" in changes and changes["subject_offering_id"] is not None:
            self.references.get_subject_offering(changes["subject_offering_id"])

        with self.transaction():
            modified = False
            for field in DENORMALIZED_FIELDS:
                if field in changes and changes[field] is not None:
                    if getattr(occurrence, field) != changes[field]:
                        setattr(occurrence, field, changes[field])
                        modified = True

            instructor_ids = changes.get("instructor_ids")
            if instructor_ids is not None and set(instructor_ids) != set(occurrence.instructor_ids):
                occurrence.instructors = self.references.get_instructors(instructor_ids)
                modified = True

            if "comment" in changes:
                occurrence.comment = changes["comment"]

            if modified and not occurrence.manually_modified:
                occurrence.manually_modified = True
                self.logger.info(f"Occurrence {occurrence_id} marked as manually modified")
            self.db.flush()
            conflicts = self.conflict_checker.validate_occurrence(occurrence)

        return occurrence, conflicts

    @BaseService.measure_operation("change_occurrence_status")
    def change_status(self, occurrence_id: str, target: OccurrenceStatus) -> Occurrence:
        """
        Move an occurrence to another status.

        Status history is user input, so a materialized occurrence whose
        status changes is also flagged as manually modified.

        Raises:
            InvalidStatusTransitionException: If the transition is not allowed
        """
        occurrence = self.get_occurrence(occurrence_id)
        current = occurrence.occurrence_status
        target = OccurrenceStatus(target)

        if not current.can_transition_to(target):
            raise InvalidStatusTransitionException(current.value, target.value)

        with self.transaction():
            occurrence.status = target.value
            if occurrence.recurring_slot_id is not None:
                occurrence.manually_modified = True

        self.logger.info(
            f"Occurrence {occurrence_id} status changed from {current.value} to {target.value}"
        )
        return occurrence
