# cfa_planning/repositories/occurrence_repository.py
"""
Occurrence Repository

Data access for concrete dated occurrences: per-slot lookups used by the
materializer and single-date conflict queries used by the conflict checker.
Cancelled occurrences never take part in conflict queries.
"""

from datetime import date, time
import logging
from typing import List, Optional, Set, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..models.instructor import Instructor
from ..models.occurrence import Occurrence, OccurrenceStatus
from ..models.recurring_slot import RecurringSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class OccurrenceRepository(BaseRepository[Occurrence]):
    """Repository for occurrence queries."""

    def __init__(self, db: Session):
        super().__init__(db, Occurrence)

    # Per-slot queries

    def find_by_recurring_slot(self, slot_id: str) -> List[Occurrence]:
        """All occurrences generated from a slot, ordered by date."""
        query = (
            self.db.query(Occurrence)
            .filter(Occurrence.recurring_slot_id == slot_id)
            .order_by(Occurrence.session_date)
        )
        return self._execute_query(query)

    def get_dates_for_slot(self, slot_id: str) -> Set[date]:
        """Dates that already carry an occurrence of this slot."""
        try:
            rows = (
                self.db.query(Occurrence.session_date)
                .filter(Occurrence.recurring_slot_id == slot_id)
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting occurrence dates: {str(e)}")
            raise RepositoryException(f"Failed to get occurrence dates: {str(e)}")

    def delete_unmodified_for_slot(self, slot_id: str) -> int:
        """
        Delete every occurrence of a slot that was never edited by a user.

        Goes through the ORM so instructor association rows follow.
        Does NOT commit.

        Returns:
            Number of deleted occurrences
        """
        try:
            occurrences = (
                self.db.query(Occurrence)
                .filter(
                    Occurrence.recurring_slot_id == slot_id,
                    Occurrence.manually_modified.is_(False),
                )
                .all()
            )
            for occurrence in occurrences:
                self.db.delete(occurrence)
            self.db.flush()
            return len(occurrences)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting occurrences of slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete occurrences: {str(e)}")

    def detach_modified_for_slot(self, slot_id: str) -> int:
        """Clear the slot back-reference of manually modified occurrences."""
        try:
            count = (
                self.db.query(Occurrence)
                .filter(
                    Occurrence.recurring_slot_id == slot_id,
                    Occurrence.manually_modified.is_(True),
                )
                .update({Occurrence.recurring_slot_id: None}, synchronize_session="fetch")
            )
            self.db.flush()
            return cast(int, count)
        except SQLAlchemyError as e:
            self.logger.error(f"Error detaching occurrences of slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to detach occurrences: {str(e)}")

    def create_from_slot(self, slot: RecurringSlot, session_date: date) -> Optional[Occurrence]:
        """
        Snapshot a slot into a new planned occurrence on ``session_date``.

        Runs inside a SAVEPOINT: if a concurrent materialization already
        created the (slot, date) occurrence, the unique constraint fires, the
        savepoint is rolled back and None is returned.
        """
        try:
            with self.db.begin_nested():
                occurrence = Occurrence(
                    recurring_slot_id=slot.id,
                    room_id=slot.room_id,
                    subject_offering_id=slot.subject_offering_id,
                    session_date=session_date,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    status=OccurrenceStatus.PLANNED.value,
                    manually_modified=False,
                )
                occurrence.instructors = list(slot.instructors)
                self.db.add(occurrence)
                self.db.flush()
            return occurrence
        except IntegrityError:
            self.logger.info(
                f"Occurrence for slot {slot.id} on {session_date} already exists, skipping"
            )
            return None

    # Single-date conflict queries

    def find_room_conflict(
        self,
        room_id: str,
        session_date: date,
        start_time: time,
        end_time: time,
        exclude_occurrence_id: Optional[str] = None,
    ) -> Optional[Occurrence]:
        """
        First non-cancelled occurrence in a room overlapping the window.

        Args:
            room_id: The room to check
            session_date: The date to check
            start_time: Window start (inclusive)
            end_time: Window end (exclusive)
            exclude_occurrence_id: Occurrence to leave out (edit-in-place checks)
        """
        try:
            query = self._overlap_query(
                session_date, start_time, end_time, exclude_occurrence_id
            ).filter(Occurrence.room_id == room_id)
            return cast(Optional[Occurrence], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking room conflict: {str(e)}")
            raise RepositoryException(f"Failed to check room conflict: {str(e)}")

    def find_instructor_conflict(
        self,
        instructor_id: str,
        session_date: date,
        start_time: time,
        end_time: time,
        exclude_occurrence_id: Optional[str] = None,
    ) -> Optional[Occurrence]:
        """First non-cancelled occurrence taught by the instructor overlapping the window."""
        try:
            query = self._overlap_query(
                session_date, start_time, end_time, exclude_occurrence_id
            ).filter(Occurrence.instructors.any(Instructor.id == instructor_id))
            return cast(Optional[Occurrence], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking instructor conflict: {str(e)}")
            raise RepositoryException(f"Failed to check instructor conflict: {str(e)}")

    def _overlap_query(
        self,
        session_date: date,
        start_time: time,
        end_time: time,
        exclude_occurrence_id: Optional[str],
    ) -> Query:
        query = (
            self.db.query(Occurrence)
            .filter(
                Occurrence.session_date == session_date,
                Occurrence.status != OccurrenceStatus.CANCELLED.value,
                Occurrence.start_time < end_time,
                Occurrence.end_time > start_time,
            )
            .order_by(Occurrence.start_time)
        )
        if exclude_occurrence_id:
            query = query.filter(Occurrence.id != exclude_occurrence_id)
        return query
