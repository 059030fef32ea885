# cfa_planning/repositories/recurring_slot_repository.py
"""
RecurringSlot Repository

Data access for recurring slots, including the candidate queries used by
the conflict checker. Candidate queries narrow by room/instructor, day of
week, time window, date range and (when the checked slot has a parity)
week parity; the final parity compatibility filter is business logic and
lives in the ConflictChecker service.
"""

from datetime import date, time
import logging
from typing import List, Optional, cast

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.instructor import Instructor
from ..models.recurring_slot import RecurringSlot, WeekParity
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class RecurringSlotRepository(BaseRepository[RecurringSlot]):
    """Repository for recurring slot queries."""

    def __init__(self, db: Session):
        super().__init__(db, RecurringSlot)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            selectinload(RecurringSlot.instructors),
            selectinload(RecurringSlot.room),
        )

    def get_for_update(self, slot_id: str) -> Optional[RecurringSlot]:
        """
        Load a slot and lock its row until the end of the transaction.

        Serializes materializations of the same slot on backends that
        support row locks. SQLite has none; there every transaction already
        holds the database write lock from BEGIN IMMEDIATE onwards.
        """
        try:
            query = self.db.query(RecurringSlot).filter(RecurringSlot.id == slot_id)
            if self.dialect_name != "sqlite":
                query = query.with_for_update()
            return cast(Optional[RecurringSlot], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking recurring slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock recurring slot: {str(e)}")

    def find_active_by_room(self, room_id: str) -> List[RecurringSlot]:
        """Active slots using a room, ordered by weekday and start time."""
        query = (
            self.db.query(RecurringSlot)
            .filter(RecurringSlot.room_id == room_id, RecurringSlot.is_active.is_(True))
            .order_by(RecurringSlot.day_of_week, RecurringSlot.start_time)
        )
        return self._execute_query(query)

    # Conflict candidate queries

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
        Active slots in the same room whose day, time window and date range
        overlap the given ones.

        Args:
            room_id: The room to check
            day_of_week: ISO weekday (1=Monday)
            start_time: Window start (inclusive)
            end_time: Window end (exclusive)
            range_start: First date of the recurrence window
            range_end: Last date of the recurrence window
            parity: Week parity of the slot being validated
            exclude_slot_id: Slot to leave out (edit-in-place checks)

        Returns:
            Candidate slots ordered by start time
        """
        try:
            query = self._overlap_query(
                day_of_week, start_time, end_time, range_start, range_end, parity, exclude_slot_id
            ).filter(RecurringSlot.room_id == room_id)
            return cast(List[RecurringSlot], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting room conflicts: {str(e)}")
            raise RepositoryException(f"Failed to get room conflicts: {str(e)}")

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
        """Same as find_room_conflicts, scoped to slots taught by an instructor."""
        try:
            query = self._overlap_query(
                day_of_week, start_time, end_time, range_start, range_end, parity, exclude_slot_id
            ).filter(RecurringSlot.instructors.any(Instructor.id == instructor_id))
            return cast(List[RecurringSlot], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting instructor conflicts: {str(e)}")
            raise RepositoryException(f"Failed to get instructor conflicts: {str(e)}")

    def _overlap_query(
        self,
        day_of_week: int,
        start_time: time,
        end_time: time,
        range_start: date,
        range_end: date,
        parity: Optional[WeekParity],
        exclude_slot_id: Optional[str],
    ) -> Query:
        query = (
            self.db.query(RecurringSlot)
            .options(selectinload(RecurringSlot.instructors))
            .filter(
                RecurringSlot.is_active.is_(True),
                RecurringSlot.day_of_week == day_of_week,
                # Half-open time windows: touching endpoints do not overlap
                RecurringSlot.start_time < end_time,
                RecurringSlot.end_time > start_time,
                # Closed date ranges
                RecurringSlot.recurrence_start <= range_end,
                RecurringSlot.recurrence_end >= range_start,
            )
            .order_by(RecurringSlot.start_time)
        )

        if exclude_slot_id:
            query = query.filter(RecurringSlot.id != exclude_slot_id)

        if parity is not None:
            query = query.filter(
                or_(RecurringSlot.week_parity.is_(None), RecurringSlot.week_parity == parity.value)
            )

        return query
