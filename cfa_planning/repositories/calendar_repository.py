# cfa_planning/repositories/calendar_repository.py
"""
Calendar Repository

Data access for academic calendars and their closed days. Closed days are
always looked up for an explicit calendar id; there is no implicit
"active calendar" resolution on the scheduling paths.
"""

from datetime import date
import logging
from typing import List, Set, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.calendar import AcademicCalendar, ClosedDay
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CalendarRepository(BaseRepository[AcademicCalendar]):
    """Repository for academic calendars and closed days."""

    def __init__(self, db: Session):
        super().__init__(db, AcademicCalendar)

    # Closed day queries

    def find_closed_days_in_range(
        self, calendar_id: str, start: date, end: date
    ) -> List[ClosedDay]:
        """
        Get the closed days of a calendar within [start, end].

        Args:
            calendar_id: The calendar to look in
            start: First date of the range (inclusive)
            end: Last date of the range (inclusive)

        Returns:
            Closed days ordered by date
        """
        try:
            return cast(
                List[ClosedDay],
                self.db.query(ClosedDay)
                .filter(
                    ClosedDay.calendar_id == calendar_id,
                    ClosedDay.date >= start,
                    ClosedDay.date <= end,
                )
                .order_by(ClosedDay.date)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting closed days: {str(e)}")
            raise RepositoryException(f"Failed to get closed days: {str(e)}")

    def get_closed_dates(self, calendar_id: str) -> Set[date]:
        """Every closed date already recorded for a calendar."""
        try:
            rows = self.db.query(ClosedDay.date).filter(ClosedDay.calendar_id == calendar_id).all()
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting closed dates: {str(e)}")
            raise RepositoryException(f"Failed to get closed dates: {str(e)}")

    def add_closed_day(
        self, calendar_id: str, day: date, closure_type: str, label: str
    ) -> ClosedDay:
        """Create a closed day. Does NOT commit."""
        try:
            closed_day = ClosedDay(
                calendar_id=calendar_id, date=day, closure_type=closure_type, label=label
            )
            self.db.add(closed_day)
            self.db.flush()
            return closed_day
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating closed day {day}: {str(e)}")
            raise RepositoryException(f"Failed to create closed day: {str(e)}")
