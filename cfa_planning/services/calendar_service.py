# cfa_planning/services/calendar_service.py
"""
Calendar/Closure Provider.

Looks up the non-teaching dates of an academic calendar and imports the
national public holidays into it.
"""

from datetime import date
import logging
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.calendar import AcademicCalendar, ClosureType
from ..repositories.calendar_repository import CalendarRepository
from ..repositories.factory import RepositoryFactory
from ..schemas.scheduling import HolidayEntry, HolidayImportResult
from .base import BaseService
from .holiday_calendar import get_public_holidays, get_public_holidays_between

logger = logging.getLogger(__name__)


class CalendarService(BaseService):
    """Closed-day lookups and public holiday import."""

    def __init__(self, db: Session, repository: Optional[CalendarRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_calendar_repository(db)

    def get_calendar(self, calendar_id: str) -> AcademicCalendar:
        calendar = self.repository.get_by_id(calendar_id, load_relationships=False)
        if calendar is None:
            raise NotFoundException(
                f"Academic calendar {calendar_id} not found",
                code="CALENDAR_NOT_FOUND",
                details={"calendar_id": calendar_id},
            )
        return calendar

    @BaseService.measure_operation("closed_dates_in_range")
    def closed_dates_in_range(self, calendar_id: str, start: date, end: date) -> Set[date]:
        """
        Closed dates of a calendar within [start, end].

        An empty set is a normal result (no closures, or an empty range).
        """
        if end < start:
            return set()
        return {
            closed_day.date
            for closed_day in self.repository.find_closed_days_in_range(calendar_id, start, end)
        }

    def closed_day_labels(self, calendar_id: str, start: date, end: date) -> Dict[date, str]:
        """Closed dates within [start, end] mapped to their labels."""
        if end < start:
            return {}
        return {
            closed_day.date: closed_day.label
            for closed_day in self.repository.find_closed_days_in_range(calendar_id, start, end)
        }

    def list_public_holidays(self, year: int) -> List[HolidayEntry]:
        return [HolidayEntry(date=day, label=label) for day, label in get_public_holidays(year)]

    @BaseService.measure_operation("import_public_holidays")
    def import_public_holidays(self, calendar_id: str) -> HolidayImportResult:
        """
        Create a public-holiday closed day for every national holiday within
        the calendar span. Dates that already carry a closed day (of any
        type) are left alone.

        Raises:
            NotFoundException: If the calendar does not exist
        """
        calendar = self.get_calendar(calendar_id)
        result = HolidayImportResult()

        with self.transaction():
            existing = self.repository.get_closed_dates(calendar_id)
            for day, label in get_public_holidays_between(calendar.start_date, calendar.end_date):
                if day in existing:
                    result.skipped += 1
                    continue
                self.repository.add_closed_day(
                    calendar_id, day, ClosureType.PUBLIC_HOLIDAY.value, label
                )
                existing.add(day)
                result.created += 1

        self.logger.info(
            f"Imported public holidays into calendar {calendar.code}: "
            f"{result.created} created, {result.skipped} skipped"
        )
        return result
