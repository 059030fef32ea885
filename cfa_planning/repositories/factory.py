# cfa_planning/repositories/factory.py
"""
Single place where services obtain their repositories.

Services accept an optional repository in their constructor (tests pass
their own) and fall back to these factories otherwise.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

if TYPE_CHECKING:
    from .calendar_repository import CalendarRepository
    from .occurrence_repository import OccurrenceRepository
    from .recurring_slot_repository import RecurringSlotRepository


class RepositoryFactory:
    """Static constructors for every planning repository."""

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Id-lookup repository for rooms, instructors and subject offerings."""
        return BaseRepository(db, model)

    @staticmethod
    def create_calendar_repository(db: Session) -> "CalendarRepository":
        """Create repository for calendars and closed days."""
        from .calendar_repository import CalendarRepository

        return CalendarRepository(db)

    @staticmethod
    def create_recurring_slot_repository(db: Session) -> "RecurringSlotRepository":
        """Create repository for recurring slot queries."""
        from .recurring_slot_repository import RecurringSlotRepository

        return RecurringSlotRepository(db)

    @staticmethod
    def create_occurrence_repository(db: Session) -> "OccurrenceRepository":
        """Create repository for occurrence queries."""
        from .occurrence_repository import OccurrenceRepository

        return OccurrenceRepository(db)
