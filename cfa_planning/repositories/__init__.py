"""
Repository Pattern Implementation for the planning core

Key Components:
- BaseRepository: Id lookups and inserts shared by every repository
- RepositoryFactory: Factory for creating repository instances
- CalendarRepository: Calendars and closed days
- RecurringSlotRepository: Recurring slots and slot-level conflict candidates
- OccurrenceRepository: Occurrences and date-level conflict candidates

Usage:
    from cfa_planning.repositories import RepositoryFactory

    repository = RepositoryFactory.create_occurrence_repository(db)
    existing = repository.get_dates_for_slot(slot_id)
"""

from .base_repository import BaseRepository, IRepository
from .calendar_repository import CalendarRepository
from .factory import RepositoryFactory
from .occurrence_repository import OccurrenceRepository
from .recurring_slot_repository import RecurringSlotRepository

__all__ = [
    "BaseRepository",
    "CalendarRepository",
    "IRepository",
    "OccurrenceRepository",
    "RecurringSlotRepository",
    "RepositoryFactory",
]
