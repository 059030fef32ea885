"""
Service layer for the planning core.

Business logic lives here; repositories handle data access and the routes
only translate HTTP to service calls.
"""

from .base import BaseService
from .calendar_service import CalendarService
from .conflict_checker import ConflictChecker, parities_compatible
from .occurrence_materializer import OccurrenceMaterializer
from .occurrence_service import OccurrenceService
from .reference_service import ReferenceService
from .scheduling_service import SchedulingService
from .slot_service import SlotService

__all__ = [
    "BaseService",
    "CalendarService",
    "ConflictChecker",
    "OccurrenceMaterializer",
    "OccurrenceService",
    "ReferenceService",
    "SchedulingService",
    "SlotService",
    "parities_compatible",
]
