"""
Database models for the planning core.

The models are organized by functionality:
- Referenced entities (rooms, instructors, subject offerings)
- Academic calendar and closed days
- Recurring slots (weekly templates)
- Occurrences (concrete dated sessions)
"""

from .calendar import AcademicCalendar, ClosedDay, ClosureType
from .instructor import Instructor
from .occurrence import (
    ALLOWED_STATUS_TRANSITIONS,
    Occurrence,
    OccurrenceStatus,
    occurrence_instructors,
)
from .recurring_slot import RecurringSlot, WeekParity, recurring_slot_instructors
from .room import Room
from .subject_offering import SubjectOffering

__all__ = [
    "ALLOWED_STATUS_TRANSITIONS",
    "AcademicCalendar",
    "ClosedDay",
    "ClosureType",
    "Instructor",
    "Occurrence",
    "OccurrenceStatus",
    "RecurringSlot",
    "Room",
    "SubjectOffering",
    "WeekParity",
    "occurrence_instructors",
    "recurring_slot_instructors",
]
