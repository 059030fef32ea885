"""
Scheduling schemas: recurring slot drafts, occurrence payloads, and the
result structures returned by validation, preview and materialization.

Conflicts are returned as data (SlotValidationResult,
OccurrenceValidationResult), never raised.
"""

import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.config import settings
from ..models.occurrence import OccurrenceStatus
from ..models.recurring_slot import RecurringSlot, WeekParity
from .base import StandardizedModel, StrictModel

# Type aliases for clarity
DateType = datetime.date
TimeType = datetime.time


def ensure_on_grid(value: TimeType) -> TimeType:
    """Reject times that are not on the configured minute grid."""
    grid = settings.slot_time_grid_minutes
    if value.second or value.microsecond or value.minute % grid:
        raise ValueError(f"Time must be on a {grid}-minute boundary")
    return value


def _unique_ids(ids: List[str]) -> List[str]:
    seen = set()
    unique = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


# Requests


class RecurringSlotDraft(StrictModel):
    """
    Recurring slot definition, persisted or not.

    ``id`` is set when the draft describes an existing slot being edited so
    the slot does not conflict with itself.
    """

    id: Optional[str] = None
    calendar_id: str
    room_id: str
    instructor_ids: List[str] = Field(..., min_length=1)
    subject_offering_id: str
    day_of_week: int = Field(..., ge=1, le=7, description="ISO weekday, 1=Monday")
    start_time: TimeType
    end_time: TimeType
    recurrence_start: DateType
    recurrence_end: DateType
    week_parity: Optional[WeekParity] = None
    week_reference: Optional[DateType] = None
    is_active: bool = True
    comment: Optional[str] = None

    @field_validator("instructor_ids")
    @classmethod
    def validate_instructors(cls, v: List[str]) -> List[str]:
        unique = _unique_ids(v)
        if not unique:
            raise ValueError("At least one instructor is required")
        return unique

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_grid(cls, v: TimeType) -> TimeType:
        return ensure_on_grid(v)

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: TimeType, info: Any) -> TimeType:
        """Ensure end time is after start time."""
        if (
            isinstance(getattr(info, "data", None), dict)
            and info.data.get("start_time")
            and v <= info.data["start_time"]
        ):
            raise ValueError("End time must be after start time")
        return v

    @field_validator("recurrence_end")
    @classmethod
    def validate_date_order(cls, v: DateType, info: Any) -> DateType:
        if (
            isinstance(getattr(info, "data", None), dict)
            and info.data.get("recurrence_start")
            and v <= info.data["recurrence_start"]
        ):
            raise ValueError("Recurrence end must be after recurrence start")
        return v

    @classmethod
    def from_slot(cls, slot: RecurringSlot) -> "RecurringSlotDraft":
        """Describe a persisted slot as a draft."""
        return cls(
            id=slot.id,
            calendar_id=slot.calendar_id,
            room_id=slot.room_id,
            instructor_ids=slot.instructor_ids,
            subject_offering_id=slot.subject_offering_id,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
            recurrence_start=slot.recurrence_start,
            recurrence_end=slot.recurrence_end,
            week_parity=slot.parity,
            week_reference=slot.week_reference,
            is_active=slot.is_active,
            comment=slot.comment,
        )


class OccurrenceCreate(StrictModel):
    """Manually created (template-less) occurrence."""

    room_id: str
    instructor_ids: List[str] = Field(..., min_length=1)
    subject_offering_id: str
    session_date: DateType
    start_time: TimeType
    end_time: TimeType
    comment: Optional[str] = None

    @field_validator("instructor_ids")
    @classmethod
    def validate_instructors(cls, v: List[str]) -> List[str]:
        return _unique_ids(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_grid(cls, v: TimeType) -> TimeType:
        return ensure_on_grid(v)

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: TimeType, info: Any) -> TimeType:
        """Ensure end time is after start time."""
        if (
            isinstance(getattr(info, "data", None), dict)
            and info.data.get("start_time")
            and v <= info.data["start_time"]
        ):
            raise ValueError("End time must be after start time")
        return v


class OccurrenceUpdate(StrictModel):
    """
    Partial edit of an occurrence's denormalized fields.

    Time ordering against the stored values is checked by the service.
    """

    room_id: Optional[str] = None
    instructor_ids: Optional[List[str]] = None
    subject_offering_id: Optional[str] = None
    session_date: Optional[DateType] = None
    start_time: Optional[TimeType] = None
    end_time: Optional[TimeType] = None
    comment: Optional[str] = None

    @field_validator("instructor_ids")
    @classmethod
    def validate_instructors(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        if not v:
            raise ValueError("At least one instructor is required")
        return _unique_ids(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_grid(cls, v: Optional[TimeType]) -> Optional[TimeType]:
        return ensure_on_grid(v) if v is not None else None

    @model_validator(mode="after")
    def validate_time_order(self) -> "OccurrenceUpdate":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class StatusChangeRequest(StrictModel):
    status: OccurrenceStatus


# Conflicts


class SlotConflict(StandardizedModel):
    """A recurring slot colliding with the slot under validation."""

    slot_id: str
    room_id: str
    instructor_id: Optional[str] = None
    day_of_week: int
    start_time: TimeType
    end_time: TimeType
    recurrence_start: DateType
    recurrence_end: DateType
    week_parity: Optional[WeekParity] = None
    message: str


class SlotValidationResult(StandardizedModel):
    room_conflicts: List[SlotConflict] = Field(default_factory=list)
    instructor_conflicts: List[SlotConflict] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.room_conflicts or self.instructor_conflicts)

    @property
    def count(self) -> int:
        return len(self.room_conflicts) + len(self.instructor_conflicts)

    @property
    def messages(self) -> List[str]:
        return [c.message for c in self.room_conflicts] + [
            c.message for c in self.instructor_conflicts
        ]


class OccurrenceConflict(StandardizedModel):
    """An existing occurrence colliding on one concrete date."""

    occurrence_id: str
    session_date: DateType
    start_time: TimeType
    end_time: TimeType
    room_id: str
    instructor_id: Optional[str] = None
    status: OccurrenceStatus


class OccurrenceValidationResult(StandardizedModel):
    room_conflict: Optional[OccurrenceConflict] = None
    instructor_conflicts: List[OccurrenceConflict] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return self.room_conflict is not None or bool(self.instructor_conflicts)


# Materialization


class MaterializationResult(StandardizedModel):
    """Tally of one materialization run."""

    created: int = 0
    skipped: int = 0
    deleted: int = 0
    conflicts: List[OccurrenceConflict] = Field(default_factory=list)


class PreviewOutcome(str, Enum):
    CREATE = "create"
    CLOSED = "closed"
    EXISTING = "existing"


class PreviewDate(StandardizedModel):
    date: DateType
    outcome: PreviewOutcome
    label: Optional[str] = None  # closed day label


class MaterializationPreview(StandardizedModel):
    """Per-date breakdown of what a materialization would do."""

    dates: List[PreviewDate] = Field(default_factory=list)
    to_create: int = 0
    closed: int = 0
    existing: int = 0

    @property
    def total(self) -> int:
        return len(self.dates)


class OccurrenceCountEstimate(StandardizedModel):
    count: int


# Slot lifecycle


class SlotCreationResult(StandardizedModel):
    slot_id: str
    warnings: List[str] = Field(default_factory=list)
    conflicts: SlotValidationResult = Field(default_factory=SlotValidationResult)


class OccurrenceResponse(StandardizedModel):
    id: str
    recurring_slot_id: Optional[str] = None
    room_id: str
    subject_offering_id: str
    instructor_ids: List[str] = Field(default_factory=list)
    session_date: DateType
    start_time: TimeType
    end_time: TimeType
    status: OccurrenceStatus
    manually_modified: bool
    comment: Optional[str] = None


# Calendar


class HolidayEntry(StandardizedModel):
    date: DateType
    label: str


class HolidayImportResult(StandardizedModel):
    created: int = 0
    skipped: int = 0
