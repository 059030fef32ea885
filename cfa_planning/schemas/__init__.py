"""Pydantic schemas for the planning core."""

from .base import StandardizedModel, StrictModel
from .scheduling import (
    HolidayEntry,
    HolidayImportResult,
    MaterializationPreview,
    MaterializationResult,
    OccurrenceConflict,
    OccurrenceCountEstimate,
    OccurrenceCreate,
    OccurrenceResponse,
    OccurrenceUpdate,
    OccurrenceValidationResult,
    PreviewDate,
    PreviewOutcome,
    RecurringSlotDraft,
    SlotConflict,
    SlotCreationResult,
    SlotValidationResult,
    StatusChangeRequest,
)

__all__ = [
    "HolidayEntry",
    "HolidayImportResult",
    "MaterializationPreview",
    "MaterializationResult",
    "OccurrenceConflict",
    "OccurrenceCountEstimate",
    "OccurrenceCreate",
    "OccurrenceResponse",
    "OccurrenceUpdate",
    "OccurrenceValidationResult",
    "PreviewDate",
    "PreviewOutcome",
    "RecurringSlotDraft",
    "SlotConflict",
    "SlotCreationResult",
    "SlotValidationResult",
    "StandardizedModel",
    "StrictModel",
]
