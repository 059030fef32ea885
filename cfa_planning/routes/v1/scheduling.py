"""
Scheduling routes - API v1

Recurring slot materialization and conflict endpoints under
/api/v1/scheduling. All business logic delegated to the services.

Endpoints:
    GET  /slots/{slot_id}/preview       → Per-date breakdown of a materialization
    POST /slots/{slot_id}/materialize   → Materialize (or force-regenerate) a slot
    POST /slots/validate                → Conflicts of an unsaved slot draft
    GET  /slots/{slot_id}/conflicts     → Conflicts of a persisted slot
    POST /slots/estimate                → Occurrence count of a slot draft
    GET  /slots/{slot_id}/estimate      → Occurrence count of a persisted slot
    GET  /holidays/{year}               → National public holidays of a year
    POST /occurrences/{occurrence_id}/status → Change an occurrence status
"""

import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from ...core.exceptions import DomainException
from ...database import get_db
from ...schemas.scheduling import (
    HolidayEntry,
    MaterializationPreview,
    MaterializationResult,
    OccurrenceCountEstimate,
    OccurrenceResponse,
    RecurringSlotDraft,
    SlotValidationResult,
    StatusChangeRequest,
)
from ...services.calendar_service import CalendarService
from ...services.occurrence_service import OccurrenceService
from ...services.scheduling_service import SchedulingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["scheduling-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    return SchedulingService(db)


def get_calendar_service(db: Session = Depends(get_db)) -> CalendarService:
    return CalendarService(db)


def get_occurrence_service(db: Session = Depends(get_db)) -> OccurrenceService:
    return OccurrenceService(db)


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# Static routes first (before dynamic routes with path parameters)


@router.post("/slots/validate", response_model=SlotValidationResult)
def validate_slot_draft(
    draft: RecurringSlotDraft,
    service: SchedulingService = Depends(get_scheduling_service),
) -> SlotValidationResult:
    """Report room and instructor conflicts of a slot before it is saved."""
    try:
        return service.validate_slot(draft)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/slots/estimate", response_model=OccurrenceCountEstimate)
def estimate_slot_draft(
    draft: RecurringSlotDraft,
    service: SchedulingService = Depends(get_scheduling_service),
) -> OccurrenceCountEstimate:
    try:
        return OccurrenceCountEstimate(count=service.estimate_occurrence_count(draft))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/holidays/{year}", response_model=List[HolidayEntry])
def list_public_holidays(
    year: int = Path(..., ge=1583, le=9999, description="Gregorian year"),
    service: CalendarService = Depends(get_calendar_service),
) -> List[HolidayEntry]:
    return service.list_public_holidays(year)


@router.get("/slots/{slot_id}/preview", response_model=MaterializationPreview)
def preview_materialization(
    slot_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Recurring slot ULID"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> MaterializationPreview:
    """Show which dates would be created, are closed or already exist."""
    try:
        return service.preview_materialization(slot_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/slots/{slot_id}/materialize", response_model=MaterializationResult)
def materialize_slot(
    slot_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Recurring slot ULID"),
    force: bool = Query(False, description="Delete unmodified occurrences first"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> MaterializationResult:
    try:
        return service.materialize(slot_id, force=force)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/slots/{slot_id}/conflicts", response_model=SlotValidationResult)
def get_slot_conflicts(
    slot_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Recurring slot ULID"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SlotValidationResult:
    try:
        return service.validate_slot(slot_id)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/slots/{slot_id}/estimate", response_model=OccurrenceCountEstimate)
def estimate_slot(
    slot_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Recurring slot ULID"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> OccurrenceCountEstimate:
    try:
        return OccurrenceCountEstimate(count=service.estimate_occurrence_count(slot_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/occurrences/{occurrence_id}/status", response_model=OccurrenceResponse)
def change_occurrence_status(
    payload: StatusChangeRequest,
    occurrence_id: str = Path(..., pattern=ULID_PATH_PATTERN, description="Occurrence ULID"),
    service: OccurrenceService = Depends(get_occurrence_service),
) -> OccurrenceResponse:
    """Apply a status transition; disallowed transitions return 422."""
    try:
        occurrence = service.change_status(occurrence_id, payload.status)
        return OccurrenceResponse.model_validate(occurrence)
    except DomainException as e:
        handle_domain_exception(e)
