# cfa_planning/services/scheduling_service.py
"""
Scheduling facade.

The four operations request handlers call: preview, materialize, validate
and estimate. Each accepts a persisted slot id; validate and estimate also
accept an unsaved RecurringSlotDraft.
"""

import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from ..schemas.scheduling import (
    MaterializationPreview,
    MaterializationResult,
    RecurringSlotDraft,
    SlotValidationResult,
)
from .base import BaseService
from .conflict_checker import ConflictChecker
from .occurrence_materializer import OccurrenceMaterializer

logger = logging.getLogger(__name__)


class SchedulingService(BaseService):
    def __init__(self, db: Session, materializer: Optional[OccurrenceMaterializer] = None):
        super().__init__(db)
        self.materializer = materializer or OccurrenceMaterializer(db)
        self.conflict_checker: ConflictChecker = self.materializer.conflict_checker

    def preview_materialization(self, slot_id: str) -> MaterializationPreview:
        return self.materializer.preview(slot_id)

    def materialize(self, slot_id: str, force: bool = False) -> MaterializationResult:
        return self.materializer.materialize(slot_id, force_regenerate=force)

    def validate_slot(self, slot: Union[str, RecurringSlotDraft]) -> SlotValidationResult:
        return self.conflict_checker.validate_slot(slot)

    def estimate_occurrence_count(self, slot: Union[str, RecurringSlotDraft]) -> int:
        return self.materializer.estimate_count(slot)
