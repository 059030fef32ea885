# cfa_planning/services/reference_service.py
"""
Lookups of the entities the scheduling core references but does not own:
rooms, instructors and subject offerings. A missing entity is reported as
NotFoundException and never swallowed.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.instructor import Instructor
from ..models.room import Room
from ..models.subject_offering import SubjectOffering
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class ReferenceService(BaseService):
    """Resolves room, instructor and subject offering ids."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.room_repository = RepositoryFactory.create_base_repository(db, Room)
        self.instructor_repository = RepositoryFactory.create_base_repository(db, Instructor)
        self.offering_repository = RepositoryFactory.create_base_repository(db, SubjectOffering)

    def get_room(self, room_id: str) -> Room:
        room = self.room_repository.get_by_id(room_id)
        if room is None:
            raise NotFoundException(
                f"Room {room_id} not found", code="ROOM_NOT_FOUND", details={"room_id": room_id}
            )
        return room

    def get_instructors(self, instructor_ids: List[str]) -> List[Instructor]:
        """Instructors in the order of ``instructor_ids``; every id must exist."""
        instructors = self.instructor_repository.get_many(instructor_ids)
        found = {instructor.id: instructor for instructor in instructors}
        missing = [instructor_id for instructor_id in instructor_ids if instructor_id not in found]
        if missing:
            raise NotFoundException(
                f"Instructor(s) not found: {', '.join(missing)}",
                code="INSTRUCTOR_NOT_FOUND",
                details={"instructor_ids": missing},
            )
        return [found[instructor_id] for instructor_id in instructor_ids]

    def get_subject_offering(self, offering_id: str) -> SubjectOffering:
        offering = self.offering_repository.get_by_id(offering_id)
        if offering is None:
            raise NotFoundException(
                f"Subject offering {offering_id} not found",
                code="SUBJECT_OFFERING_NOT_FOUND",
                details={"subject_offering_id": offering_id},
            )
        return offering
