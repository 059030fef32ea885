# cfa_planning/models/occurrence.py
"""
Occurrence model.

An occurrence is one concrete dated session. Room, instructors, subject
offering, date and time window are copied from the recurring slot when the
occurrence is materialized, so later edits to the slot never rewrite history.
"""

from enum import Enum
from typing import Dict, FrozenSet, List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class OccurrenceStatus(str, Enum):
    """Occurrence lifecycle statuses."""

    PLANNED = "planned"  # Default - freshly materialized
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"  # Stays visible in history, may be reactivated
    POSTPONED = "postponed"  # Needs rescheduling
    COMPLETED = "completed"  # Terminal

    @property
    def allowed_transitions(self) -> FrozenSet["OccurrenceStatus"]:
        return ALLOWED_STATUS_TRANSITIONS[self]

    def can_transition_to(self, target: "OccurrenceStatus") -> bool:
        return target in ALLOWED_STATUS_TRANSITIONS[self]

    @property
    def is_active(self) -> bool:
        """Cancelled occurrences neither occupy a room nor an instructor."""
        return self is not OccurrenceStatus.CANCELLED


ALLOWED_STATUS_TRANSITIONS: Dict[OccurrenceStatus, FrozenSet[OccurrenceStatus]] = {
    OccurrenceStatus.PLANNED: frozenset(
        {OccurrenceStatus.CONFIRMED, OccurrenceStatus.CANCELLED, OccurrenceStatus.POSTPONED}
    ),
    OccurrenceStatus.CONFIRMED: frozenset(
        {OccurrenceStatus.COMPLETED, OccurrenceStatus.CANCELLED, OccurrenceStatus.POSTPONED}
    ),
    OccurrenceStatus.POSTPONED: frozenset(
        {OccurrenceStatus.PLANNED, OccurrenceStatus.CONFIRMED, OccurrenceStatus.CANCELLED}
    ),
    OccurrenceStatus.CANCELLED: frozenset({OccurrenceStatus.PLANNED}),
    OccurrenceStatus.COMPLETED: frozenset(),
}


occurrence_instructors = Table(
    "occurrence_instructors",
    Base.metadata,
    Column(
        "occurrence_id",
        String(26),
        ForeignKey("occurrences.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("instructor_id", String(26), ForeignKey("instructors.id"), primary_key=True),
)


class Occurrence(Base):
    """
    Concrete dated session.

    recurring_slot_id is null for manually created occurrences; those are
    never touched by regeneration. manually_modified protects materialized
    occurrences that a user edited afterwards.
    """

    __tablename__ = "occurrences"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    recurring_slot_id = Column(
        String(26), ForeignKey("recurring_slots.id", ondelete="CASCADE"), nullable=True
    )

    # Snapshot of the slot at materialization time
    room_id = Column(String(26), ForeignKey("rooms.id"), nullable=False)
    subject_offering_id = Column(String(26), ForeignKey("subject_offerings.id"), nullable=False)
    session_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    status = Column(String(20), nullable=False, default=OccurrenceStatus.PLANNED.value, index=True)
    manually_modified = Column(Boolean, nullable=False, default=False)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    recurring_slot = relationship("RecurringSlot", back_populates="occurrences")
    room = relationship("Room")
    subject_offering = relationship("SubjectOffering")
    instructors = relationship("Instructor", secondary=occurrence_instructors, lazy="selectin")

    __table_args__ = (
        UniqueConstraint("recurring_slot_id", "session_date", name="unique_slot_occurrence_date"),
        CheckConstraint("end_time > start_time", name="ck_occurrences_time_order"),
        Index("idx_occurrences_room_date", "room_id", "session_date"),
    )

    @property
    def occurrence_status(self) -> OccurrenceStatus:
        return OccurrenceStatus(self.status)

    @property
    def instructor_ids(self) -> List[str]:
        return [instructor.id for instructor in self.instructors]

    @property
    def is_generated(self) -> bool:
        return self.recurring_slot_id is not None

    def __repr__(self) -> str:
        return (
            f"<Occurrence {self.session_date} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M} {self.status}>"
        )
