# cfa_planning/models/recurring_slot.py
"""
Recurring slot model.

A recurring slot is the weekly template of a course: one day of the week,
one time window, one room and its instructors, repeated over a date range
(every week, or only on A or B weeks). Occurrences are materialized from it.
"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class WeekParity(str, Enum):
    """Alternating week tag. A slot without parity runs every week."""

    A = "A"
    B = "B"

    @property
    def opposite(self) -> "WeekParity":
        return WeekParity.B if self is WeekParity.A else WeekParity.A


DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}


recurring_slot_instructors = Table(
    "recurring_slot_instructors",
    Base.metadata,
    Column(
        "recurring_slot_id",
        String(26),
        ForeignKey("recurring_slots.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("instructor_id", String(26), ForeignKey("instructors.id"), primary_key=True),
)


class RecurringSlot(Base):
    """Weekly-repeating course template."""

    __tablename__ = "recurring_slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    calendar_id = Column(String(26), ForeignKey("academic_calendars.id"), nullable=False)
    room_id = Column(String(26), ForeignKey("rooms.id"), nullable=False)
    subject_offering_id = Column(String(26), ForeignKey("subject_offerings.id"), nullable=False)

    day_of_week = Column(Integer, nullable=False)  # ISO: 1=Monday .. 7=Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    recurrence_start = Column(Date, nullable=False)
    recurrence_end = Column(Date, nullable=False)
    week_parity = Column(String(1), nullable=True)
    # Week-A anchor pinned from the calendar when the slot was created
    week_reference = Column(Date, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    calendar = relationship("AcademicCalendar")
    room = relationship("Room")
    subject_offering = relationship("SubjectOffering")
    instructors = relationship("Instructor", secondary=recurring_slot_instructors, lazy="selectin")
    occurrences = relationship(
        "Occurrence",
        back_populates="recurring_slot",
        passive_deletes=True,
        order_by="Occurrence.session_date",
    )

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_recurring_slots_day_of_week"),
        CheckConstraint("end_time > start_time", name="ck_recurring_slots_time_order"),
        CheckConstraint(
            "recurrence_end > recurrence_start", name="ck_recurring_slots_date_order"
        ),
        CheckConstraint(
            "week_parity IS NULL OR week_parity IN ('A', 'B')",
            name="ck_recurring_slots_week_parity",
        ),
        Index("idx_recurring_slots_room_day", "room_id", "day_of_week"),
    )

    @property
    def parity(self) -> Optional[WeekParity]:
        return WeekParity(self.week_parity) if self.week_parity else None

    @property
    def instructor_ids(self) -> List[str]:
        return [instructor.id for instructor in self.instructors]

    @property
    def label(self) -> str:
        parity = f" (week {self.week_parity})" if self.week_parity else ""
        return (
            f"{DAY_NAMES.get(self.day_of_week, '?')} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M}{parity}"
        )

    def __repr__(self) -> str:
        return f"<RecurringSlot {self.label}>"
