# cfa_planning/models/calendar.py
"""
Academic calendar models.

Classes:
    ClosureType: Reason category of a non-teaching day
    AcademicCalendar: One academic year (e.g. 2024-2025)
    ClosedDay: A single non-teaching date of a calendar
"""

from enum import Enum

from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class ClosureType(str, Enum):
    """Why a day is closed."""

    PUBLIC_HOLIDAY = "public_holiday"
    CLOSURE = "closure"
    BREAK = "break"
    BRIDGE = "bridge"


class AcademicCalendar(Base):
    """
    Academic year calendar.

    week_a_reference, when set, anchors the A/B week alternation: the ISO
    week containing that date is week A.
    """

    __tablename__ = "academic_calendars"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    code = Column(String(20), nullable=False, unique=True)  # e.g. "2024-2025"
    label = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    week_a_reference = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    closed_days = relationship(
        "ClosedDay",
        back_populates="calendar",
        cascade="all, delete-orphan",
        order_by="ClosedDay.date",
    )

    def __repr__(self) -> str:
        return f"<AcademicCalendar {self.code}>"


class ClosedDay(Base):
    """Non-teaching date (holiday, closure, break, bridge day)."""

    __tablename__ = "closed_days"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    calendar_id = Column(
        String(26), ForeignKey("academic_calendars.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False)
    closure_type = Column(String(20), nullable=False, default=ClosureType.CLOSURE.value)
    label = Column(String(150), nullable=False)

    calendar = relationship("AcademicCalendar", back_populates="closed_days")

    __table_args__ = (
        UniqueConstraint("calendar_id", "date", name="unique_calendar_closed_date"),
        Index("idx_closed_days_calendar_date", "calendar_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<ClosedDay {self.date} - {self.label}>"
