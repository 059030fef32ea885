# tests/conftest.py
"""
Shared fixtures for the planning core test suite.

Every test gets a fresh in-memory SQLite database (StaticPool keeps the
single connection alive for the whole test), created through the same
build_engine() the application uses so foreign keys and SAVEPOINTs behave
like they do in production.
"""

from datetime import date, time
from typing import Callable, Iterator, List, Optional

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cfa_planning.database import Base, build_engine
from cfa_planning.models import (
    AcademicCalendar,
    ClosedDay,
    ClosureType,
    Instructor,
    RecurringSlot,
    Room,
    SubjectOffering,
)

SlotFactory = Callable[..., RecurringSlot]


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Iterator[Session]:
    """Database session bound to the per-test in-memory database."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def calendar(db: Session) -> AcademicCalendar:
    """Academic year 2024-2025 without a week-A reference (ISO fallback)."""
    calendar = AcademicCalendar(
        code="2024-2025",
        label="Academic year 2024-2025",
        start_date=date(2024, 9, 1),
        end_date=date(2025, 7, 31),
        is_active=True,
    )
    db.add(calendar)
    db.commit()
    return calendar


@pytest.fixture
def room_a101(db: Session) -> Room:
    room = Room(name="A101", capacity=30, is_virtual=False)
    db.add(room)
    db.commit()
    return room


@pytest.fixture
def room_b202(db: Session) -> Room:
    room = Room(name="B202", capacity=12, is_virtual=False)
    db.add(room)
    db.commit()
    return room


@pytest.fixture
def virtual_room(db: Session) -> Room:
    room = Room(name="Virtual classroom", capacity=None, is_virtual=True)
    db.add(room)
    db.commit()
    return room


@pytest.fixture
def instructor(db: Session) -> Instructor:
    instructor = Instructor(display_name="Camille Martin", is_active=True)
    db.add(instructor)
    db.commit()
    return instructor


@pytest.fixture
def other_instructor(db: Session) -> Instructor:
    instructor = Instructor(display_name="Dominique Petit", is_active=True)
    db.add(instructor)
    db.commit()
    return instructor


@pytest.fixture
def offering(db: Session) -> SubjectOffering:
    offering = SubjectOffering(
        label="Networking fundamentals", cohort_code="BTS-SIO-1", max_headcount=24
    )
    db.add(offering)
    db.commit()
    return offering


@pytest.fixture
def make_slot(
    db: Session,
    calendar: AcademicCalendar,
    room_a101: Room,
    instructor: Instructor,
    offering: SubjectOffering,
) -> SlotFactory:
    """
    Build and commit a recurring slot.

    Defaults describe the reference scenario: room A101, Monday 08:00-10:00,
    every week from 2024-09-02 to 2024-12-20.
    """

    def _make(
        room: Optional[Room] = None,
        instructors: Optional[List[Instructor]] = None,
        day_of_week: int = 1,
        start_time: time = time(8, 0),
        end_time: time = time(10, 0),
        recurrence_start: date = date(2024, 9, 2),
        recurrence_end: date = date(2024, 12, 20),
        week_parity: Optional[str] = None,
        week_reference: Optional[date] = None,
        is_active: bool = True,
    ) -> RecurringSlot:
        slot = RecurringSlot(
            calendar_id=calendar.id,
            room_id=(room or room_a101).id,
            subject_offering_id=offering.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            recurrence_start=recurrence_start,
            recurrence_end=recurrence_end,
            week_parity=week_parity,
            week_reference=week_reference,
            is_active=is_active,
        )
        slot.instructors = list(instructors or [instructor])
        db.add(slot)
        db.commit()
        return slot

    return _make


@pytest.fixture
def add_closed_day(db: Session, calendar: AcademicCalendar) -> Callable[..., ClosedDay]:
    def _add(day: date, label: str = "Closure", closure_type: ClosureType = ClosureType.CLOSURE):
        closed_day = ClosedDay(
            calendar_id=calendar.id, date=day, closure_type=closure_type.value, label=label
        )
        db.add(closed_day)
        db.commit()
        return closed_day

    return _add
