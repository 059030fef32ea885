# cfa_planning/services/date_expansion.py
"""
Date Expansion Engine

Turns a recurring slot definition into the ascending list of dates it
occupies. Expansion is recomputed from the slot fields on every call, so
the same inputs always produce the same dates.

Week parity: when a week-A reference date is known, the ISO week that
contains it is week A and weeks alternate from there. The reference is
normalized to the Monday of its week so classification flips exactly at
week boundaries. Without a reference, ISO week numbers decide (even = A by
default, see Settings.week_parity_iso_even_is_a).
"""

from datetime import date, timedelta
import logging
from typing import TYPE_CHECKING, List, Optional, Union

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..models.recurring_slot import RecurringSlot, WeekParity

if TYPE_CHECKING:
    from ..models.calendar import AcademicCalendar
    from ..schemas.scheduling import RecurringSlotDraft

logger = logging.getLogger(__name__)


def monday_of(day: date) -> date:
    return day - timedelta(days=day.isoweekday() - 1)


def first_matching_date(start: date, day_of_week: int) -> date:
    """First date on or after ``start`` whose ISO weekday is ``day_of_week``."""
    shift = (day_of_week - start.isoweekday()) % 7
    return start + timedelta(days=shift)


def week_parity_for(day: date, reference: Optional[date] = None) -> WeekParity:
    """Classify the week containing ``day`` as A or B."""
    if reference is None:
        even = day.isocalendar()[1] % 2 == 0
        return WeekParity.A if even == settings.week_parity_iso_even_is_a else WeekParity.B

    weeks_elapsed = (day - monday_of(reference)).days // 7
    return WeekParity.A if weeks_elapsed % 2 == 0 else WeekParity.B


def resolve_week_reference(
    slot_reference: Optional[date], calendar: Optional["AcademicCalendar"]
) -> Optional[date]:
    """Slot-pinned reference first, then the calendar's, else None (ISO fallback)."""
    if slot_reference is not None:
        return slot_reference
    if calendar is not None:
        return calendar.week_a_reference
    return None


def expand(
    day_of_week: int,
    start: date,
    end: date,
    parity: Optional[WeekParity] = None,
    reference: Optional[date] = None,
) -> List[date]:
    """
    Dates of a weekly recurrence within [start, end].

    Args:
        day_of_week: ISO weekday (1=Monday .. 7=Sunday)
        start: Recurrence start date (inclusive)
        end: Recurrence end date (inclusive)
        parity: Only keep A or B weeks; None keeps every week
        reference: Week-A reference date (None = ISO week fallback)

    Returns:
        Strictly ascending dates

    Raises:
        ValidationException: If the weekday is out of range or end < start
    """
    if not 1 <= day_of_week <= 7:
        raise ValidationException(
            f"day_of_week must be between 1 and 7, got {day_of_week}",
            code="INVALID_DAY_OF_WEEK",
        )
    if end < start:
        raise ValidationException(
            "Recurrence end must not be before recurrence start",
            code="INVALID_RECURRENCE_RANGE",
            details={"start": start.isoformat(), "end": end.isoformat()},
        )

    dates = []
    current = first_matching_date(start, day_of_week)
    step = timedelta(days=7)
    while current <= end:
        if parity is None or week_parity_for(current, reference) == parity:
            dates.append(current)
        current += step
    return dates


def expand_slot(
    slot: Union[RecurringSlot, "RecurringSlotDraft"], reference: Optional[date] = None
) -> List[date]:
    """Expand a persisted slot or a draft; ``reference`` defaults to the slot's pinned one."""
    if isinstance(slot, RecurringSlot):
        parity = slot.parity
    else:
        parity = slot.week_parity
    return expand(
        slot.day_of_week,
        slot.recurrence_start,
        slot.recurrence_end,
        parity,
        reference if reference is not None else slot.week_reference,
    )
