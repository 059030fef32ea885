# cfa_planning/services/holiday_calendar.py
"""
French public holidays.

Pure calendar math: the eight fixed-date national holidays plus the three
movable ones derived from Easter Sunday (Meeus/Jones/Butcher algorithm).
Every function here is a pure function of its arguments.
"""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

Holiday = Tuple[date, str]

# (month, day) -> label
FIXED_HOLIDAYS: Dict[Tuple[int, int], str] = {
    (1, 1): "New Year's Day",
    (5, 1): "Labour Day",
    (5, 8): "Victory in Europe Day",
    (7, 14): "Bastille Day",
    (8, 15): "Assumption of Mary",
    (11, 1): "All Saints' Day",
    (11, 11): "Armistice Day",
    (12, 25): "Christmas Day",
}

# Offset in days from Easter Sunday -> label
MOVABLE_HOLIDAY_OFFSETS: Tuple[Tuple[int, str], ...] = (
    (1, "Easter Monday"),
    (39, "Ascension Day"),
    (50, "Whit Monday"),
)


def compute_easter(year: int) -> date:
    """
    Easter Sunday of a Gregorian year (Meeus/Jones/Butcher).

    >>> compute_easter(2024)
    datetime.date(2024, 3, 31)
    """
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


def compute_movable_holidays(year: int) -> List[Holiday]:
    """Easter Monday, Ascension Day and Whit Monday of ``year``."""
    easter = compute_easter(year)
    return [(easter + timedelta(days=offset), label) for offset, label in MOVABLE_HOLIDAY_OFFSETS]


def get_public_holidays(year: int) -> List[Holiday]:
    """All eleven national holidays of ``year``, sorted by date."""
    holidays = [(date(year, month, day), label) for (month, day), label in FIXED_HOLIDAYS.items()]
    holidays.extend(compute_movable_holidays(year))
    return sorted(holidays)


def get_public_holidays_for_years(years: Iterable[int]) -> List[Holiday]:
    """Holidays of several years, sorted by date."""
    holidays: List[Holiday] = []
    for year in sorted(set(years)):
        holidays.extend(get_public_holidays(year))
    return holidays


def get_public_holidays_between(start: date, end: date) -> List[Holiday]:
    """Holidays within [start, end], e.g. the span of an academic year."""
    if end < start:
        return []
    return [
        (day, label)
        for day, label in get_public_holidays_for_years(range(start.year, end.year + 1))
        if start <= day <= end
    ]


def public_holiday_label(day: date) -> Optional[str]:
    """Label of the holiday falling on ``day``, or None."""
    label = FIXED_HOLIDAYS.get((day.month, day.day))
    if label:
        return label
    for holiday, movable_label in compute_movable_holidays(day.year):
        if holiday == day:
            return movable_label
    return None


def is_public_holiday(day: date) -> bool:
    return public_holiday_label(day) is not None
