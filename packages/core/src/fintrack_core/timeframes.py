"""Timeframe windows and caller parameter parsing.

All functions take an explicit reference date instead of reading the
system clock, so results are reproducible.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Union

from .exceptions import InvalidParameterError
from .models import DateRange, Sensitivity, Timeframe

MIN_MONTHS_AHEAD = 1
MAX_MONTHS_AHEAD = 12

_PERIOD_KEY = re.compile(r"^(\d{4})-(\d{2})$")


def add_months(day: date, months: int) -> date:
    """Shift a date by whole months, clamping to the end of short months."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def month_bounds(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def period_key(day: date) -> str:
    return day.strftime("%Y-%m")


def _quarter_start(day: date) -> date:
    first_month = 3 * ((day.month - 1) // 3) + 1
    return date(day.year, first_month, 1)


def resolve_date_range(timeframe: Union[Timeframe, str], reference_date: date) -> DateRange:
    """Analysis window for a timeframe relative to ``reference_date``.

    The windows reach back past the nominal period so that there is enough
    history for trend and consistency labels:

    - week: start of the week four weeks back to the end of the current week
    - month: first day of the month two months back to the end of this month
    - quarter: start of the quarter six months back to the end of this quarter
    - year: 1 January of last year to 31 December of this year
    """
    timeframe = parse_timeframe(timeframe)

    if timeframe == Timeframe.WEEK:
        four_weeks_back = reference_date - timedelta(weeks=4)
        start = four_weeks_back - timedelta(days=four_weeks_back.weekday())
        end = reference_date + timedelta(days=6 - reference_date.weekday())
        return DateRange(start=start, end=end)

    if timeframe == Timeframe.QUARTER:
        start = _quarter_start(add_months(reference_date, -6))
        quarter_end = add_months(_quarter_start(reference_date), 2)
        end = month_bounds(quarter_end.year, quarter_end.month).end
        return DateRange(start=start, end=end)

    if timeframe == Timeframe.YEAR:
        return DateRange(
            start=date(reference_date.year - 1, 1, 1),
            end=date(reference_date.year, 12, 31),
        )

    two_months_back = add_months(reference_date, -2)
    return DateRange(
        start=date(two_months_back.year, two_months_back.month, 1),
        end=month_bounds(reference_date.year, reference_date.month).end,
    )


def parse_timeframe(value: Union[Timeframe, str]) -> Timeframe:
    try:
        return Timeframe(value)
    except ValueError:
        allowed = [t.value for t in Timeframe]
        raise InvalidParameterError(
            f"The timeframe must be one of: {', '.join(allowed)}.",
            field="timeframe",
            value=value,
            allowed=allowed,
        ) from None


def parse_sensitivity(value: Union[Sensitivity, str]) -> Sensitivity:
    try:
        return Sensitivity(value)
    except ValueError:
        allowed = [s.value for s in Sensitivity]
        raise InvalidParameterError(
            f"The sensitivity must be one of: {', '.join(allowed)}.",
            field="sensitivity",
            value=value,
            allowed=allowed,
        ) from None


def validate_month_count(
    value: int,
    field: str = "months",
    minimum: int = MIN_MONTHS_AHEAD,
    maximum: int = MAX_MONTHS_AHEAD,
) -> int:
    """Check a whole number of months, rejecting bools and out-of-range values."""
    if isinstance(value, bool) or not isinstance(value, int) or not (minimum <= value <= maximum):
        raise InvalidParameterError(
            f"The {field} must be between {minimum} and {maximum}.",
            field=field,
            value=value,
            allowed=[minimum, maximum],
        )
    return value


def validate_months_ahead(value: int) -> int:
    return validate_month_count(value, field="months_ahead")


def parse_period_key(value: str, field: str = "period") -> DateRange:
    """Parse a YYYY-MM key into the first and last day of that month."""
    match = _PERIOD_KEY.match(value or "")
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if 1 <= month <= 12:
            return month_bounds(year, month)
    raise InvalidParameterError(
        f"The {field} must be a month in YYYY-MM format.",
        field=field,
        value=value,
    )
