"""Review period date helpers."""
import calendar
import math
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple

from app.schemas.review_period import PeriodStatus, PeriodType, ReviewPeriod

_QUARTER_START_MONTH = {PeriodType.Q1: 1, PeriodType.Q2: 4, PeriodType.Q3: 7, PeriodType.Q4: 10}


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def quarter_dates(quarter: PeriodType, year: int) -> Tuple[date, date]:
    start_month = _QUARTER_START_MONTH[quarter]
    return date(year, start_month, 1), _month_end(year, start_month + 2)


def half_dates(half: PeriodType, year: int) -> Tuple[date, date]:
    if half == PeriodType.H1:
        return date(year, 1, 1), date(year, 6, 30)
    if half == PeriodType.H2:
        return date(year, 7, 1), date(year, 12, 31)
    raise ValueError(f"Not a half-year period: {half}")


def period_dates(period_type: PeriodType, year: int) -> Tuple[date, date]:
    """Default start/end for a period type. Annual and Custom span the calendar year."""
    if period_type in _QUARTER_START_MONTH:
        return quarter_dates(period_type, year)
    if period_type in (PeriodType.H1, PeriodType.H2):
        return half_dates(period_type, year)
    return date(year, 1, 1), date(year, 12, 31)


def generate_period_name(period_type: PeriodType, year: int) -> str:
    return f"{period_type.value} {year}"


def current_quarter(now: Optional[datetime] = None) -> PeriodType:
    month = _now(now).month
    return (PeriodType.Q1, PeriodType.Q2, PeriodType.Q3, PeriodType.Q4)[(month - 1) // 3]


def current_half(now: Optional[datetime] = None) -> PeriodType:
    return PeriodType.H1 if _now(now).month <= 6 else PeriodType.H2


def is_period_active(period: ReviewPeriod, now: Optional[datetime] = None) -> bool:
    """Active status and today within [start_date, end_date]."""
    if period.status != PeriodStatus.ACTIVE:
        return False
    today = _now(now).date()
    return period.start_date <= today <= period.end_date


def days_remaining(end: date, now: Optional[datetime] = None) -> int:
    """Whole days left until the end of the end date, rounded up; negative once past."""
    current = _now(now)
    end_of_day = datetime.combine(end, time(23, 59, 59), tzinfo=current.tzinfo)
    return math.ceil((end_of_day - current).total_seconds() / 86400)
