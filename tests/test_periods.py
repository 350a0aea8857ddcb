from datetime import date, datetime, timezone

import pytest

from app.schemas.review_period import PeriodStatus, PeriodType, ReviewPeriod
from app.services.periods import (
    current_half,
    current_quarter,
    days_remaining,
    generate_period_name,
    half_dates,
    is_period_active,
    period_dates,
    quarter_dates,
)


@pytest.mark.parametrize("quarter,start,end", [
    (PeriodType.Q1, date(2024, 1, 1), date(2024, 3, 31)),
    (PeriodType.Q2, date(2024, 4, 1), date(2024, 6, 30)),
    (PeriodType.Q3, date(2024, 7, 1), date(2024, 9, 30)),
    (PeriodType.Q4, date(2024, 10, 1), date(2024, 12, 31)),
])
def test_quarter_dates(quarter, start, end):
    assert quarter_dates(quarter, 2024) == (start, end)


def test_half_and_annual_dates():
    assert half_dates(PeriodType.H1, 2025) == (date(2025, 1, 1), date(2025, 6, 30))
    assert period_dates(PeriodType.H2, 2025) == (date(2025, 7, 1), date(2025, 12, 31))
    assert period_dates(PeriodType.ANNUAL, 2025) == (date(2025, 1, 1), date(2025, 12, 31))
    assert period_dates(PeriodType.CUSTOM, 2025) == (date(2025, 1, 1), date(2025, 12, 31))
    with pytest.raises(ValueError):
        half_dates(PeriodType.Q1, 2025)


def test_names_and_current_period():
    assert generate_period_name(PeriodType.Q1, 2026) == "Q1 2026"
    assert generate_period_name(PeriodType.ANNUAL, 2026) == "Annual 2026"
    may = datetime(2026, 5, 15, tzinfo=timezone.utc)
    assert current_quarter(may) == PeriodType.Q2
    assert current_half(may) == PeriodType.H1
    assert current_half(datetime(2026, 7, 1, tzinfo=timezone.utc)) == PeriodType.H2


def _period(status=PeriodStatus.ACTIVE):
    start, end = quarter_dates(PeriodType.Q2, 2026)
    return ReviewPeriod(name="Q2 2026", type=PeriodType.Q2, year=2026, start_date=start, end_date=end, status=status)


def test_active_requires_status_and_date_window():
    inside = datetime(2026, 5, 1, tzinfo=timezone.utc)
    after = datetime(2026, 7, 1, tzinfo=timezone.utc)
    assert is_period_active(_period(), inside)
    assert not is_period_active(_period(), after)
    assert not is_period_active(_period(PeriodStatus.PLANNING), inside)


def test_end_before_start_rejected():
    with pytest.raises(ValueError):
        ReviewPeriod(name="x", type=PeriodType.CUSTOM, year=2026,
                     start_date=date(2026, 2, 1), end_date=date(2026, 1, 1))


def test_days_remaining():
    now = datetime(2026, 6, 28, 12, 0, tzinfo=timezone.utc)
    assert days_remaining(date(2026, 6, 30), now) == 3
    assert days_remaining(date(2026, 6, 28), now) == 1
    assert days_remaining(date(2026, 6, 20), now) < 0
