from datetime import date

import pytest

from periods import (
    InvalidPeriod,
    month_name,
    parse_anchor_date,
    previous_period,
    resolve_month,
    resolve_week,
    resolve_year,
)


def test_month_end_is_first_day_of_next_month() -> None:
    period = resolve_month(2026, 2)
    assert period.start == date(2026, 2, 1)
    assert period.end == date(2026, 3, 1)
    assert period.last_day == date(2026, 2, 28)
    assert period.label == "2026-02"


def test_december_rolls_into_next_year() -> None:
    period = resolve_month(2025, 12)
    assert period.start == date(2025, 12, 1)
    assert period.end == date(2026, 1, 1)


def test_end_boundary_belongs_to_next_month_only() -> None:
    march = resolve_month(2026, 3)
    april = resolve_month(2026, 4)
    boundary = date(2026, 4, 1)
    assert not march.contains(boundary)
    assert april.contains(boundary)
    assert march.contains(date(2026, 3, 31))


def test_sunday_resolves_to_previous_monday() -> None:
    week = resolve_week(date(2026, 3, 1))
    assert week.start == date(2026, 2, 23)
    assert week.end == date(2026, 3, 2)
    assert week.label == "2026-W09"


def test_monday_anchor_starts_its_own_week() -> None:
    week = resolve_week(date(2026, 3, 2))
    assert week.start == date(2026, 3, 2)
    assert week.end == date(2026, 3, 9)
    assert len(list(week.days())) == 7


def test_year_boundaries() -> None:
    period = resolve_year(2026)
    assert period.start == date(2026, 1, 1)
    assert period.end == date(2027, 1, 1)
    assert period.label == "2026"


def test_previous_month_wraps_to_december() -> None:
    previous = previous_period(resolve_month(2026, 1))
    assert previous.start == date(2025, 12, 1)
    assert previous.end == date(2026, 1, 1)


def test_previous_week_and_year() -> None:
    assert previous_period(resolve_week(date(2026, 3, 4))).start == date(2026, 2, 23)
    assert previous_period(resolve_year(2026)) == resolve_year(2025)


@pytest.mark.parametrize("month", [0, 13, -1])
def test_month_out_of_range_is_rejected(month: int) -> None:
    with pytest.raises(InvalidPeriod):
        resolve_month(2026, month)


@pytest.mark.parametrize("year", [0, -5])
def test_non_positive_year_is_rejected(year: int) -> None:
    with pytest.raises(InvalidPeriod):
        resolve_month(year, 1)
    with pytest.raises(InvalidPeriod):
        resolve_year(year)


def test_invalid_period_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        resolve_month(2026, 13)


def test_parse_anchor_date() -> None:
    assert parse_anchor_date("2026-03-01") == date(2026, 3, 1)
    assert parse_anchor_date(None) is None
    assert parse_anchor_date("") is None
    with pytest.raises(InvalidPeriod):
        parse_anchor_date("03/01/2026")


def test_month_name() -> None:
    assert month_name(3) == "March"
    with pytest.raises(InvalidPeriod):
        month_name(13)
