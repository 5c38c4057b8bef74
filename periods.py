import calendar
from dataclasses import dataclass
from datetime import MAXYEAR, date, timedelta
from typing import Iterator, Optional


class InvalidPeriod(ValueError):
    pass


@dataclass(frozen=True)
class Period:
    """A calendar interval. ``end`` is exclusive: the first day after the period."""

    kind: str
    start: date
    end: date
    label: str

    @property
    def last_day(self) -> date:
        return self.end - date.resolution

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current < self.end:
            yield current
            current += date.resolution


def _check_year(year: int) -> None:
    # the year after must still be representable for the exclusive end
    if year < 1 or year >= MAXYEAR:
        raise InvalidPeriod(f"Year must be between 1 and {MAXYEAR - 1}, got {year}")


def _check_month(month: int) -> None:
    if month < 1 or month > 12:
        raise InvalidPeriod(f"Month must be between 1 and 12, got {month}")


def add_months(year: int, month: int, count: int) -> tuple[int, int]:
    month_index = (year * 12) + (month - 1) + count
    return month_index // 12, (month_index % 12) + 1


def month_name(month: int) -> str:
    _check_month(month)
    return calendar.month_name[month]


def resolve_month(year: int, month: int) -> Period:
    _check_year(year)
    _check_month(month)
    next_year, next_month = add_months(year, month, 1)
    return Period(
        "month",
        date(year, month, 1),
        date(next_year, next_month, 1),
        f"{year:04d}-{month:02d}",
    )


def resolve_week(anchor: date) -> Period:
    monday = anchor - timedelta(days=anchor.weekday())
    if monday.year < 1 or monday.year >= MAXYEAR:
        raise InvalidPeriod(f"Week of {anchor.isoformat()} is out of range")
    iso_year, iso_week, _ = monday.isocalendar()
    return Period(
        "week",
        monday,
        monday + timedelta(days=7),
        f"{iso_year:04d}-W{iso_week:02d}",
    )


def resolve_year(year: int) -> Period:
    _check_year(year)
    return Period("year", date(year, 1, 1), date(year + 1, 1, 1), f"{year:04d}")


def previous_period(period: Period) -> Period:
    if period.kind == "month":
        year, month = add_months(period.start.year, period.start.month, -1)
        return resolve_month(year, month)
    if period.kind == "week":
        return resolve_week(period.start - timedelta(days=7))
    if period.kind == "year":
        return resolve_year(period.start.year - 1)
    raise InvalidPeriod(f"Unsupported period kind: {period.kind}")


def parse_anchor_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidPeriod(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc
