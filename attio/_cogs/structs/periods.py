"""
Calendar periods for filtering the resources by their timestamps.

A period is an inclusive range of dates. The named constructors are relative
to today (in UTC) unless another day is given explicitly.
"""
import dataclasses
import datetime
from typing import Optional, Union

DateLike = Union[datetime.date, datetime.datetime, str]


def _today() -> datetime.date:
    return datetime.datetime.now(datetime.timezone.utc).date()


def _as_date(value: DateLike) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    elif isinstance(value, datetime.date):
        return value
    else:
        return datetime.date.fromisoformat(value[:10])


@dataclasses.dataclass(frozen=True)
class TimePeriod:
    start: datetime.date
    end: datetime.date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"The period starts after it ends: {self.start} > {self.end}")

    def __str__(self) -> str:
        return str(self.start) if self.start == self.end else f"{self.start} to {self.end}"

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, (datetime.date, str)):
            return False
        return self.start <= _as_date(value) <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @classmethod
    def between(cls, start: DateLike, end: DateLike) -> "TimePeriod":
        return cls(_as_date(start), _as_date(end))

    @classmethod
    def year(cls, year: int) -> "TimePeriod":
        return cls(datetime.date(year, 1, 1), datetime.date(year, 12, 31))

    @classmethod
    def quarter(cls, year: int, quarter: int) -> "TimePeriod":
        if not 1 <= quarter <= 4:
            raise ValueError(f"A quarter must be within 1..4, got {quarter}.")
        start = datetime.date(year, (quarter - 1) * 3 + 1, 1)
        end = cls.month(year, quarter * 3).end
        return cls(start, end)

    @classmethod
    def month(cls, year: int, month: int) -> "TimePeriod":
        if not 1 <= month <= 12:
            raise ValueError(f"A month must be within 1..12, got {month}.")
        start = datetime.date(year, month, 1)
        following = datetime.date(year + 1, 1, 1) if month == 12 else datetime.date(year, month + 1, 1)
        return cls(start, following - datetime.timedelta(days=1))

    @classmethod
    def last_days(cls, days: int, *, today: Optional[datetime.date] = None) -> "TimePeriod":
        """ The last N days, including today. """
        if days < 1:
            raise ValueError(f"The number of days must be positive, got {days}.")
        today = today or _today()
        return cls(today - datetime.timedelta(days=days - 1), today)

    @classmethod
    def year_to_date(cls, *, today: Optional[datetime.date] = None) -> "TimePeriod":
        today = today or _today()
        return cls(datetime.date(today.year, 1, 1), today)

    @classmethod
    def month_to_date(cls, *, today: Optional[datetime.date] = None) -> "TimePeriod":
        today = today or _today()
        return cls(datetime.date(today.year, today.month, 1), today)

    @classmethod
    def current_month(cls, *, today: Optional[datetime.date] = None) -> "TimePeriod":
        today = today or _today()
        return cls.month(today.year, today.month)

    @classmethod
    def current_quarter(cls, *, today: Optional[datetime.date] = None) -> "TimePeriod":
        today = today or _today()
        return cls.quarter(today.year, (today.month - 1) // 3 + 1)

    @classmethod
    def current_year(cls, *, today: Optional[datetime.date] = None) -> "TimePeriod":
        return cls.year((today or _today()).year)
