from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date

    @property
    def key(self) -> str:
        """`YYYY-MM` prefix shared by every ISO date inside a calendar month."""
        return f"{self.start.year:04d}-{self.start.month:02d}"

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def add_months(d: date, count: int) -> date:
    month_index = (d.year * 12) + (d.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    return date(year, month, 1)


def month_period(today: Optional[date] = None, offset: int = 0) -> Period:
    today = today or date.today()
    first = add_months(today, offset)
    end = add_months(first, 1) - date.resolution
    if offset == 0:
        slug = "this_month"
    elif offset == -1:
        slug = "last_month"
    else:
        slug = first.strftime("%Y-%m")
    return Period(slug, first, end)


def trailing_cutoff(now: datetime, days: int) -> datetime:
    return now - timedelta(days=days)
