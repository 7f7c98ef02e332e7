"""Windowed aggregation over a transaction collection.

`build_stats` is a pure function of (transactions, now). It walks the input
once and keeps running totals for the current and previous calendar month,
the trailing 7 and 30 day windows, per-category expense totals and per-weekday
expense totals.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Iterable, Optional

from periods import month_period, trailing_cutoff
from schemas import Transaction

WEEK_DAYS = 7
WINDOW_DAYS = 30

# Sunday first; ties on the weekday peak resolve to the earliest entry.
DAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: float


@dataclass(frozen=True)
class Stats:
    income_month: float = 0.0
    expense_month: float = 0.0
    income_prev_month: float = 0.0
    expense_prev_month: float = 0.0
    income_week: float = 0.0
    expense_week: float = 0.0
    income_last30: float = 0.0
    expense_last30: float = 0.0
    expense_count_last30: int = 0
    top_expenses_month: tuple[CategoryTotal, ...] = field(default_factory=tuple)
    top_expenses_last30: tuple[CategoryTotal, ...] = field(default_factory=tuple)
    biggest_expense: Optional[Transaction] = None
    avg_daily_expense30: float = 0.0
    day_peak: Optional[str] = None
    days_in_month: int = 30
    day_of_month: int = 1

    @property
    def net_month(self) -> float:
        return self.income_month - self.expense_month

    @property
    def net_prev_month(self) -> float:
        return self.income_prev_month - self.expense_prev_month

    @property
    def net_week(self) -> float:
        return self.income_week - self.expense_week

    @property
    def net_last30(self) -> float:
        return self.income_last30 - self.expense_last30

    def category_total_last30(self, category: str) -> Optional[float]:
        for entry in self.top_expenses_last30:
            if entry.category == category:
                return entry.total
        return None

    def as_dict(self) -> dict[str, object]:
        biggest = self.biggest_expense
        return {
            "income_month": self.income_month,
            "expense_month": self.expense_month,
            "net_month": self.net_month,
            "income_prev_month": self.income_prev_month,
            "expense_prev_month": self.expense_prev_month,
            "net_prev_month": self.net_prev_month,
            "income_week": self.income_week,
            "expense_week": self.expense_week,
            "net_week": self.net_week,
            "income_last30": self.income_last30,
            "expense_last30": self.expense_last30,
            "net_last30": self.net_last30,
            "top_expenses_month": [
                {"category": c.category, "total": c.total}
                for c in self.top_expenses_month
            ],
            "top_expenses_last30": [
                {"category": c.category, "total": c.total}
                for c in self.top_expenses_last30
            ],
            "biggest_expense": biggest.model_dump(mode="json") if biggest else None,
            "avg_daily_expense30": self.avg_daily_expense30,
            "day_peak": self.day_peak,
            "days_in_month": self.days_in_month,
            "day_of_month": self.day_of_month,
        }


def _ranked(totals: dict[str, float]) -> tuple[CategoryTotal, ...]:
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return tuple(CategoryTotal(category, total) for category, total in ordered)


def _weekday_index(txn: Transaction) -> int:
    return (txn.date.weekday() + 1) % 7


def build_stats(transactions: Iterable[Transaction], now: datetime) -> Stats:
    current = month_period(now.date())
    previous = month_period(now.date(), -1)
    start30 = trailing_cutoff(now, WINDOW_DAYS)
    start7 = trailing_cutoff(now, WEEK_DAYS)

    income_month = expense_month = 0.0
    income_prev = expense_prev = 0.0
    income_week = expense_week = 0.0
    income30 = sum_expense30 = 0.0
    count_expense30 = 0

    by_cat_month: dict[str, float] = defaultdict(float)
    by_cat_30: dict[str, float] = defaultdict(float)
    by_weekday: dict[int, float] = defaultdict(float)
    biggest: Optional[Transaction] = None

    for txn in transactions:
        amount = txn.amount
        expense = txn.is_expense
        month_key = txn.month_key

        if month_key == current.key:
            if expense:
                expense_month += amount
                by_cat_month[txn.category] += amount
            else:
                income_month += amount
        elif month_key == previous.key:
            if expense:
                expense_prev += amount
            else:
                income_prev += amount

        stamp = datetime.combine(txn.date, time(), tzinfo=now.tzinfo)
        if stamp >= start30:
            if expense:
                sum_expense30 += amount
                count_expense30 += 1
                by_cat_30[txn.category] += amount
                by_weekday[_weekday_index(txn)] += amount
                if biggest is None or amount > biggest.amount:
                    biggest = txn
            else:
                income30 += amount
        if stamp >= start7:
            if expense:
                expense_week += amount
            else:
                income_week += amount

    day_peak = None
    if by_weekday:
        peak = max(sorted(by_weekday), key=lambda idx: by_weekday[idx])
        day_peak = DAY_NAMES[peak]

    return Stats(
        income_month=income_month,
        expense_month=expense_month,
        income_prev_month=income_prev,
        expense_prev_month=expense_prev,
        income_week=income_week,
        expense_week=expense_week,
        income_last30=income30,
        expense_last30=sum_expense30,
        expense_count_last30=count_expense30,
        top_expenses_month=_ranked(by_cat_month),
        top_expenses_last30=_ranked(by_cat_30),
        biggest_expense=biggest,
        avg_daily_expense30=sum_expense30 / WINDOW_DAYS if count_expense30 else 0.0,
        day_peak=day_peak,
        days_in_month=current.days,
        day_of_month=now.day,
    )
