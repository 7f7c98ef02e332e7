"""Rule-based insight generation from a Stats snapshot.

The output is positional: callers slice it into overview (first 4), alerts
(next 4) and suggestions (remainder), so rules always run in the order below.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from stats import CategoryTotal, Stats

MAX_INSIGHTS = 12
EMPTY_MESSAGE = "Add transactions to see insights."

RISING_CATEGORY_PCT = 10.0
OUTLIER_FACTOR = 3.0
CONCENTRATION_SHARE = 0.7
SUGGESTED_CUT = 0.2
WEEKS_PER_MONTH = 4


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_currency(
    amount: float, currency_format: str = "${amount}", decimals: int = 0
) -> str:
    """Format amount with a `{amount}` placeholder format, e.g. "$1,234"."""
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(str(abs(amount))).quantize(quantum, rounding=ROUND_HALF_UP)
    formatted = f"{rounded:,.{decimals}f}"
    text = currency_format.format(amount=formatted)
    if amount < 0 and rounded != 0:
        return f"-{text}"
    return text


def _signed_pct(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.1f}%"


def top_share(categories: tuple[CategoryTotal, ...], expense_total: float) -> Optional[float]:
    if not expense_total:
        return None
    top_two = sum(entry.total for entry in categories[:2])
    return top_two / expense_total


def forecast_month_end(stats: Stats) -> Optional[int]:
    if stats.day_of_month == 0:
        return None
    pace = stats.net_month / stats.day_of_month
    remaining = stats.days_in_month - stats.day_of_month
    return round_half_up(stats.net_month + pace * remaining)


def build_insights(stats: Stats, currency_format: str = "${amount}") -> list[str]:
    def money(value: float, decimals: int = 0) -> str:
        return format_currency(value, currency_format, decimals)

    items: list[str] = []
    top = stats.top_expenses_month

    # overview
    if stats.expense_month > 0:
        delta = ""
        if stats.expense_prev_month > 0:
            change = (
                (stats.expense_month - stats.expense_prev_month)
                / stats.expense_prev_month
                * 100
            )
            delta = f", {_signed_pct(change)} vs last month"
        items.append(f"Spent this month: {money(stats.expense_month)}{delta}.")
    if top:
        ranked = ", ".join(f"{c.category} ({money(c.total)})" for c in top[:3])
        items.append(f"Top expenses: {ranked}.")
    if stats.day_peak:
        items.append(f"Spending tends to peak on {stats.day_peak}.")
    biggest = stats.biggest_expense
    if biggest is not None:
        items.append(
            f"Largest single expense: {money(biggest.amount)} on {biggest.category}."
        )
    if stats.avg_daily_expense30 > 0:
        items.append(f"Daily average (30d): {money(stats.avg_daily_expense30, 2)}.")
    if stats.income_month > 0:
        rate = stats.expense_month / stats.income_month * 100
        items.append(
            f"Burn rate: {rate:.1f}% of this month's income has already been spent."
        )

    # alerts
    if top and top[0].total > 0 and stats.expense_prev_month > 0:
        leader = top[0]
        previous_total = stats.category_total_last30(leader.category)
        if previous_total is not None and previous_total > 0:
            change = (leader.total - previous_total) / previous_total * 100
            if change > RISING_CATEGORY_PCT:
                items.append(
                    f"Alert: {leader.category} rose {change:.1f}% vs the last period."
                )
    deficit = stats.expense_week - stats.income_week
    if stats.expense_week > stats.income_week and deficit > 0:
        items.append(
            f"Alert: you spent {money(deficit)} more than you earned in the last week."
        )
    if (
        biggest is not None
        and stats.avg_daily_expense30 > 0
        and biggest.amount > stats.avg_daily_expense30 * OUTLIER_FACTOR
    ):
        items.append(
            f"Unusual expense: {money(biggest.amount)} on {biggest.category}."
        )
    share = top_share(top, stats.expense_month)
    if share and share > CONCENTRATION_SHARE:
        items.append(
            f"High concentration: {round_half_up(share * 100)}% of spending "
            "in two categories."
        )

    # suggestions and forecast
    if top:
        leader = top[0]
        items.append(
            f"Suggestion: cutting {leader.category} by 20% saves "
            f"{money(leader.total * SUGGESTED_CUT)} this month."
        )
    if stats.net_month > 0:
        weekly = stats.net_month / WEEKS_PER_MONTH
        items.append(f"Savings: your surplus allows setting aside {money(weekly)} per week.")
    forecast = forecast_month_end(stats)
    if forecast is not None:
        items.append(f"Projected balance at month end: {money(forecast)}.")

    return items[:MAX_INSIGHTS]

