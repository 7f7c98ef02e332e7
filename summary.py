"""Filtering and summary figures for a list of transactions.

Stats and insights run over the filtered view. Category and month pickers are
built from the full collection.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from schemas import Transaction

MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass
class TransactionFilters:
    month: Optional[str] = None
    category: Optional[str] = None
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    query: Optional[str] = None

    def matches(self, txn: Transaction) -> bool:
        if self.month and not txn.iso_date.startswith(self.month):
            return False
        if self.category and txn.category != self.category:
            return False
        if self.date_from and txn.date < self.date_from:
            return False
        if self.date_to and txn.date > self.date_to:
            return False
        term = (self.query or "").strip().lower()
        if term and term not in txn.category.lower() and term not in txn.note.lower():
            return False
        return True


def filter_transactions(
    transactions: Iterable[Transaction], filters: Optional[TransactionFilters] = None
) -> list[Transaction]:
    if filters is None:
        return list(transactions)
    return [txn for txn in transactions if filters.matches(txn)]


def totals(transactions: Iterable[Transaction]) -> dict[str, float]:
    income = 0.0
    expense = 0.0
    for txn in transactions:
        if txn.is_expense:
            expense += txn.amount
        else:
            income += txn.amount
    return {"income": income, "expense": expense, "balance": income - expense}


def monthly_series(transactions: Iterable[Transaction]) -> list[dict[str, object]]:
    # Buckets are calendar months; years fold together.
    series = [
        {"month": label, "income": 0.0, "expense": 0.0, "net": 0.0}
        for label in MONTH_LABELS
    ]
    for txn in transactions:
        bucket = series[txn.date.month - 1]
        key = "expense" if txn.is_expense else "income"
        bucket[key] += txn.amount
        bucket["net"] = bucket["income"] - bucket["expense"]
    return series


def category_totals(transactions: Iterable[Transaction]) -> list[dict[str, object]]:
    """Net per category (income positive), largest magnitude first."""
    net: dict[str, float] = {}
    for txn in transactions:
        signed = -txn.amount if txn.is_expense else txn.amount
        net[txn.category] = net.get(txn.category, 0.0) + signed
    ranked = sorted(net.items(), key=lambda item: abs(item[1]), reverse=True)
    return [{"category": category, "total": total} for category, total in ranked]


def categories(transactions: Iterable[Transaction]) -> list[str]:
    return sorted({txn.category for txn in transactions})


def months(transactions: Iterable[Transaction]) -> list[str]:
    return sorted({txn.month_key for txn in transactions}, reverse=True)


def build_summary(
    transactions: Sequence[Transaction], filters: Optional[TransactionFilters] = None
) -> dict[str, object]:
    view = filter_transactions(transactions, filters)
    return {
        "count": len(view),
        "totals": totals(view),
        "monthly": monthly_series(view),
        "categories": category_totals(view),
        "category_options": categories(transactions),
        "month_options": months(transactions),
    }
