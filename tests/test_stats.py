from datetime import date, datetime

from models import TransactionType
from schemas import Transaction
from stats import build_stats

NOW = datetime(2024, 12, 15, 12, 0)


def _txn(**over) -> Transaction:
    return Transaction(
        id=over.get("id", "1"),
        date=over.get("date", date(2024, 12, 1)),
        type=over.get("type", TransactionType.expense),
        category=over.get("category", "Test"),
        amount=over.get("amount", 100),
        note=over.get("note", ""),
    )


def test_month_totals_and_net() -> None:
    stats = build_stats(
        [
            _txn(id="1", type=TransactionType.income, category="Salary", amount=3000),
            _txn(id="2", category="Groceries", amount=500, date=date(2024, 12, 2)),
            _txn(id="3", category="Groceries", amount=200, date=date(2024, 12, 3)),
            _txn(id="4", category="Rent", amount=900, date=date(2024, 11, 5)),
            _txn(
                id="5",
                type=TransactionType.income,
                amount=100,
                date=date(2024, 11, 20),
            ),
        ],
        NOW,
    )

    assert stats.income_month == 3000
    assert stats.expense_month == 700
    assert stats.net_month == stats.income_month - stats.expense_month == 2300
    assert stats.income_prev_month == 100
    assert stats.expense_prev_month == 900
    assert stats.net_prev_month == -800


def test_category_totals_sum_to_month_expense() -> None:
    stats = build_stats(
        [
            _txn(id="1", category="Groceries", amount=120.5),
            _txn(id="2", category="Transport", amount=30),
            _txn(id="3", category="Groceries", amount=79.5),
            _txn(id="4", type=TransactionType.income, category="Salary", amount=999),
        ],
        NOW,
    )

    assert [c.category for c in stats.top_expenses_month] == ["Groceries", "Transport"]
    assert sum(c.total for c in stats.top_expenses_month) == stats.expense_month == 230


def test_category_grouping_is_case_sensitive_and_ties_are_lexical() -> None:
    stats = build_stats(
        [
            _txn(id="1", category="food", amount=50),
            _txn(id="2", category="Food", amount=50),
            _txn(id="3", category="Bills", amount=50),
        ],
        NOW,
    )

    assert [c.category for c in stats.top_expenses_month] == ["Bills", "Food", "food"]


def test_previous_month_rolls_over_year_boundary() -> None:
    stats = build_stats(
        [
            _txn(id="1", amount=400, date=date(2024, 12, 31)),
            _txn(id="2", amount=50, date=date(2025, 1, 2)),
        ],
        datetime(2025, 1, 10, 9, 0),
    )

    assert stats.expense_month == 50
    assert stats.expense_prev_month == 400
    assert stats.days_in_month == 31
    assert stats.day_of_month == 10


def test_trailing_windows_use_elapsed_time_cutoffs() -> None:
    stats = build_stats(
        [
            # cutoff for 30 days is 2024-11-15 12:00, so midnight of the 15th is out
            _txn(id="1", amount=10, date=date(2024, 11, 15)),
            _txn(id="2", amount=20, date=date(2024, 11, 16)),
            # cutoff for 7 days is 2024-12-08 12:00
            _txn(id="3", amount=40, date=date(2024, 12, 8)),
            _txn(id="4", amount=80, date=date(2024, 12, 9)),
            _txn(id="5", type=TransactionType.income, amount=5, date=date(2024, 12, 10)),
        ],
        NOW,
    )

    assert stats.expense_last30 == 140
    assert stats.expense_count_last30 == 3
    assert stats.income_last30 == 5
    assert stats.expense_week == 80
    assert stats.income_week == 5
    assert stats.net_week == -75
    assert stats.avg_daily_expense30 == 140 / 30


def test_biggest_expense_keeps_first_on_ties() -> None:
    stats = build_stats(
        [
            _txn(id="a", category="Travel", amount=500, date=date(2024, 12, 5)),
            _txn(id="b", category="Rent", amount=500, date=date(2024, 12, 6)),
            _txn(id="c", type=TransactionType.income, amount=9000),
        ],
        NOW,
    )

    assert stats.biggest_expense is not None
    assert stats.biggest_expense.id == "a"


def test_weekday_peak_and_tie_break() -> None:
    # 2024-12-01 is a Sunday, 2024-12-02 a Monday
    stats = build_stats(
        [
            _txn(id="1", amount=100, date=date(2024, 12, 1)),
            _txn(id="2", amount=150, date=date(2024, 12, 2)),
        ],
        NOW,
    )
    assert stats.day_peak == "Monday"

    tied = build_stats(
        [
            _txn(id="1", amount=100, date=date(2024, 12, 2)),
            _txn(id="2", amount=100, date=date(2024, 12, 1)),
        ],
        NOW,
    )
    assert tied.day_peak == "Sunday"


def test_income_only_window_has_no_expense_derived_values() -> None:
    stats = build_stats(
        [_txn(id="1", type=TransactionType.income, amount=1000)],
        NOW,
    )

    assert stats.day_peak is None
    assert stats.biggest_expense is None
    assert stats.avg_daily_expense30 == 0
    assert stats.top_expenses_month == ()
    assert stats.top_expenses_last30 == ()


def test_leap_february_days_in_month() -> None:
    stats = build_stats([_txn(date=date(2024, 2, 1))], datetime(2024, 2, 20, 8, 0))

    assert stats.days_in_month == 29
    assert stats.day_of_month == 20


def test_as_dict_serializes_snapshot() -> None:
    stats = build_stats([_txn(id="x", category="Food", amount=12)], NOW)
    payload = stats.as_dict()

    assert payload["expense_month"] == 12
    assert payload["net_month"] == -12
    assert payload["top_expenses_month"] == [{"category": "Food", "total": 12}]
    assert payload["biggest_expense"]["id"] == "x"
    assert payload["biggest_expense"]["date"] == "2024-12-01"
