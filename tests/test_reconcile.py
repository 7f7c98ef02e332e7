from datetime import date

from models import TransactionType
from reconcile import content_key, merge_transactions
from schemas import Transaction


def _txn(id: str, amount: float = 10, **over) -> Transaction:
    return Transaction(
        id=id,
        date=over.get("date", date(2024, 5, 1)),
        type=over.get("type", TransactionType.expense),
        category=over.get("category", "Food"),
        amount=amount,
        note=over.get("note", ""),
    )


def test_merge_appends_new_records_after_existing() -> None:
    existing = [_txn("a", 1), _txn("b", 2)]
    incoming = [_txn("c", 3), _txn("d", 4)]

    result = merge_transactions(existing, incoming)

    assert [t.id for t in result.merged] == ["a", "b", "c", "d"]
    assert (result.added, result.skipped) == (2, 0)


def test_merging_same_batch_twice_adds_nothing() -> None:
    batch = [_txn("a", 1), _txn("b", 2), _txn("c", 3)]
    first = merge_transactions([], batch)
    second = merge_transactions(first.merged, batch)

    assert first.added == 3
    assert (second.added, second.skipped) == (0, 3)
    assert second.merged == first.merged


def test_reidentified_reimport_is_skipped_by_content() -> None:
    existing = [_txn("a", 12.5, note="lunch"), _txn("b", 40, category="Fuel")]
    reexported = [
        _txn("new-1", 12.5, note="lunch"),
        _txn("new-2", 40, category="Fuel"),
    ]

    result = merge_transactions(existing, reexported)

    assert (result.added, result.skipped) == (0, 2)
    assert [t.id for t in result.merged] == ["a", "b"]


def test_duplicates_within_incoming_batch_are_skipped() -> None:
    incoming = [_txn("x", 5), _txn("y", 5), _txn("x", 6)]

    result = merge_transactions([], incoming)

    assert [t.id for t in result.merged] == ["x"]
    assert (result.added, result.skipped) == (1, 2)


def test_content_key_distinguishes_note_and_amount() -> None:
    base = _txn("a", 10)
    assert content_key(base) == ("2024-05-01", "Food", 10.0, "")
    assert content_key(_txn("b", 10, note="x")) != content_key(base)
    assert content_key(_txn("c", 10.01)) != content_key(base)
    # type is not part of the key
    assert content_key(_txn("d", 10, type=TransactionType.income)) == content_key(base)


def test_id_collision_skips_even_when_content_differs() -> None:
    result = merge_transactions([_txn("a", 1)], [_txn("a", 99, category="Other")])

    assert (result.added, result.skipped) == (0, 1)
    assert result.merged[0].amount == 1
