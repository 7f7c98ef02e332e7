from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from schemas import Transaction

ContentKey = tuple[str, str, float, str]


@dataclass(frozen=True)
class MergeResult:
    merged: list[Transaction]
    added: int
    skipped: int


def content_key(txn: Transaction) -> ContentKey:
    return (txn.iso_date, txn.category, txn.amount, txn.note or "")


def merge_transactions(
    existing: Iterable[Transaction], incoming: Iterable[Transaction]
) -> MergeResult:
    """Union of two batches, skipping incoming records already known by id or content.

    Existing records keep their order; accepted incoming records follow in
    input order. Accepted records are indexed immediately, so duplicates inside
    the incoming batch are skipped as well.
    """
    by_id: dict[str, Transaction] = {}
    seen_keys: set[ContentKey] = set()
    for txn in existing:
        by_id[txn.id] = txn
        seen_keys.add(content_key(txn))

    added = 0
    skipped = 0
    for txn in incoming:
        key = content_key(txn)
        if txn.id in by_id or key in seen_keys:
            skipped += 1
            continue
        by_id[txn.id] = txn
        seen_keys.add(key)
        added += 1

    return MergeResult(merged=list(by_id.values()), added=added, skipped=skipped)
