from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from database import SessionLocal, session_scope
from models import TransactionRecord
from schemas import Transaction


logger = logging.getLogger(__name__)


class TransactionNotFound(LookupError):
    pass


class TransactionRepository(Protocol):
    def load(self) -> list[Transaction]: ...

    def save(self, transactions: list[Transaction]) -> None: ...


class MemoryTransactionRepository:
    def __init__(self, transactions: Optional[Iterable[Transaction]] = None) -> None:
        self.saved: list[Transaction] = list(transactions or [])
        self.save_count = 0

    def load(self) -> list[Transaction]:
        return list(self.saved)

    def save(self, transactions: list[Transaction]) -> None:
        self.saved = list(transactions)
        self.save_count += 1


class SQLTransactionRepository:
    """Persists the whole collection, keeping its order in `position`."""

    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self.session_factory = session_factory

    def load(self) -> list[Transaction]:
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                select(TransactionRecord).order_by(TransactionRecord.position)
            ).all()
            return [
                Transaction(
                    id=row.id,
                    date=row.date,
                    type=row.type,
                    category=row.category,
                    amount=row.amount,
                    note=row.note or "",
                )
                for row in rows
            ]

    def save(self, transactions: list[Transaction]) -> None:
        with session_scope(self.session_factory) as session:
            session.execute(delete(TransactionRecord))
            session.add_all(
                TransactionRecord(
                    id=txn.id,
                    position=idx,
                    date=txn.date,
                    type=txn.type,
                    category=txn.category,
                    amount=txn.amount,
                    note=txn.note,
                )
                for idx, txn in enumerate(transactions)
            )
        logger.info(f"store_saved: count={len(transactions)}")


class TransactionStore:
    """The canonical, insertion-ordered transaction collection.

    Loads once from its repository and writes the full collection back after
    every mutation.
    """

    def __init__(self, repository: TransactionRepository) -> None:
        self.repository = repository
        self._transactions: list[Transaction] = repository.load()

    def _commit(self) -> None:
        self.repository.save(list(self._transactions))

    def all(self) -> list[Transaction]:
        return list(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def _index(self, transaction_id: str) -> int:
        for idx, txn in enumerate(self._transactions):
            if txn.id == transaction_id:
                return idx
        raise TransactionNotFound(f"Transaction {transaction_id} not found")

    def get(self, transaction_id: str) -> Transaction:
        return self._transactions[self._index(transaction_id)]

    def add(self, txn: Transaction) -> Transaction:
        if any(existing.id == txn.id for existing in self._transactions):
            raise ValueError(f"Transaction {txn.id} already exists")
        self._transactions.append(txn)
        self._commit()
        return txn

    def add_many(self, transactions: Iterable[Transaction]) -> int:
        known = {txn.id for txn in self._transactions}
        added = 0
        for txn in transactions:
            if txn.id in known:
                continue
            known.add(txn.id)
            self._transactions.append(txn)
            added += 1
        if added:
            self._commit()
        return added

    def update(self, transaction_id: str, **changes: object) -> Transaction:
        idx = self._index(transaction_id)
        changes.pop("id", None)
        current = self._transactions[idx]
        updated = Transaction.model_validate({**current.model_dump(), **changes})
        self._transactions[idx] = updated
        self._commit()
        return updated

    def remove(self, transaction_id: str) -> None:
        idx = self._index(transaction_id)
        del self._transactions[idx]
        self._commit()

    def clear(self) -> None:
        self._transactions = []
        self._commit()

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        self._transactions = list(transactions)
        self._commit()
