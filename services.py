from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from config import Settings, get_settings
from csv_utils import export_csv, parse_csv
from insight_client import InsightClient, InsightProviderError
from insights import EMPTY_MESSAGE, build_insights
from json_utils import export_backup, export_json, parse_backup, parse_json
from reconcile import merge_transactions
from records import ImportResult
from schemas import (
    ImportSummary,
    InsightResult,
    InsightSource,
    Transaction,
    TransactionIn,
    TransactionPatch,
    new_transaction_id,
)
from stats import Stats, build_stats
from store import TransactionStore


logger = logging.getLogger(__name__)


def local_now(settings: Optional[Settings] = None) -> datetime:
    settings = settings or get_settings()
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def detect_format(
    content: str, filename: Optional[str] = None, content_type: Optional[str] = None
) -> str:
    if filename and filename.lower().endswith(".json"):
        return "json"
    if content_type and "json" in content_type.lower():
        return "json"
    if filename or content_type:
        return "csv"
    head = content.lstrip("\ufeff \t\r\n")[:1]
    return "json" if head in ("[", "{") else "csv"


def parse_import(
    content: str, filename: Optional[str] = None, content_type: Optional[str] = None
) -> ImportResult:
    if detect_format(content, filename, content_type) == "json":
        return parse_json(content)
    return parse_csv(content)


class TransactionService:
    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    def list_all(self) -> list[Transaction]:
        return self.store.all()

    def create(self, data: TransactionIn) -> Transaction:
        txn = Transaction(
            id=(data.id or "").strip() or new_transaction_id(),
            date=data.date,
            type=data.type,
            category=data.category.strip(),
            amount=data.amount,
            note=data.note.strip(),
        )
        return self.store.add(txn)

    def update(self, transaction_id: str, data: TransactionPatch) -> Transaction:
        changes = data.model_dump(exclude_none=True)
        return self.store.update(transaction_id, **changes)

    def delete(self, transaction_id: str) -> None:
        self.store.remove(transaction_id)

    def clear(self) -> None:
        self.store.clear()


class ImportService:
    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    def _apply(
        self, existing: Sequence[Transaction], result: ImportResult, source: str
    ) -> ImportSummary:
        merge = merge_transactions(existing, result.transactions)
        if result.transactions:
            self.store.replace_all(merge.merged)
        logger.info(
            f"{source}: parsed={len(result.transactions)} added={merge.added} "
            f"skipped={merge.skipped} errors={len(result.errors)}"
        )
        return ImportSummary(
            parsed=len(result.transactions),
            added=merge.added,
            skipped=merge.skipped,
            errors=result.errors,
        )

    def import_file(
        self,
        content: str,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ImportSummary:
        result = parse_import(content, filename, content_type)
        return self._apply(self.store.all(), result, "import")

    def restore_backup(self, content: str) -> ImportSummary:
        result = parse_backup(content)
        return self._apply([], result, "restore")


class ExportService:
    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    def csv(self) -> str:
        return export_csv(self.store.all())

    def json(self) -> str:
        return export_json(self.store.all())

    def backup(self, exported_at: Optional[datetime] = None) -> str:
        return export_backup(self.store.all(), exported_at)


class InsightsService:
    """Picks the remote or rule-based insight source and reports provenance."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[InsightClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or InsightClient(self.settings)

    def stats(
        self, transactions: Sequence[Transaction], now: Optional[datetime] = None
    ) -> Stats:
        return build_stats(transactions, now or local_now(self.settings))

    def get_insights(
        self, transactions: Sequence[Transaction], now: Optional[datetime] = None
    ) -> InsightResult:
        if not transactions:
            return InsightResult(data=[EMPTY_MESSAGE], source=InsightSource.local)

        stats = self.stats(transactions, now)
        currency_format = self.settings.currency_format

        if self.settings.remote_insights_enabled:
            start = time.perf_counter()
            try:
                data = self.client.fetch_insights(stats)
            except InsightProviderError as exc:
                logger.warning(f"insights: source=fallback error={exc}")
                return InsightResult(
                    data=build_insights(stats, currency_format),
                    source=InsightSource.fallback,
                    error=f"Remote insights failed: {exc}",
                )
            return InsightResult(
                data=data,
                source=InsightSource.remote,
                duration_ms=(time.perf_counter() - start) * 1000,
            )

        start = time.perf_counter()
        data = build_insights(stats, currency_format)
        return InsightResult(
            data=data,
            source=InsightSource.local,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
