from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from models import TransactionType
from schemas import Transaction, new_transaction_id

MAX_FILE_BYTES = 2 * 1024 * 1024
MAX_ROWS = 2000

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Lower-cased source header -> canonical field name.
FIELD_LOOKUP: dict[str, str] = {
    "id": "id",
    "date": "date",
    "type": "type",
    "category": "category",
    "amount": "amount",
    "note": "note",
}


class RecordError(ValueError):
    pass


@dataclass
class ImportResult:
    transactions: list[Transaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @classmethod
    def failed(cls, message: str) -> "ImportResult":
        return cls([], [message])


def size_error(content: str | bytes, max_bytes: int = MAX_FILE_BYTES) -> Optional[str]:
    size = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
    if size > max_bytes:
        return f"File exceeds {round(max_bytes / 1024 / 1024)} MiB."
    return None


def truncation_notice(max_rows: int = MAX_ROWS) -> str:
    return f"File truncated to {max_rows} records."


def canonical_fields(raw: Mapping[Any, Any]) -> dict[str, Any]:
    """Resolve a raw row's keys through FIELD_LOOKUP, first match wins."""
    fields: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            continue
        name = FIELD_LOOKUP.get(key.strip().lower())
        if name and name not in fields:
            fields[name] = value
    return fields


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_amount(value: Any) -> float:
    if isinstance(value, bool):
        raise RecordError("amount must be numeric")
    if isinstance(value, (int, float)):
        try:
            amount = float(value)
        except OverflowError as exc:
            raise RecordError("amount must be finite") from exc
    else:
        text = _text(value)
        if not text:
            raise RecordError("amount is required")
        try:
            amount = float(text)
        except ValueError as exc:
            raise RecordError(f"invalid amount: {text}") from exc
    if not math.isfinite(amount):
        raise RecordError("amount must be finite")
    return amount


def build_transaction(raw: Mapping[Any, Any]) -> Transaction:
    fields = canonical_fields(raw)
    raw_type = _text(fields.get("type")).lower()
    raw_date = _text(fields.get("date"))
    category = _text(fields.get("category"))
    try:
        amount = parse_amount(fields.get("amount"))
    except RecordError:
        amount = None

    if not raw_date or not category or not raw_type or amount is None:
        raise RecordError("missing or invalid required fields.")
    if raw_type not in (TransactionType.income.value, TransactionType.expense.value):
        raise RecordError(f"type must be income or expense (got: {raw_type}).")
    if not ISO_DATE_RE.match(raw_date):
        raise RecordError(f"date must be YYYY-MM-DD (got: {raw_date}).")
    try:
        parsed_date = date.fromisoformat(raw_date)
    except ValueError as exc:
        raise RecordError(f"date is not a valid calendar date (got: {raw_date}).") from exc

    return Transaction(
        id=_text(fields.get("id")) or new_transaction_id(),
        date=parsed_date,
        type=TransactionType(raw_type),
        category=category,
        amount=amount,
        note=_text(fields.get("note")),
    )


def validate_records(
    rows: Iterable[Any],
    *,
    label: str,
    first_number: int,
) -> ImportResult:
    result = ImportResult()
    for number, raw in enumerate(rows, start=first_number):
        try:
            if not isinstance(raw, Mapping):
                raise RecordError("missing or invalid required fields.")
            result.transactions.append(build_transaction(raw))
        except RecordError as exc:
            result.errors.append(f"{label} {number}: {exc}")
    return result


def cap_rows(rows: list[Any], max_rows: int = MAX_ROWS) -> tuple[list[Any], bool]:
    if len(rows) > max_rows:
        return rows[:max_rows], True
    return rows, False
