import json
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from records import (
    MAX_FILE_BYTES,
    MAX_ROWS,
    ImportResult,
    cap_rows,
    size_error,
    truncation_notice,
    validate_records,
)
from schemas import BackupPayload, Transaction

BACKUP_VERSION = 1
INVALID_BACKUP = "Invalid or corrupted backup."


def _load(content: str) -> Any:
    return json.loads(content.lstrip("\ufeff"))


def _validate_list(items: list[Any], max_rows: int) -> ImportResult:
    items, truncated = cap_rows(items, max_rows)
    result = validate_records(items, label="Item", first_number=1)
    if truncated:
        result.errors.append(truncation_notice(max_rows))
    return result


def parse_json(
    content: str,
    *,
    max_bytes: int = MAX_FILE_BYTES,
    max_rows: int = MAX_ROWS,
) -> ImportResult:
    too_big = size_error(content, max_bytes)
    if too_big:
        return ImportResult.failed(too_big)
    try:
        parsed = _load(content)
    except json.JSONDecodeError as exc:
        return ImportResult.failed(f"Invalid JSON: {exc.msg}.")
    except RecursionError:
        return ImportResult.failed("Invalid JSON: nesting too deep.")
    if not isinstance(parsed, list):
        return ImportResult.failed("JSON must be a list of transactions.")
    return _validate_list(parsed, max_rows)


def parse_backup(
    content: str,
    *,
    max_bytes: int = MAX_FILE_BYTES,
    max_rows: int = MAX_ROWS,
) -> ImportResult:
    too_big = size_error(content, max_bytes)
    if too_big:
        return ImportResult.failed(too_big)
    try:
        parsed = _load(content)
    except (json.JSONDecodeError, RecursionError):
        return ImportResult.failed(INVALID_BACKUP)
    if (
        not isinstance(parsed, dict)
        or parsed.get("version") is None
        or not isinstance(parsed.get("transactions"), list)
    ):
        return ImportResult.failed(INVALID_BACKUP)
    return _validate_list(parsed["transactions"], max_rows)


def _records(transactions: Sequence[Transaction]) -> list[dict[str, Any]]:
    return [txn.model_dump(mode="json") for txn in transactions]


def export_json(transactions: Sequence[Transaction]) -> str:
    return json.dumps(_records(transactions), indent=2, ensure_ascii=False)


def export_backup(
    transactions: Sequence[Transaction], exported_at: Optional[datetime] = None
) -> str:
    payload = BackupPayload(
        version=BACKUP_VERSION,
        exported_at=exported_at or datetime.now(timezone.utc),
        transactions=list(transactions),
    )
    return payload.model_dump_json(by_alias=True, indent=2)
