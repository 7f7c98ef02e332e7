import csv
import re
from io import StringIO
from typing import Sequence

from records import (
    MAX_FILE_BYTES,
    MAX_ROWS,
    ImportResult,
    cap_rows,
    size_error,
    truncation_notice,
    validate_records,
)
from schemas import Transaction

EXPORT_HEADER = ["id", "date", "type", "category", "amount", "note"]

FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")
RISKY_CELL_RE = re.compile(r"^(?:cmd|powershell|https?://)", re.IGNORECASE)


def sanitize_csv_value(value: str) -> str:
    """Tab-prefix text a spreadsheet would evaluate as a formula or command."""
    text = (value or "").strip()
    if text.startswith(FORMULA_PREFIXES) or RISKY_CELL_RE.match(text):
        return "\t" + text
    return text


def format_amount(amount: float) -> str:
    return f"{amount:.15g}"


def _is_blank(raw: dict) -> bool:
    for key, value in raw.items():
        if key is None:
            if any((v or "").strip() for v in value):
                return False
        elif value is not None and str(value).strip():
            return False
    return True


def parse_csv(
    content: str,
    *,
    max_bytes: int = MAX_FILE_BYTES,
    max_rows: int = MAX_ROWS,
) -> ImportResult:
    too_big = size_error(content, max_bytes)
    if too_big:
        return ImportResult.failed(too_big)

    reader = csv.DictReader(StringIO(content.lstrip("\ufeff")))
    try:
        rows = [raw for raw in reader if not _is_blank(raw)]
    except csv.Error as exc:
        return ImportResult.failed(f"Invalid CSV: {exc}")

    rows, truncated = cap_rows(rows, max_rows)
    # the header is line 1
    result = validate_records(rows, label="Line", first_number=2)
    if truncated:
        result.errors.append(truncation_notice(max_rows))
    return result


def export_csv(transactions: Sequence[Transaction]) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_HEADER)
    for txn in transactions:
        writer.writerow(
            [
                txn.id,
                txn.iso_date,
                txn.type.value,
                sanitize_csv_value(txn.category),
                format_amount(txn.amount),
                sanitize_csv_value(txn.note or ""),
            ]
        )
    return output.getvalue()
