import csv
import datetime
import io
from collections.abc import Mapping, Sequence

from dateutil import parser
from django.utils import timezone


def normalize_str(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def norm_csv_header(value: str) -> str:
    return "".join(ch for ch in value.strip().lower() if ch.isalnum())


def build_header_index(headers: Sequence[str]) -> dict[str, int]:
    """Map normalized header names to column positions; first occurrence wins."""
    index: dict[str, int] = {}
    for position, header in enumerate(headers):
        norm = norm_csv_header(header)
        if norm and norm not in index:
            index[norm] = position
    return index


def resolve_column_index(header_index: Mapping[str, int], *fallback_norms: str) -> int | None:
    for fallback in fallback_norms:
        resolved = header_index.get(norm_csv_header(fallback))
        if resolved is not None:
            return resolved
    return None


def cell(row: Sequence[str], position: int | None) -> str:
    if position is None or position >= len(row):
        return ""
    return normalize_str(row[position])


def is_blank_row(row: Sequence[str]) -> bool:
    return not any(normalize_str(value) for value in row)


def sanitize_csv_cell(value: str) -> str:
    """Prefix formula-starting characters so spreadsheets read the cell as text."""
    if value and value[0] in ("=", "+", "-", "@", "\t", "\r"):
        return f"'{value}"
    return value


def decode_csv_bytes(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("utf-8", errors="replace")


def read_csv_table(text: str) -> tuple[list[str], list[list[str]]]:
    """Split CSV text into (headers, rows). Rows keep their own width."""
    reader = csv.reader(io.StringIO(text))
    headers = [h.strip() for h in next(reader, [])]
    return headers, [list(row) for row in reader]


def parse_csv_bool(value: object) -> bool:
    normalized = normalize_str(value).lower()
    if not normalized:
        return False
    return normalized in {"1", "y", "yes", "true", "t"}


def parse_csv_datetime(value: object) -> datetime.datetime | None:
    """Parse a stored or operator-supplied timestamp; naive values are taken as UTC."""
    raw = normalize_str(value)
    if not raw:
        return None

    try:
        parsed = parser.parse(raw, dayfirst=False, yearfirst=True)
    except (parser.ParserError, TypeError, ValueError, OverflowError):
        return None

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone=datetime.UTC)
    return parsed
