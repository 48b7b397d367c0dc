"""
Bulk transfer formats — parsing import payloads and serializing exports.

Import payloads are turned into a flat list of ``ImportRow``s. A row either
carries a ``(platform, key, value)`` triple or an ``error`` describing why
it was rejected; the vault upserts the former and counts the latter as
skipped, so one bad record never aborts a batch. The only fatal condition
is a JSON document that cannot be parsed at all.

CSV layout::

    platform,key,value
    openai,apiKey,sk-...
    "acme, inc",password,"p""w"

Security Note:
    Rows carry plaintext. Never log them, only their labels.
"""
import csv
import io
from collections.abc import Iterable
from typing import Any, NamedTuple, Optional

import orjson

from .exceptions import ImportParseError
from .models import ExportedCredential, ImportFormat

REQUIRED_FIELDS = ("platform", "key", "value")
CSV_HEADER = ["platform", "key", "value"]


class ImportRow(NamedTuple):
    label: str
    platform: str = ""
    key: str = ""
    value: str = ""
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line into fields.

    Double quotes toggle quoting character by character; inside quotes a
    comma is literal and ``""`` decodes to one ``"``. Fields are returned
    untrimmed.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and line[i + 1:i + 2] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == ',' and not in_quotes:
            fields.append(''.join(current))
            current = []
        else:
            current.append(char)
        i += 1
    fields.append(''.join(current))
    return fields


def parse_csv_payload(data: str) -> list[ImportRow]:
    """Parse a CSV payload into import rows.

    Blank lines are dropped. If the first remaining line mentions
    ``platform`` it is treated as a header. Line numbers in errors are
    1-based positions among the non-blank lines.
    """
    lines = [line for line in data.split("\n") if line.strip()]
    start = 1 if lines and 'platform' in lines[0].lower() else 0
    rows: list[ImportRow] = []
    for idx in range(start, len(lines)):
        label = f"Line {idx + 1}"
        fields = parse_csv_line(lines[idx])
        if len(fields) < 3:
            rows.append(ImportRow(
                label,
                error=f"{label}: expected at least 3 columns (platform, key, value)",
            ))
            continue
        platform, key, value = (field.strip() for field in fields[:3])
        rows.append(ImportRow(label, platform, key, value))
    return rows


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def _json_row(index: int, entry: Any) -> ImportRow:
    label = f"Entry {index}"
    if not isinstance(entry, dict) or not all(entry.get(f) for f in REQUIRED_FIELDS):
        return ImportRow(label, error=f"{label}: missing platform, key, or value")
    if not all(isinstance(entry[f], str) for f in REQUIRED_FIELDS):
        return ImportRow(label, error=f"{label}: platform, key and value must be strings")
    return ImportRow(label, entry["platform"], entry["key"], entry["value"])


def parse_json_payload(data: str) -> list[ImportRow]:
    """Parse a JSON object or array of objects into import rows.

    Raises:
        ImportParseError: If ``data`` is not a valid JSON document.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise ImportParseError(f"Failed to parse JSON: {err}") from err
    entries = parsed if isinstance(parsed, list) else [parsed]
    return [_json_row(i, entry) for i, entry in enumerate(entries, start=1)]


def parse_payload(data: str, fmt: ImportFormat) -> list[ImportRow]:
    if fmt is ImportFormat.CSV:
        return parse_csv_payload(data)
    return parse_json_payload(data)


# ---------------------------------------------------------------------------
# Export serialization
# ---------------------------------------------------------------------------

def dump_entries(
    entries: Iterable[ExportedCredential],
    fmt: ImportFormat = ImportFormat.JSON,
) -> str:
    """Serialize exported credentials into a payload ``import_credentials`` accepts.

    JSON preserves every value exactly. CSV trims fields on import, so
    surrounding whitespace is lost, and it cannot carry line breaks.

    Raises:
        ValueError: If a value with a line break is dumped as CSV.
    """
    fmt = ImportFormat(fmt)
    if fmt is ImportFormat.JSON:
        return orjson.dumps([entry.model_dump() for entry in entries]).decode("utf-8")

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in entries:
        row = [entry.platform, entry.key, entry.value]
        if any('\n' in field or '\r' in field for field in row):
            raise ValueError(
                f"Cannot dump {entry.platform}/{entry.key} as CSV: "
                "field contains a line break"
            )
        writer.writerow(row)
    return buffer.getvalue()
