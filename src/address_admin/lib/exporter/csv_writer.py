"""CSV formatting for address records."""

import csv
import io
from collections.abc import Iterable
from pathlib import Path
from typing import Any

# Characters that trigger formula execution in spreadsheet applications
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")

# (header, record attribute) in output order
ADDRESS_COLUMNS: list[tuple[str, str]] = [
    ("Salutation", "salutation"),
    ("First Name", "first_name"),
    ("Last Name", "last_name"),
    ("Company", "company"),
    ("Street", "street"),
    ("House Number", "house_number"),
    ("City", "city"),
    ("Postal Code", "postal_code"),
    ("Country", "country"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Mobile", "mobile"),
]

HEADER = [header for header, _ in ADDRESS_COLUMNS]


def _sanitize_cell(value: str) -> str:
    """Prefix values starting with a formula-triggering character with a single quote."""
    if value and value[0] in _FORMULA_PREFIXES:
        return f"'{value}"
    return value


def _cell(record: Any, attribute: str) -> str:
    value = record.get(attribute) if isinstance(record, dict) else getattr(record, attribute, None)
    return "" if value is None else str(value)


def format_addresses_csv(records: Iterable[Any], *, sanitize_formulas: bool = False) -> str:
    """Render address records as CSV text.

    Fields containing a comma, double quote or line break are wrapped in
    double quotes with embedded quotes doubled; ``None`` renders as an empty
    field.  Rows are separated by ``\\n`` and appear in input order.

    Args:
        records: Address ORM instances or dicts keyed by attribute name.
        sanitize_formulas: Neutralize cells that spreadsheets would
            evaluate as formulas.

    Returns:
        The CSV document, header row first, without a trailing newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(HEADER)
    for record in records:
        row = [_cell(record, attribute) for _, attribute in ADDRESS_COLUMNS]
        if sanitize_formulas:
            row = [_sanitize_cell(value) for value in row]
        writer.writerow(row)
    return buffer.getvalue().removesuffix("\n")


def write_csv(output_path: Path, records: Iterable[Any], *, sanitize_formulas: bool = False) -> int:
    """Write address records to a CSV file.

    Args:
        output_path: Path to write the CSV file.
        records: Address ORM instances or dicts.
        sanitize_formulas: See ``format_addresses_csv``.

    Returns:
        Number of records written.
    """
    rows = list(records)
    content = format_addresses_csv(rows, sanitize_formulas=sanitize_formulas)
    output_path.write_text(content + "\n", encoding="utf-8", newline="")
    return len(rows)
