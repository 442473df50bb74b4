"""Exporter library — CSV rendering of address records."""

from address_admin.lib.exporter.csv_writer import ADDRESS_COLUMNS, HEADER, format_addresses_csv, write_csv


def export_filename(day: str) -> str:
    """Download filename for an export produced on ``day`` (YYYY-MM-DD)."""
    return f"addresses_{day}.csv"


__all__ = [
    "ADDRESS_COLUMNS",
    "HEADER",
    "export_filename",
    "format_addresses_csv",
    "write_csv",
]
