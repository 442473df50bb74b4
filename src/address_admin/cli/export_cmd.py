"""Address export CLI commands."""

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import typer
from loguru import logger

from address_admin.lib.exporter import export_filename, write_csv

export_app = typer.Typer()


@export_app.command("csv")
def export_csv(
    search: str | None = typer.Option(None, "--search", "-s", help="Only export addresses matching this text"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file (default: addresses_<date>.csv)"),
) -> None:
    """Export addresses to a CSV file, newest first."""
    day = datetime.now(UTC).date().isoformat()
    count = asyncio.run(_export_csv(search, output or Path(export_filename(day))))
    typer.echo(f"Exported {count} addresses")


async def _export_csv(search: str | None, output: Path) -> int:
    """Async implementation of the CSV export."""
    from address_admin.core.config import get_settings
    from address_admin.core.database import session_scope
    from address_admin.services import address_service

    settings = get_settings()
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        total = await address_service.count_addresses(session, search_query=search)
        addresses, _ = await address_service.list_addresses(
            session,
            search_query=search,
            page=1,
            page_size=max(total, 1),
        )
    count = write_csv(output, addresses, sanitize_formulas=settings.export_sanitize_formulas)
    logger.info(f"Wrote {count} addresses to {output}")
    return count
