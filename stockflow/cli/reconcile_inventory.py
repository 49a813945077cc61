# stockflow/cli/reconcile_inventory.py
import asyncio
import sys

import click

from stockflow.core.config import get_settings
from stockflow.core.exceptions import NotFoundError
from stockflow.core.logging_config import configure_logging
from stockflow.database import async_session, engine
from stockflow.services.inventory_service import InventoryService


@click.command()
@click.option("--path", "csv_path", default=None, help="CSV export to apply (defaults to INVENTORY_CSV_PATH)")
def reconcile_inventory(csv_path):
    """Apply a warehouse stock export once and print the report"""
    configure_logging()
    csv_path = csv_path or get_settings().INVENTORY_CSV_PATH

    async def _reconcile():
        try:
            async with async_session() as db:
                return await InventoryService(db).reconcile_inventory_from_csv(csv_path)
        finally:
            await engine.dispose()

    try:
        report = asyncio.run(_reconcile())
    except FileNotFoundError:
        click.echo(f"Export not found: {csv_path}", err=True)
        sys.exit(1)
    except NotFoundError as e:
        click.echo(f"Reconciliation aborted, nothing applied: {e}", err=True)
        sys.exit(1)

    click.echo(f"Export time: {report.exported_at or '-'} (stock at {report.stock_export_time or '-'})")
    click.echo(f"Applied {len(report.valid_rows)} row(s)")
    if report.unparsed_rows:
        click.echo(f"Unparsed {len(report.unparsed_rows)} line(s):")
        for line in report.unparsed_rows:
            click.echo(f"  {line}")


if __name__ == "__main__":
    reconcile_inventory()
