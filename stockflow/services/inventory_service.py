"""
Nightly reconciliation of variation stock against the warehouse CSV export.

The export is a list of ``sku,stock`` lines, optionally closed by a footer:

    id=2025-01-01T00:00:00.000Z,stock=08:00

The footer carries the export timestamp and the stock-count time and is never
treated as data. Malformed lines are reported, not applied. Valid rows overwrite
stock in one transaction; a single unknown SKU aborts the whole run.
"""

import csv
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.core.exceptions import NotFoundError
from stockflow.core.utils import utcnow
from stockflow.models.product import ProductVariation
from stockflow.schemas.inventory import ReconciliationReport, ReconciliationRow

logger = logging.getLogger(__name__)

FOOTER_PATTERN = re.compile(
    r"^id=(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z),stock=(\d{2}:\d{2})$"
)
LINE_SPLIT = re.compile(r"\r?\n")


def parse_row(line: str) -> Optional[ReconciliationRow]:
    """Parse one ``sku,stock`` line, or None if it is not a valid row."""
    fields = next(csv.reader([line]), [])
    if len(fields) != 2:
        return None

    sku, raw_stock = fields[0].strip(), fields[1].strip()
    if not sku or not raw_stock.isdecimal():
        return None
    return ReconciliationRow(sku=sku, stock=int(raw_stock))


def parse_export(content: str) -> ReconciliationReport:
    """
    Split an export into its footer, valid rows and unparsed lines.

    The file's last line is never reported as unparsed: it is either the
    footer or, in exports cut short, a possibly truncated row.
    """
    lines = [line for line in LINE_SPLIT.split(content) if line.strip()]
    report = ReconciliationReport()
    if not lines:
        return report

    footer = FOOTER_PATTERN.match(lines[-1].strip())
    if footer:
        report.exported_at, report.stock_export_time = footer.group(1), footer.group(2)
        data_lines: List[Tuple[int, str]] = list(enumerate(lines[:-1]))
    else:
        data_lines = list(enumerate(lines))

    last_index = len(lines) - 1
    for index, line in data_lines:
        row = parse_row(line)
        if row is not None:
            report.valid_rows.append(row)
        elif index != last_index:
            report.unparsed_rows.append(line)

    return report


class InventoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply_rows(self, rows: List[ReconciliationRow]) -> int:
        """
        Overwrite stock for every row in one transaction.

        Raises:
            NotFoundError: If any SKU matches no variation; nothing is applied
        """
        try:
            for row in rows:
                result = await self.db.execute(
                    update(ProductVariation)
                    .where(ProductVariation.sku == row.sku)
                    .values(stock=row.stock, updated_at=utcnow())
                )
                if result.rowcount == 0:
                    raise NotFoundError(f"SKU not found during reconciliation: {row.sku}")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return len(rows)

    async def reconcile_inventory_from_csv(self, path: Union[str, Path]) -> ReconciliationReport:
        """
        Read the export at ``path`` and apply its valid rows.

        Returns:
            ReconciliationReport with the footer times, applied rows and the
            lines that could not be parsed
        """
        content = Path(path).read_text(encoding="utf-8")
        report = parse_export(content)

        if report.unparsed_rows:
            logger.warning(f"{len(report.unparsed_rows)} unparsed line(s) in {path}")

        applied = await self.apply_rows(report.valid_rows)
        logger.info(
            f"Reconciled {applied} variation(s) from {path} "
            f"(exported at {report.exported_at or 'unknown'}, stock time {report.stock_export_time or 'unknown'})"
        )
        return report
