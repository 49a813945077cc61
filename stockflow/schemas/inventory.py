from typing import Optional, List

from stockflow.schemas.base import BaseSchema


class ReconciliationRow(BaseSchema):
    sku: str
    stock: int

class ReconciliationReport(BaseSchema):
    stock_export_time: Optional[str] = None
    exported_at: Optional[str] = None
    valid_rows: List[ReconciliationRow] = []
    unparsed_rows: List[str] = []
