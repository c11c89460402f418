"""Purchase history loading from CSV and Excel exports."""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from .config import HISTORY_EXTENSIONS

logger = logging.getLogger(__name__)

# Each field accepts the export's display header or its camelCase key
COLUMN_ALIASES: dict[str, tuple[str, str]] = {
    "order_number": ("Order Number", "orderNumber"),
    "order_date": ("Order Date", "orderDate"),
    "product_name": ("Product Name", "productName"),
    "quantity": ("Quantity", "quantity"),
    "price": ("Price", "price"),
    "delivery_status": ("Delivery Status", "deliveryStatus"),
    "product_link": ("Product Link", "productLink"),
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class HistoryError(Exception):
    """Exception raised for purchase history loading errors."""

    pass


@dataclass(frozen=True)
class PurchaseRecord:
    """One line of a historical order."""

    order_number: str
    order_date: str
    product_name: str
    quantity: int
    price: float
    delivery_status: str
    product_link: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "order_number": self.order_number,
            "order_date": self.order_date,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
            "delivery_status": self.delivery_status,
            "product_link": self.product_link,
        }


def parse_quantity(value: Any) -> int:
    """Parse the leading integer of a quantity cell ("2", "3.0", "2 items"), defaulting to 0."""
    match = _LEADING_INT.match(str(value or ""))
    return int(match.group(1)) if match else 0


def parse_price(value: Any) -> float:
    """Parse a price cell such as "$1,299.50", defaulting to 0.0."""
    cleaned = re.sub(r"[^\d.\-]", "", str(value or ""))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def _cell(row: Mapping[str, Any], field_name: str) -> str:
    for column in COLUMN_ALIASES[field_name]:
        value = row.get(column)
        if value is not None:
            return str(value)
    return ""


def records_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[PurchaseRecord]:
    """
    Convert raw table rows into purchase records.

    Rows without a product name (after trimming) are dropped.

    Args:
        rows: Row mappings keyed by column header

    Returns:
        Purchase records in row order
    """
    records = []
    for row in rows:
        product_name = _cell(row, "product_name")
        if not product_name.strip():
            continue
        records.append(
            PurchaseRecord(
                order_number=_cell(row, "order_number"),
                order_date=_cell(row, "order_date"),
                product_name=product_name,
                quantity=parse_quantity(_cell(row, "quantity")),
                price=parse_price(_cell(row, "price")),
                delivery_status=_cell(row, "delivery_status"),
                product_link=_cell(row, "product_link"),
            )
        )
    return records


def is_supported_file(path: str | Path) -> bool:
    """Check if a file has an accepted purchase history extension."""
    return str(path).lower().endswith(HISTORY_EXTENSIONS)


def _read_table(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    # First sheet only
    return pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False)


def load_purchase_history(path: str | Path) -> list[PurchaseRecord]:
    """
    Load purchase records from a CSV or Excel file.

    Args:
        path: Path to a .csv, .xlsx or .xls export

    Returns:
        Purchase records in file order

    Raises:
        HistoryError: If the file type is unsupported or the file can't be read
    """
    path = Path(path)
    if not is_supported_file(path):
        raise HistoryError(
            f"Unsupported file type '{path.suffix or path.name}'. "
            "Please use a CSV or Excel (.xlsx, .xls) file."
        )

    try:
        df = _read_table(path)
    except pd.errors.EmptyDataError:
        logger.debug("History file %s is empty", path.name)
        return []
    except (OSError, ValueError, ImportError) as e:
        raise HistoryError(f"Failed to read purchase history: {e}") from e

    df.columns = [str(col).strip() for col in df.columns]
    records = records_from_rows(df.to_dict(orient="records"))
    logger.debug("Loaded %d purchase records from %s (%d rows)", len(records), path.name, len(df))
    return records
