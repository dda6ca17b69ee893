"""Bulk CSV import of sales transactions.

Reads the dataset in fixed-size chunks with pandas and inserts each chunk in
its own transaction, so memory stays flat regardless of file size. Cells
are read as strings and converted here; blank, unparsable or out-of-range
numeric and date cells become NULL rather than failing the row, and text
longer than its column is truncated to fit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import pandas as pd
from sqlalchemy import FromClause, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logging import get_logger
from app.features.sales.models import SaleRecord, SaleRecordTag

logger = get_logger(__name__)

# CSV header -> SaleRecord attribute, for plain text columns
TEXT_COLUMNS: dict[str, str] = {
    "Customer ID": "customer_id",
    "Customer Name": "customer_name",
    "Phone Number": "phone_number",
    "Gender": "gender",
    "Customer Region": "customer_region",
    "Customer Type": "customer_type",
    "Product ID": "product_id",
    "Product Name": "product_name",
    "Brand": "brand",
    "Product Category": "product_category",
    "Payment Method": "payment_method",
    "Order Status": "order_status",
    "Delivery Type": "delivery_type",
    "Store ID": "store_id",
    "Store Location": "store_location",
    "Salesperson ID": "salesperson_id",
    "Employee Name": "employee_name",
}
INT_COLUMNS: dict[str, str] = {
    "Age": "age",
    "Quantity": "quantity",
}
DECIMAL_COLUMNS: dict[str, str] = {
    "Price per Unit": "price_per_unit",
    "Discount Percentage": "discount_percentage",
    "Total Amount": "total_amount",
    "Final Amount": "final_amount",
}

# Bounds of the SQL INTEGER type used for age and quantity
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


@dataclass
class ImportResult:
    """Outcome of an import run."""

    rows_read: int = 0
    inserted: int = 0
    batches: int = 0
    wiped: bool = False


def column_length(table: FromClause, name: str) -> int | None:
    """Declared length of a string column, ``None`` when unbounded."""
    length: int | None = getattr(table.c[name].type, "length", None)
    return length


TAG_MAX_LENGTH = column_length(SaleRecordTag.__table__, "tag")


def _fit(text: str, length: int | None) -> str:
    return text[:length] if length else text


def parse_tags(value: str | None) -> list[str]:
    """Split a comma-separated tag cell, trimming and de-duplicating.

    Tags are cut to the tag column length before de-duplication, so two long
    tags sharing a prefix collapse into one.
    """
    if not value:
        return []
    tags: list[str] = []
    for part in value.split(","):
        tag = _fit(part.strip(), TAG_MAX_LENGTH)
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _parse_int(value: str | None) -> int | None:
    if not value or not value.strip():
        return None
    try:
        number = int(float(value))
    except (ValueError, OverflowError):
        return None
    return number if INT_MIN <= number <= INT_MAX else None


def _parse_decimal(value: str | None, attr: str) -> Decimal | None:
    """Parse a decimal cell, ``None`` when it does not fit ``NUMERIC(p, s)``."""
    if not value or not value.strip():
        return None
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    column_type = SaleRecord.__table__.c[attr].type
    precision = getattr(column_type, "precision", None)
    scale = getattr(column_type, "scale", None) or 0
    if precision is not None and abs(number) >= Decimal(10) ** (precision - scale):
        return None
    return number


def _parse_date(value: str | None) -> date | None:
    if not value or not value.strip():
        return None
    parsed = pd.to_datetime(value.strip(), errors="coerce")
    if pd.isna(parsed):
        return None
    result: date = parsed.date()
    return result


def row_to_record(row: dict[str, Any]) -> SaleRecord:
    """Map one CSV row (header -> cell string) to a SaleRecord with tags.

    Args:
        row: Raw CSV row; missing headers are treated as blank.

    Returns:
        Unsaved SaleRecord instance.
    """
    values: dict[str, Any] = {}
    table = SaleRecord.__table__
    for header, attr in TEXT_COLUMNS.items():
        cell = row.get(header)
        text = cell.strip() if isinstance(cell, str) else ""
        values[attr] = _fit(text, column_length(table, attr)) if text else None
    for header, attr in INT_COLUMNS.items():
        values[attr] = _parse_int(row.get(header))
    for header, attr in DECIMAL_COLUMNS.items():
        values[attr] = _parse_decimal(row.get(header), attr)
    values["date"] = _parse_date(row.get("Date"))

    record = SaleRecord(**values)
    record.tags = [SaleRecordTag(tag=tag) for tag in parse_tags(row.get("Tags"))]
    return record


async def import_sales_csv(
    session_maker: async_sessionmaker[AsyncSession],
    csv_path: Path,
    batch_size: int = 5000,
    max_records: int = 1_000_000,
    wipe: bool = False,
) -> ImportResult:
    """Import a sales CSV into the record store.

    Args:
        session_maker: Session maker for the target database.
        csv_path: Path to the CSV file.
        batch_size: Rows per insert transaction.
        max_records: Stop after this many rows.
        wipe: Delete all existing records first.

    Returns:
        Counts of rows read and inserted.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found at: {csv_path}")

    result = ImportResult()

    if wipe:
        async with session_maker() as session:
            await session.execute(delete(SaleRecordTag))
            await session.execute(delete(SaleRecord))
            await session.commit()
        result.wiped = True
        logger.info("sales_import.wiped")

    logger.info(
        "sales_import.started",
        path=str(csv_path),
        batch_size=batch_size,
        max_records=max_records,
    )

    reader = pd.read_csv(
        csv_path,
        dtype=str,
        keep_default_na=False,
        chunksize=batch_size,
    )
    with reader:
        for chunk in reader:
            remaining = max_records - result.rows_read
            if remaining <= 0:
                break
            rows = chunk.head(remaining).to_dict(orient="records")
            result.rows_read += len(rows)

            records = [row_to_record(row) for row in rows]
            async with session_maker() as session:
                session.add_all(records)
                await session.commit()

            result.inserted += len(records)
            result.batches += 1
            logger.info(
                "sales_import.batch_inserted",
                batch=result.batches,
                inserted=result.inserted,
            )

    logger.info(
        "sales_import.completed",
        rows_read=result.rows_read,
        inserted=result.inserted,
        batches=result.batches,
    )
    return result
