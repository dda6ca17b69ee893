"""Tests for the CSV importer."""

import csv
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select

from app.features.sales.importer import import_sales_csv, parse_tags, row_to_record
from app.features.sales.models import SaleRecord, SaleRecordTag

HEADERS = [
    "Customer ID",
    "Customer Name",
    "Phone Number",
    "Gender",
    "Age",
    "Customer Region",
    "Customer Type",
    "Product ID",
    "Product Name",
    "Brand",
    "Product Category",
    "Tags",
    "Quantity",
    "Price per Unit",
    "Discount Percentage",
    "Total Amount",
    "Final Amount",
    "Date",
    "Payment Method",
    "Order Status",
    "Delivery Type",
    "Store ID",
    "Store Location",
    "Salesperson ID",
    "Employee Name",
]


def make_row(index: int, **overrides: str) -> dict[str, str]:
    row = {
        "Customer ID": f"CUST-{index:04d}",
        "Customer Name": f"Customer {index}",
        "Phone Number": f"98765{index:05d}",
        "Gender": "Female" if index % 2 else "Male",
        "Age": str(20 + index),
        "Customer Region": "North",
        "Customer Type": "Regular",
        "Product ID": f"PROD-{index:04d}",
        "Product Name": "Face Cream",
        "Brand": "Glow",
        "Product Category": "Beauty",
        "Tags": "organic,skincare",
        "Quantity": "2",
        "Price per Unit": "250.00",
        "Discount Percentage": "10",
        "Total Amount": "500.00",
        "Final Amount": "450.00",
        "Date": "2023-02-20",
        "Payment Method": "UPI",
        "Order Status": "Completed",
        "Delivery Type": "Standard",
        "Store ID": "ST-01",
        "Store Location": "Mumbai",
        "Salesperson ID": "EMP-7",
        "Employee Name": "Ravi",
    }
    row.update(overrides)
    return row


def write_csv(path: Path, rows: list[dict[str, str]]) -> Path:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=HEADERS)
        writer.writeheader()
        writer.writerows(rows)
    return path


async def count_rows(session_maker, model) -> int:
    async with session_maker() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestParsing:
    """Tests for cell conversion."""

    def test_parse_tags(self):
        assert parse_tags(" organic, skincare ,organic,, ") == ["organic", "skincare"]
        assert parse_tags("") == []
        assert parse_tags(None) == []

    def test_row_to_record(self):
        record = row_to_record(make_row(1))

        assert record.customer_name == "Customer 1"
        assert record.age == 21
        assert record.quantity == 2
        assert record.total_amount == Decimal("500.00")
        assert record.final_amount == Decimal("450.00")
        assert record.date == date(2023, 2, 20)
        assert [tag.tag for tag in record.tags] == ["organic", "skincare"]

    def test_blank_and_bad_cells_become_null(self):
        """Unparsable numbers and dates are stored as NULL, not rejected."""
        record = row_to_record(
            make_row(1, Age="", Quantity="many", **{"Total Amount": "n/a", "Date": "someday"})
        )

        assert record.age is None
        assert record.quantity is None
        assert record.total_amount is None
        assert record.date is None

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan", "1e400", "3000000000"])
    def test_out_of_range_integers_become_null(self, value):
        """Integers that cannot be stored in an INTEGER column are NULL."""
        record = row_to_record(make_row(1, Age=value, Quantity=value))

        assert record.age is None
        assert record.quantity is None

    @pytest.mark.parametrize("value", ["Infinity", "NaN", "-inf", "1234567890123", "1e20"])
    def test_out_of_range_decimals_become_null(self, value):
        """Decimals that overflow NUMERIC(14, 2) or are not finite are NULL."""
        record = row_to_record(
            make_row(1, **{"Total Amount": value, "Final Amount": "9999999999.99"})
        )

        assert record.total_amount is None
        assert record.final_amount == Decimal("9999999999.99")

    def test_discount_precision_is_column_specific(self):
        record = row_to_record(make_row(1, **{"Discount Percentage": "1000"}))
        assert record.discount_percentage is None

        record = row_to_record(make_row(1, **{"Discount Percentage": "999.99"}))
        assert record.discount_percentage == Decimal("999.99")

    def test_long_text_is_truncated_to_column(self):
        record = row_to_record(
            make_row(1, **{"Customer Name": "N" * 300, "Customer Region": "R" * 80})
        )

        assert record.customer_name == "N" * 200
        assert record.customer_region == "R" * 50

    def test_long_tags_are_truncated_and_deduplicated(self):
        """Tags longer than the tag column share a prefix after cutting."""
        tags = parse_tags(f"{'t' * 60},{'t' * 70}, short")

        assert tags == ["t" * 50, "short"]

    def test_missing_columns(self):
        record = row_to_record({"Customer Name": "  Only Name  "})

        assert record.customer_name == "Only Name"
        assert record.phone_number is None
        assert record.tags == []


@pytest.mark.asyncio
class TestImportSalesCsv:
    """Tests for import_sales_csv."""

    async def test_imports_in_batches(self, session_maker, tmp_path):
        csv_path = write_csv(tmp_path / "sales.csv", [make_row(i) for i in range(5)])

        result = await import_sales_csv(session_maker, csv_path, batch_size=2)

        assert result.rows_read == 5
        assert result.inserted == 5
        assert result.batches == 3
        assert result.wiped is False
        assert await count_rows(session_maker, SaleRecord) == 5
        assert await count_rows(session_maker, SaleRecordTag) == 10

    async def test_respects_max_records(self, session_maker, tmp_path):
        csv_path = write_csv(tmp_path / "sales.csv", [make_row(i) for i in range(5)])

        result = await import_sales_csv(session_maker, csv_path, batch_size=2, max_records=3)

        assert result.inserted == 3
        assert result.batches == 2
        assert await count_rows(session_maker, SaleRecord) == 3

    async def test_wipe_replaces_existing(self, session_maker, tmp_path):
        csv_path = write_csv(tmp_path / "sales.csv", [make_row(i) for i in range(2)])
        await import_sales_csv(session_maker, csv_path)

        result = await import_sales_csv(session_maker, csv_path, wipe=True)

        assert result.wiped is True
        assert await count_rows(session_maker, SaleRecord) == 2
        assert await count_rows(session_maker, SaleRecordTag) == 4

    async def test_oversized_cells_do_not_fail_batch(self, session_maker, tmp_path):
        """A row with overflowing numbers and long text is stored alongside the rest."""
        odd = make_row(
            2,
            Quantity="inf",
            Tags=f"{'x' * 60},{'x' * 61}",
            **{"Product Name": "P" * 250, "Total Amount": "1e30"},
        )
        csv_path = write_csv(tmp_path / "sales.csv", [make_row(1), odd, make_row(3)])

        result = await import_sales_csv(session_maker, csv_path)

        assert result.inserted == 3
        async with session_maker() as session:
            query = select(SaleRecord).where(SaleRecord.customer_id == "CUST-0002")
            stored = (await session.execute(query)).scalar_one()
            tags = (
                await session.execute(
                    select(SaleRecordTag.tag).where(SaleRecordTag.sale_record_id == stored.id)
                )
            ).scalars().all()
        assert stored.quantity is None
        assert stored.total_amount is None
        assert stored.product_name == "P" * 200
        assert tags == ["x" * 50]

    async def test_missing_file(self, session_maker, tmp_path):
        with pytest.raises(FileNotFoundError):
            await import_sales_csv(session_maker, tmp_path / "missing.csv")
