#!/usr/bin/env python
"""Import the sales dataset CSV into the record store.

Usage:
    # Import using settings (IMPORT_CSV_PATH, IMPORT_BATCH_SIZE, ...)
    uv run python scripts/import_sales_csv.py

    # Import a specific file, replacing existing records
    uv run python scripts/import_sales_csv.py --csv data/sales.csv --wipe

    # Import only the first 10k rows, creating tables if missing
    uv run python scripts/import_sales_csv.py --max-records 10000 --create-tables
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.database import Base, dispose_engine, get_engine, get_session_maker
from app.core.logging import configure_logging
from app.features.sales.importer import import_sales_csv


def positive_int(value: str) -> int:
    """argparse type for integers >= 1."""
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Not an integer: {value}") from e
    if number < 1:
        raise argparse.ArgumentTypeError(f"Must be at least 1: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Import sales records from CSV")
    parser.add_argument(
        "--csv",
        type=Path,
        default=Path(settings.import_csv_path),
        help=f"CSV file to import (default: {settings.import_csv_path})",
    )
    parser.add_argument(
        "--batch-size",
        type=positive_int,
        default=settings.import_batch_size,
        help=f"Rows per insert batch (default: {settings.import_batch_size})",
    )
    parser.add_argument(
        "--max-records",
        type=positive_int,
        default=settings.import_max_records,
        help=f"Maximum rows to import (default: {settings.import_max_records})",
    )
    parser.add_argument(
        "--wipe",
        action="store_true",
        default=settings.import_wipe_before,
        help="Delete existing records before importing",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the sales tables if they do not exist",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the import and print a summary."""
    print("SalesView - CSV Import")
    print("=" * 45)
    print(f"Reading CSV from: {args.csv}")
    print(f"Importing up to {args.max_records} records in batches of {args.batch_size}...")
    print()

    try:
        if args.create_tables:
            async with get_engine().begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("[OK] Tables ready")

        result = await import_sales_csv(
            get_session_maker(),
            args.csv,
            batch_size=args.batch_size,
            max_records=args.max_records,
            wipe=args.wipe,
        )
    except FileNotFoundError as e:
        print(f"[FAIL] {e}")
        return 1
    except SQLAlchemyError as e:
        print(f"[FAIL] Database error: {e}")
        return 1
    finally:
        await dispose_engine()

    if result.wiped:
        print("[OK] Existing data cleared")
    print(f"[OK] Inserted {result.inserted} records in {result.batches} batches")
    return 0


def main() -> None:
    configure_logging()
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
