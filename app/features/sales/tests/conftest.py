"""Fixtures for sales module tests.

Store-backed tests run against a throwaway SQLite file (aiosqlite) so the
real SQL path (filters, tag EXISTS, sorting, paging) is exercised without a
PostgreSQL server. A file rather than ``:memory:`` lets the page fetch and
count use separate pooled connections, as they do in production.
"""

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import Base
from app.features.sales.models import SaleRecord, SaleRecordTag
from app.features.sales.repository import SqlSalesStore
from app.features.sales.routes import get_sales_store
from app.main import app

# 8 records, Jan-Aug 2023, regions North/South/East/West (2 each)
SEED_RECORDS: list[dict[str, Any]] = [
    {
        "customer_name": "John Doe",
        "phone_number": "1234567890",
        "gender": "Male",
        "age": 25,
        "customer_region": "North",
        "product_category": "Electronics",
        "tags": ["premium", "warranty"],
        "payment_method": "Credit Card",
        "date": date(2023, 1, 15),
        "quantity": 2,
        "total_amount": Decimal("2000.00"),
        "final_amount": Decimal("1800.00"),
    },
    {
        "customer_name": "Jane Smith",
        "phone_number": "9876543210",
        "gender": "Female",
        "age": 30,
        "customer_region": "South",
        "product_category": "Beauty",
        "tags": ["organic", "skincare"],
        "payment_method": "UPI",
        "date": date(2023, 2, 20),
        "quantity": 5,
        "total_amount": Decimal("500.00"),
        "final_amount": Decimal("500.00"),
    },
    {
        "customer_name": "Bob Johnson",
        "phone_number": "5555555555",
        "gender": "Male",
        "age": 45,
        "customer_region": "East",
        "product_category": "Electronics",
        "tags": ["warranty", "discount"],
        "payment_method": "Debit Card",
        "date": date(2023, 3, 10),
        "quantity": 1,
        "total_amount": Decimal("1500.00"),
        "final_amount": Decimal("1200.00"),
    },
    {
        "customer_name": "Alice Brown",
        "phone_number": "1111222233",
        "gender": "Female",
        "age": 28,
        "customer_region": "West",
        "product_category": "Fashion",
        "tags": ["premium", "trending"],
        "payment_method": "UPI",
        "date": date(2023, 4, 5),
        "quantity": 3,
        "total_amount": Decimal("900.00"),
        "final_amount": Decimal("950.00"),
    },
    {
        "customer_name": "Charlie Wilson",
        "phone_number": "9999888877",
        "gender": "Male",
        "age": 35,
        "customer_region": "North",
        "product_category": "Beauty",
        "tags": ["organic"],
        "payment_method": "Credit Card",
        "date": date(2023, 5, 12),
        "quantity": 4,
        "total_amount": Decimal("400.00"),
        "final_amount": Decimal("360.00"),
    },
    {
        "customer_name": "Diana Prince",
        "phone_number": "7777666655",
        "gender": "Female",
        "age": 40,
        "customer_region": "South",
        "product_category": "Fashion",
        "tags": ["trending", "sale"],
        "payment_method": "Cash",
        "date": date(2023, 6, 18),
        "quantity": 2,
        "total_amount": Decimal("600.00"),
        "final_amount": Decimal("540.00"),
    },
    {
        "customer_name": "Eve Adams",
        "phone_number": "3333444455",
        "gender": "Female",
        "age": 22,
        "customer_region": "East",
        "product_category": "Electronics",
        "tags": ["premium"],
        "payment_method": "UPI",
        "date": date(2023, 7, 25),
        "quantity": 6,
        "total_amount": Decimal("3000.00"),
        "final_amount": Decimal("2700.00"),
    },
    {
        "customer_name": "Frank Miller",
        "phone_number": "6666777788",
        "gender": "Male",
        "age": 50,
        "customer_region": "West",
        "product_category": "Beauty",
        "tags": ["skincare", "organic"],
        "payment_method": "Debit Card",
        "date": date(2023, 8, 30),
        "quantity": 1,
        "total_amount": None,
        "final_amount": None,
    },
]


def make_record(tags: list[str] | None = None, **fields: Any) -> SaleRecord:
    """Build an unsaved SaleRecord with tag rows."""
    record = SaleRecord(**fields)
    record.tags = [SaleRecordTag(tag=tag) for tag in tags or []]
    return record


@pytest.fixture
async def session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session maker over an empty SQLite database file with the sales tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sales.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def seeded_session_maker(
    session_maker: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """Session maker over a database holding the 8 seed records."""
    async with session_maker() as session:
        session.add_all([make_record(**dict(record)) for record in SEED_RECORDS])
        await session.commit()
    return session_maker


@pytest.fixture
def sales_store(seeded_session_maker: async_sessionmaker[AsyncSession]) -> SqlSalesStore:
    """SQL store over the seeded database."""
    return SqlSalesStore(seeded_session_maker, timeout_seconds=5.0)


@pytest.fixture
async def client(sales_store: SqlSalesStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose sales endpoints read the seeded database."""
    app.dependency_overrides[get_sales_store] = lambda: sales_store
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_sales_store, None)
