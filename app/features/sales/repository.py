"""Record store access for sales queries.

``SqlSalesStore`` translates a ``QuerySpec`` into SQLAlchemy statements. Every
operation opens its own session from the shared session maker, so a page
fetch and a count can run concurrently on separate pooled connections, and
every operation runs under the configured query timeout.

Store faults (driver errors, connection loss, timeouts) are raised as
``StoreUnavailableError``. They never turn into empty results.
"""

import asyncio
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any, Protocol, TypeVar, runtime_checkable

from sqlalchemy import ColumnElement, case, distinct, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import InstrumentedAttribute

from app.core.exceptions import StoreUnavailableError
from app.core.logging import get_logger
from app.features.sales.models import SaleRecord, SaleRecordTag
from app.features.sales.query import QuerySpec
from app.features.sales.schemas import (
    FilterOptions,
    SaleRecordResponse,
    SalesSummary,
    SortDirection,
    SortField,
)

logger = get_logger(__name__)

T = TypeVar("T")

# Explicit allow-list: client sort input never names a column directly.
SORT_COLUMNS: dict[SortField, InstrumentedAttribute[Any]] = {
    SortField.DATE: SaleRecord.date,
    SortField.QUANTITY: SaleRecord.quantity,
    SortField.CUSTOMER_NAME: SaleRecord.customer_name,
    SortField.TOTAL_AMOUNT: SaleRecord.total_amount,
    SortField.AGE: SaleRecord.age,
}

# Largest OFFSET a 64-bit SQL integer can carry
MAX_SQL_OFFSET = 2**63 - 1


@runtime_checkable
class SalesStoreProtocol(Protocol):
    """Read-only capabilities the sales service needs from a record store."""

    async def find_page(self, spec: QuerySpec) -> list[SaleRecordResponse]:
        """Fetch the sorted page window of records matching the spec."""
        ...

    async def count(self, spec: QuerySpec) -> int:
        """Count all records matching the query's filters."""
        ...

    async def summarize(self, spec: QuerySpec) -> SalesSummary:
        """Aggregate units, amounts and discounts over all matching records."""
        ...

    async def filter_options(self) -> FilterOptions:
        """List distinct values for each multi-select filter dimension."""
        ...


def build_conditions(spec: QuerySpec) -> list[ColumnElement[bool]]:
    """Translate a query's filters into a conjunction of SQL conditions.

    Values within one dimension are OR-ed (set membership); dimensions are
    AND-ed together.
    """
    conditions: list[ColumnElement[bool]] = []

    if spec.search:
        conditions.append(
            or_(
                SaleRecord.customer_name.icontains(spec.search, autoescape=True),
                SaleRecord.phone_number.icontains(spec.search, autoescape=True),
            )
        )
    if spec.regions:
        conditions.append(SaleRecord.customer_region.in_(spec.regions))
    if spec.genders:
        conditions.append(SaleRecord.gender.in_(spec.genders))
    if spec.product_categories:
        conditions.append(SaleRecord.product_category.in_(spec.product_categories))
    if spec.tags:
        conditions.append(SaleRecord.tags.any(SaleRecordTag.tag.in_(spec.tags)))
    if spec.payment_methods:
        conditions.append(SaleRecord.payment_method.in_(spec.payment_methods))
    if spec.age_min is not None:
        conditions.append(SaleRecord.age >= spec.age_min)
    if spec.age_max is not None:
        conditions.append(SaleRecord.age <= spec.age_max)
    if spec.date_from is not None:
        conditions.append(SaleRecord.date >= spec.date_from)
    if spec.date_to is not None:
        conditions.append(SaleRecord.date <= spec.date_to)

    return conditions


def _to_decimal(value: object) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value or 0))


class SqlSalesStore:
    """SQLAlchemy-backed sales record store."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        timeout_seconds: float,
    ) -> None:
        """Initialize the store.

        Args:
            session_maker: Process-wide session maker (shared connection pool).
            timeout_seconds: Deadline applied to each store operation.
        """
        self._session_maker = session_maker
        self._timeout = timeout_seconds

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        """Run one read operation in its own session under the timeout."""
        try:
            async with asyncio.timeout(self._timeout):
                async with self._session_maker() as session:
                    return await work(session)
        except TimeoutError as e:
            logger.error(
                "sales.store_timeout",
                operation=operation,
                timeout_seconds=self._timeout,
            )
            raise StoreUnavailableError(
                details={"operation": operation, "reason": "timeout"},
            ) from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "sales.store_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailableError(
                details={"operation": operation, "reason": type(e).__name__},
            ) from e

    async def find_page(self, spec: QuerySpec) -> list[SaleRecordResponse]:
        """Fetch one sorted page of matching records.

        Args:
            spec: Sanitized query spec.

        Returns:
            Records in the page window, converted while the session is open.
            Empty without a round trip when the window starts beyond
            ``MAX_SQL_OFFSET``.
        """
        if spec.window.offset > MAX_SQL_OFFSET:
            logger.info("sales.offset_beyond_store", page=spec.window.page)
            return []

        column = SORT_COLUMNS[spec.sort_field]
        order_by = column.asc() if spec.sort_direction is SortDirection.ASC else column.desc()
        stmt = (
            select(SaleRecord)
            .where(*build_conditions(spec))
            .order_by(order_by)
            .offset(spec.window.offset)
            .limit(spec.window.limit)
        )

        async def work(session: AsyncSession) -> list[SaleRecordResponse]:
            result = await session.execute(stmt)
            return [SaleRecordResponse.model_validate(row) for row in result.scalars().all()]

        return await self._run("find_page", work)

    async def count(self, spec: QuerySpec) -> int:
        """Count all records matching the query's filters."""
        stmt = select(func.count()).select_from(SaleRecord).where(*build_conditions(spec))

        async def work(session: AsyncSession) -> int:
            result = await session.execute(stmt)
            return int(result.scalar_one())

        return await self._run("count", work)

    async def summarize(self, spec: QuerySpec) -> SalesSummary:
        """Aggregate over every matching record in a single statement.

        Discount per record is ``max(0, total_amount - final_amount)``;
        records missing either amount contribute no discount.
        """
        discount = case(
            (
                SaleRecord.total_amount > SaleRecord.final_amount,
                SaleRecord.total_amount - SaleRecord.final_amount,
            ),
            else_=0,
        )
        stmt = select(
            func.count(SaleRecord.id),
            func.coalesce(func.sum(SaleRecord.quantity), 0),
            func.coalesce(func.sum(SaleRecord.total_amount), 0),
            func.coalesce(func.sum(discount), 0),
        ).where(*build_conditions(spec))

        async def work(session: AsyncSession) -> SalesSummary:
            row = (await session.execute(stmt)).one()
            return SalesSummary(
                total_records=int(row[0]),
                total_quantity=int(row[1]),
                total_amount=_to_decimal(row[2]),
                total_discount=_to_decimal(row[3]),
            )

        return await self._run("summarize", work)

    async def filter_options(self) -> FilterOptions:
        """List sorted distinct non-empty values for every filter dimension."""

        async def distinct_of(
            session: AsyncSession, column: InstrumentedAttribute[Any]
        ) -> list[str]:
            stmt = (
                select(distinct(column))
                .where(column.is_not(None), column != "")
                .order_by(column)
            )
            result = await session.execute(stmt)
            return [value for value in result.scalars().all() if value]

        async def work(session: AsyncSession) -> FilterOptions:
            return FilterOptions(
                regions=await distinct_of(session, SaleRecord.customer_region),
                genders=await distinct_of(session, SaleRecord.gender),
                product_categories=await distinct_of(session, SaleRecord.product_category),
                tags=await distinct_of(session, SaleRecordTag.tag),
                payment_methods=await distinct_of(session, SaleRecord.payment_method),
            )

        return await self._run("filter_options", work)
