"""Sales query service: validation, concurrent store reads, result shaping."""

import asyncio
from typing import cast

from app.core.logging import get_logger
from app.features.sales.query import InvalidRange, build_query_spec
from app.features.sales.repository import SalesStoreProtocol
from app.features.sales.schemas import (
    FilterOptions,
    InvalidRangeResult,
    SaleRecordResponse,
    SalesPage,
    SalesQueryParams,
    SalesQueryResult,
    SalesSummary,
)
from app.shared.utils import page_meta

logger = get_logger(__name__)


class SalesService:
    """Paginated, filtered, sorted access to sales records.

    Malformed or contradictory filters come back as ``InvalidRangeResult``;
    only store faults raise (``StoreUnavailableError``).
    """

    def __init__(self, store: SalesStoreProtocol) -> None:
        self._store = store

    async def query(self, params: SalesQueryParams) -> SalesQueryResult:
        """Run a sales query from raw parameters.

        The page fetch and the count run concurrently and both must finish
        before a result is produced; if either fails the whole call fails.

        Args:
            params: Raw client parameters.

        Returns:
            A page of records with metadata, or an invalid-range result.

        Raises:
            StoreUnavailableError: If the store failed or timed out.
        """
        spec = build_query_spec(params)
        if isinstance(spec, InvalidRange):
            return self._invalid_range(spec)

        outcomes = await asyncio.gather(
            self._store.find_page(spec),
            self._store.count(spec),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        items, total_items = cast(tuple[list[SaleRecordResponse], int], tuple(outcomes))

        meta = page_meta(total_items, spec.window)

        if meta.page > meta.total_pages > 0:
            logger.info(
                "sales.page_out_of_range",
                page=meta.page,
                total_pages=meta.total_pages,
            )
            return SalesPage(
                **meta.model_dump(),
                items=[],
                message=f"Requested page {meta.page} exceeds total pages {meta.total_pages}",
            )

        logger.info(
            "sales.query_completed",
            total_items=meta.total_items,
            page=meta.page,
            page_size=meta.page_size,
            returned=len(items),
            sort_field=spec.sort_field.value,
            sort_direction=spec.sort_direction.value,
            filtered=spec.has_filters,
        )
        return SalesPage(**meta.model_dump(), items=items)

    async def summarize(self, params: SalesQueryParams) -> SalesSummary:
        """Aggregate totals over the whole filtered set.

        Sorting and pagination parameters are ignored.

        Raises:
            StoreUnavailableError: If the store failed or timed out.
        """
        spec = build_query_spec(params)
        if isinstance(spec, InvalidRange):
            logger.info("sales.invalid_range", message=spec.message, operation="summary")
            return SalesSummary(invalid_range=True, message=spec.message)

        summary = await self._store.summarize(spec)
        logger.info(
            "sales.summary_completed",
            total_records=summary.total_records,
            filtered=spec.has_filters,
        )
        return summary

    async def filter_options(self) -> FilterOptions:
        """Distinct values for the multi-select filters."""
        return await self._store.filter_options()

    @staticmethod
    def _invalid_range(invalid: InvalidRange) -> InvalidRangeResult:
        logger.info(
            "sales.invalid_range",
            message=invalid.message,
            page=invalid.window.page,
            page_size=invalid.window.page_size,
        )
        return InvalidRangeResult(
            page=invalid.window.page,
            page_size=invalid.window.page_size,
            total_items=0,
            total_pages=0,
            has_next_page=False,
            has_prev_page=False,
            message=invalid.message,
        )
