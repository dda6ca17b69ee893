"""API routes for sales record queries.

Thin boundary over ``SalesService``: parses query strings, dispatches, and
maps outcomes to status codes (200 page, 400 invalid range, 503 store
failure via the exception handlers, 500 anything else).
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.database import get_session_maker
from app.core.logging import get_logger
from app.core.problem_details import ProblemDetail
from app.features.sales.repository import SalesStoreProtocol, SqlSalesStore
from app.features.sales.schemas import (
    FilterOptions,
    InvalidRangeResult,
    SalesPage,
    SalesQueryParams,
    SalesSummary,
)
from app.features.sales.service import SalesService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/sales", tags=["sales"])

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {
        "model": InvalidRangeResult,
        "description": "Filter ranges are malformed or contradictory.",
    },
    status.HTTP_503_SERVICE_UNAVAILABLE: {
        "model": ProblemDetail,
        "description": "Record store unreachable or query timed out. Retryable.",
    },
}


# =============================================================================
# Dependencies
# =============================================================================


def get_sales_store() -> SalesStoreProtocol:
    """Record store bound to the shared connection pool."""
    settings = get_settings()
    return SqlSalesStore(get_session_maker(), settings.sales_query_timeout_seconds)


def get_sales_service(
    store: SalesStoreProtocol = Depends(get_sales_store),
) -> SalesService:
    """Sales service for one request."""
    return SalesService(store)


def split_list_param(values: list[str] | None) -> list[str]:
    """Flatten comma-separated and repeated query values, dropping blanks.

    ``?regions=North,South`` and ``?regions=North&regions=South`` are
    equivalent.
    """
    if not values:
        return []
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def sales_query_params(
    search: str | None = Query(None, description="Substring of customer name or phone."),
    regions: list[str] | None = Query(None, description="Comma-separated customer regions."),
    genders: list[str] | None = Query(None, description="Comma-separated genders."),
    product_categories: list[str] | None = Query(
        None, alias="productCategories", description="Comma-separated product categories."
    ),
    tags: list[str] | None = Query(None, description="Comma-separated tags (match any)."),
    payment_methods: list[str] | None = Query(
        None, alias="paymentMethods", description="Comma-separated payment methods."
    ),
    age_min: str | None = Query(None, alias="ageMin", description="Minimum age (inclusive)."),
    age_max: str | None = Query(None, alias="ageMax", description="Maximum age (inclusive)."),
    date_from: str | None = Query(
        None, alias="dateFrom", description="Start date, YYYY-MM-DD (inclusive)."
    ),
    date_to: str | None = Query(
        None, alias="dateTo", description="End date, YYYY-MM-DD (inclusive)."
    ),
    sort_by: str | None = Query(
        None,
        alias="sortBy",
        description="date | quantity | customerName | totalAmount | age. "
        "Unknown values fall back to date.",
    ),
    sort_order: str | None = Query(
        None, alias="sortOrder", description="asc | desc (default desc)."
    ),
    page: str | None = Query(None, description="Page number, 1-indexed (default 1)."),
    page_size: str | None = Query(
        None, alias="pageSize", description="Items per page, 1-100 (default 10)."
    ),
) -> SalesQueryParams:
    """Collect raw query-string parameters without rejecting anything.

    Coercion and bounds are applied by the query builder, so malformed
    values never produce a 422 here.
    """
    return SalesQueryParams(
        search=search,
        regions=split_list_param(regions),
        genders=split_list_param(genders),
        product_categories=split_list_param(product_categories),
        tags=split_list_param(tags),
        payment_methods=split_list_param(payment_methods),
        age_min=age_min,
        age_max=age_max,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )


def invalid_range_response(payload: InvalidRangeResult | SalesSummary) -> JSONResponse:
    """400 response carrying the invalid-range payload plus an ``error`` field."""
    content = payload.model_dump(by_alias=True, mode="json")
    content["error"] = payload.message or "Invalid filter range detected"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


# =============================================================================
# Endpoints
# =============================================================================


@router.get(
    "",
    response_model=SalesPage,
    responses=ERROR_RESPONSES,
    summary="Query sales records",
    description="""
Filter, sort and paginate sales transactions.

**Filters** (all optional, combined with AND; values within one filter are OR-ed):
- `search`: case-insensitive substring of customer name or phone number
- `regions`, `genders`, `productCategories`, `paymentMethods`: comma-separated values
- `tags`: comma-separated; a record matches if it has any of them
- `ageMin`/`ageMax`, `dateFrom`/`dateTo`: inclusive bounds

**Sorting**: `sortBy` in {date, quantity, customerName, totalAmount, age}, `sortOrder` asc|desc.

**Pagination**: `page` (>= 1), `pageSize` (1-100). A page past the end returns
an empty `items` list with accurate counts.

**Errors**: contradictory or malformed ranges return 400 with `invalidRange: true`.
""",
)
async def query_sales(
    params: SalesQueryParams = Depends(sales_query_params),
    service: SalesService = Depends(get_sales_service),
) -> SalesPage | JSONResponse:
    """Query sales records.

    Args:
        params: Raw query parameters.
        service: Sales service.

    Returns:
        The requested page, or a 400 response for invalid ranges.
    """
    result = await service.query(params)
    if isinstance(result, InvalidRangeResult):
        return invalid_range_response(result)
    return result


@router.get(
    "/summary",
    response_model=SalesSummary,
    responses=ERROR_RESPONSES,
    summary="Summarize filtered sales",
    description="""
Totals over **all** records matching the filters (not only the current page):
record count, units sold, gross amount, and discount
(sum of max(0, totalAmount - finalAmount)).

Accepts the same filter parameters as `GET /api/sales`; sort and page parameters are ignored.
""",
)
async def summarize_sales(
    params: SalesQueryParams = Depends(sales_query_params),
    service: SalesService = Depends(get_sales_service),
) -> SalesSummary | JSONResponse:
    """Aggregate totals for the filtered set."""
    summary = await service.summarize(params)
    if summary.invalid_range:
        return invalid_range_response(summary)
    return summary


@router.get(
    "/filter-options",
    response_model=FilterOptions,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: ERROR_RESPONSES[503]},
    summary="List filter values",
    description="Distinct values present in the data for each multi-select filter.",
)
async def list_filter_options(
    service: SalesService = Depends(get_sales_service),
) -> FilterOptions:
    """Distinct values per filter dimension."""
    return await service.filter_options()
