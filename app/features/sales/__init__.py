"""Sales records module: filtered, sorted, paginated transaction queries.

Untrusted query parameters are sanitized into a bounded ``QuerySpec``,
executed against the record store, and shaped into a page of results or
an invalid-range result.
"""

from app.features.sales.query import QuerySpec, build_query_spec
from app.features.sales.routes import router
from app.features.sales.schemas import (
    FilterOptions,
    InvalidRangeResult,
    SalesPage,
    SalesQueryParams,
    SalesSummary,
    SortDirection,
    SortField,
)
from app.features.sales.service import SalesService

__all__ = [
    "FilterOptions",
    "InvalidRangeResult",
    "QuerySpec",
    "SalesPage",
    "SalesQueryParams",
    "SalesService",
    "SalesSummary",
    "SortDirection",
    "SortField",
    "build_query_spec",
    "router",
]
