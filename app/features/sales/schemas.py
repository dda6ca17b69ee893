"""Pydantic schemas for the sales query endpoints.

Wire names are camelCase (``pageSize``, ``totalItems``, ``invalidRange``)
to match the dashboard client; Python attributes stay snake_case.
"""

from datetime import date as date_type
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import Field, field_validator

from app.shared.schemas import CamelModel, PageMeta

# =============================================================================
# Enums
# =============================================================================


class SortField(str, Enum):
    """Closed set of sortable fields.

    Anything a client sends outside this set is resolved to DATE.
    """

    DATE = "date"
    QUANTITY = "quantity"
    CUSTOMER_NAME = "customerName"
    TOTAL_AMOUNT = "totalAmount"
    AGE = "age"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


# =============================================================================
# Request Schemas
# =============================================================================


class SalesQueryParams(CamelModel):
    """Raw, untrusted query parameters.

    Every field is optional and loosely typed; the query builder is
    responsible for coercion, clamping and validation.
    """

    search: str | None = None
    regions: list[str | None] = Field(default_factory=list)
    genders: list[str | None] = Field(default_factory=list)
    product_categories: list[str | None] = Field(default_factory=list)
    tags: list[str | None] = Field(default_factory=list)
    payment_methods: list[str | None] = Field(default_factory=list)
    age_min: int | str | None = None
    age_max: int | str | None = None
    date_from: str | None = None
    date_to: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    page: int | str | None = None
    page_size: int | str | None = None


# =============================================================================
# Response Schemas
# =============================================================================


class SaleRecordResponse(CamelModel):
    """A sales transaction as returned to clients."""

    id: int
    customer_id: str | None = None
    customer_name: str | None = None
    phone_number: str | None = None
    gender: str | None = None
    age: int | None = None
    customer_region: str | None = None
    customer_type: str | None = None
    product_id: str | None = None
    product_name: str | None = None
    brand: str | None = None
    product_category: str | None = None
    tags: list[str] = Field(default_factory=list)
    quantity: int | None = None
    price_per_unit: Decimal | None = None
    discount_percentage: Decimal | None = None
    total_amount: Decimal | None = None
    final_amount: Decimal | None = None
    date: date_type | None = None
    payment_method: str | None = None
    order_status: str | None = None
    delivery_type: str | None = None
    store_id: str | None = None
    store_location: str | None = None
    salesperson_id: str | None = None
    employee_name: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def flatten_tags(cls, v: Any) -> Any:
        """Accept ORM tag rows as well as plain strings."""
        if v is None:
            return []
        return [getattr(item, "tag", item) for item in v]


class SalesPage(PageMeta):
    """Successful query: one page of records plus page metadata.

    ``message`` is only set when the requested page lies past the last page.
    """

    items: list[SaleRecordResponse] = Field(
        ..., description="Records on this page. Empty past the last page."
    )
    message: str | None = None


class InvalidRangeResult(PageMeta):
    """Unsatisfiable or malformed filter combination.

    A normal result, not an error: the boundary maps it to 400.
    """

    items: list[SaleRecordResponse] = Field(default_factory=list)
    invalid_range: Literal[True] = True
    message: str


SalesQueryResult = SalesPage | InvalidRangeResult


class SalesSummary(CamelModel):
    """Aggregates over the full filtered record set (not just one page)."""

    total_records: int = Field(0, ge=0)
    total_quantity: int = 0
    total_amount: Decimal = Decimal("0")
    total_discount: Decimal = Field(
        Decimal("0"),
        description="Sum of max(0, totalAmount - finalAmount) over matching records.",
    )
    invalid_range: bool = False
    message: str | None = None


class FilterOptions(CamelModel):
    """Distinct values available for each multi-select filter."""

    regions: list[str]
    genders: list[str]
    product_categories: list[str]
    tags: list[str]
    payment_methods: list[str]
