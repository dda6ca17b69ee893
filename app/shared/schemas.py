"""Shared Pydantic schemas for API responses."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PageWindow(BaseModel):
    """Validated page window (1-indexed page, bounded page size)."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(
        DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"
    )

    @property
    def offset(self) -> int:
        """Calculate SQL offset from page number."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Return page size as SQL limit."""
        return self.page_size


class PageMeta(CamelModel):
    """Page metadata shared by every paginated response."""

    page: int = Field(..., ge=1, description="Current page number (1-indexed).")
    page_size: int = Field(..., ge=1, description="Items per page. Maximum is 100.")
    total_items: int = Field(
        ..., ge=0, description="Total number of records matching the applied filters."
    )
    total_pages: int = Field(
        ..., ge=0, description="ceil(totalItems / pageSize); 0 when nothing matches."
    )
    has_next_page: bool = Field(..., description="True when page < totalPages.")
    has_prev_page: bool = Field(..., description="True when page > 1.")
