"""Query construction and validation for sales record queries.

Turns untrusted, stringly-typed parameters into a bounded ``QuerySpec``:

- multi-select values: null/empty entries dropped, at most 50 kept;
- search text: trimmed and cut to 100 characters;
- ages: coerced to int and floored at 0;
- dates: ISO-8601, both bounds inclusive;
- sort: resolved against a closed enum, falling back to ``date``;
- page/page size: defaulted, page floored at 1, page size clamped to [1, 100].

Logically impossible or malformed ranges do not raise. They produce an
``InvalidRange`` carrying the message to show the client.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from app.features.sales.schemas import SalesQueryParams, SortDirection, SortField
from app.shared.schemas import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageWindow

MAX_FILTER_VALUES = 50
MAX_SEARCH_LENGTH = 100

AGE_RANGE_MESSAGE = "Invalid age range: minimum age cannot be greater than maximum age"
START_DATE_MESSAGE = "Invalid start date format"
END_DATE_MESSAGE = "Invalid end date format"
DATE_RANGE_MESSAGE = "Invalid date range: start date cannot be after end date"

_SORT_FIELDS = {field.value: field for field in SortField}
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class QuerySpec:
    """Sanitized filter, sort and page window for one query call.

    Empty tuples and ``None`` bounds mean "no constraint on this field".
    """

    window: PageWindow
    search: str | None = None
    regions: tuple[str, ...] = ()
    genders: tuple[str, ...] = ()
    product_categories: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    payment_methods: tuple[str, ...] = ()
    age_min: int | None = None
    age_max: int | None = None
    date_from: date | None = None
    date_to: date | None = None
    sort_field: SortField = SortField.DATE
    sort_direction: SortDirection = SortDirection.DESC

    @property
    def has_filters(self) -> bool:
        """True when at least one field constraint applies."""
        return any(
            (
                self.search,
                self.regions,
                self.genders,
                self.product_categories,
                self.tags,
                self.payment_methods,
                self.age_min is not None,
                self.age_max is not None,
                self.date_from,
                self.date_to,
            )
        )


@dataclass(frozen=True)
class InvalidRange:
    """Filter combination that cannot match anything, with its reason."""

    message: str
    window: PageWindow


def coerce_int(value: int | str | None) -> int | None:
    """Best-effort integer coercion from the leading digits of the value.

    ``"3.7"`` and ``"12abc"`` give 3 and 12; ``None`` when no digits lead.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _INT_PREFIX.match(value)
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # Beyond the interpreter's integer string conversion limit
        return None


def sanitize_values(values: Sequence[str | None] | None) -> tuple[str, ...]:
    """Keep the first ``MAX_FILTER_VALUES`` non-null, non-empty entries."""
    if not values:
        return ()
    kept = [value for value in values if value is not None and value != ""]
    return tuple(kept[:MAX_FILTER_VALUES])


def sanitize_search(search: str | None) -> str | None:
    """Trim and truncate search text; ``None`` when nothing remains."""
    if not search:
        return None
    trimmed = search.strip()[:MAX_SEARCH_LENGTH]
    return trimmed or None


def parse_date(value: str) -> date:
    """Parse an ISO-8601 date or datetime string to a calendar date.

    Raises:
        ValueError: If the string is not a valid date.
    """
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text).date()


def resolve_sort(
    sort_by: str | None, sort_order: str | None
) -> tuple[SortField, SortDirection]:
    """Map client sort input onto the closed sort enum.

    Unknown fields fall back to ``date``; anything but ``asc`` is descending.
    """
    field = _SORT_FIELDS.get(sort_by or "", SortField.DATE)
    direction = SortDirection.ASC if sort_order == SortDirection.ASC.value else SortDirection.DESC
    return field, direction


def resolve_window(page: int | str | None, page_size: int | str | None) -> PageWindow:
    """Default and clamp raw page parameters into a valid window."""
    page_number = coerce_int(page)
    size = coerce_int(page_size)
    if page_number is None:
        page_number = 1
    if size is None:
        size = DEFAULT_PAGE_SIZE
    return PageWindow(
        page=max(1, page_number),
        page_size=min(MAX_PAGE_SIZE, max(1, size)),
    )


def build_query_spec(params: SalesQueryParams) -> QuerySpec | InvalidRange:
    """Build a bounded query spec from raw parameters.

    Checks run in a fixed order: age range, start date format, end date
    format, date ordering. The first failure wins.

    Args:
        params: Raw client parameters.

    Returns:
        QuerySpec ready for the store, or InvalidRange if the ranges are
        malformed or contradictory.
    """
    window = resolve_window(params.page, params.page_size)

    age_min = coerce_int(params.age_min)
    age_max = coerce_int(params.age_max)
    if age_min is not None:
        age_min = max(0, age_min)
    if age_max is not None:
        age_max = max(0, age_max)
    if age_min is not None and age_max is not None and age_min > age_max:
        return InvalidRange(AGE_RANGE_MESSAGE, window)

    date_from: date | None = None
    date_to: date | None = None
    if params.date_from and params.date_from.strip():
        try:
            date_from = parse_date(params.date_from)
        except ValueError:
            return InvalidRange(START_DATE_MESSAGE, window)
    if params.date_to and params.date_to.strip():
        try:
            date_to = parse_date(params.date_to)
        except ValueError:
            return InvalidRange(END_DATE_MESSAGE, window)
    if date_from is not None and date_to is not None and date_from > date_to:
        return InvalidRange(DATE_RANGE_MESSAGE, window)

    sort_field, sort_direction = resolve_sort(params.sort_by, params.sort_order)

    return QuerySpec(
        window=window,
        search=sanitize_search(params.search),
        regions=sanitize_values(params.regions),
        genders=sanitize_values(params.genders),
        product_categories=sanitize_values(params.product_categories),
        tags=sanitize_values(params.tags),
        payment_methods=sanitize_values(params.payment_methods),
        age_min=age_min,
        age_max=age_max,
        date_from=date_from,
        date_to=date_to,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
