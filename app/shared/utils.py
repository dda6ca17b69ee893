"""Shared utility functions."""

import math

from app.shared.schemas import PageMeta, PageWindow


def total_pages_for(total_items: int, page_size: int) -> int:
    """Number of pages needed to show ``total_items`` at ``page_size`` per page."""
    return math.ceil(total_items / page_size) if total_items > 0 else 0


def page_meta(total_items: int, window: PageWindow) -> PageMeta:
    """Build page metadata from a total count and the requested window.

    Args:
        total_items: Total count of all matching items.
        window: Page window used for the query.

    Returns:
        PageMeta with computed page count and navigation flags.
    """
    total_pages = total_pages_for(total_items, window.page_size)
    return PageMeta(
        page=window.page,
        page_size=window.page_size,
        total_items=total_items,
        total_pages=total_pages,
        has_next_page=window.page < total_pages,
        has_prev_page=window.page > 1,
    )
