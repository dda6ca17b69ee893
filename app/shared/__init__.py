"""Shared pagination schemas and helpers."""

from app.shared.schemas import CamelModel, PageMeta, PageWindow
from app.shared.utils import page_meta, total_pages_for

__all__ = [
    "CamelModel",
    "PageMeta",
    "PageWindow",
    "page_meta",
    "total_pages_for",
]
