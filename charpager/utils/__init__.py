"""Utility functions."""

from .http import HTTPClient
from .page_links import PageGap, PageItem, PageLink, build_page_items
from .query import QueryPagePersistence, parse_page_param

__all__ = [
    "HTTPClient",
    "PageGap",
    "PageItem",
    "PageLink",
    "build_page_items",
    "QueryPagePersistence",
    "parse_page_param",
]
