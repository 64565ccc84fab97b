"""Page-link items for pagination controls.

Shows the first page, the last page, and a window around the current page,
with ellipsis markers wherever pages are skipped::

    build_page_items(10, 42)  ->  1 … 8 9 [10] 11 12 … 42
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PageLink:
    value: int
    active: bool = False


@dataclass(frozen=True)
class PageGap:
    """Marker for a run of hidden pages between ``after`` and ``before``."""

    after: int
    before: int

    @property
    def key(self) -> str:
        return f"e-{self.after}-{self.before}"


PageItem = PageLink | PageGap


def build_page_items(current: int, total: int, window: int = 2) -> list[PageItem]:
    """Build the ordered link list for a pager.

    Args:
        current: Currently displayed page (1-indexed)
        total: Total number of pages; ``0`` yields an empty list
        window: Number of neighbours shown on each side of ``current``

    Returns:
        Page links and gap markers in display order
    """
    if total < 1:
        return []

    pages = {1, total}
    for p in range(current - window, current + window + 1):
        if 1 <= p <= total:
            pages.add(p)

    items: list[PageItem] = []
    prev: int | None = None
    for value in sorted(pages):
        if prev is not None and value - prev > 1:
            items.append(PageGap(after=prev, before=value))
        items.append(PageLink(value=value, active=value == current))
        prev = value
    return items
