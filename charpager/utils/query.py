"""Mirror of the current UI page in a URL query string."""

from __future__ import annotations

import math
from urllib.parse import parse_qsl, urlencode

PAGE_PARAM = "page"


def parse_page_param(query: str, param: str = PAGE_PARAM) -> int:
    """Read the initial UI page from a query string.

    Missing, non-numeric, non-finite or sub-1 values fall back to 1.
    """
    raw = dict(parse_qsl(query.lstrip("?"), keep_blank_values=True)).get(param)
    if raw is None:
        return 1
    try:
        number = float(raw)
    except ValueError:
        return 1
    if not math.isfinite(number) or number < 1:
        return 1
    return int(number)


class QueryPagePersistence:
    """Keeps a query string in sync with the coordinator's page.

    Calls replace the ``page`` parameter in place; no history of earlier
    values is kept. Instances are callable so they can be handed straight
    to ``FetchCoordinator(persist_page=...)``.
    """

    def __init__(self, query: str = "", param: str = PAGE_PARAM) -> None:
        self._param = param
        self._pairs = parse_qsl(query.lstrip("?"), keep_blank_values=True)

    @property
    def initial_page(self) -> int:
        return parse_page_param(self.query, self._param)

    @property
    def query(self) -> str:
        return urlencode(self._pairs)

    def __call__(self, page: int) -> None:
        self.replace(page)

    def replace(self, page: int) -> None:
        pairs: list[tuple[str, str]] = []
        placed = False
        for key, value in self._pairs:
            if key != self._param:
                pairs.append((key, value))
            elif not placed:
                pairs.append((key, str(page)))
                placed = True
        if not placed:
            pairs.append((self._param, str(page)))
        self._pairs = pairs
