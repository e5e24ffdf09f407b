"""Stateless offset pagination over an ordered pool."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from models.catalog import NormalizedItem

DEFAULT_PAGE_SIZE = 20


def clamp_page(page: int) -> int:
    try:
        return max(int(page), 1)
    except (TypeError, ValueError):
        return 1


def clamp_page_size(page_size: int, maximum: int, default: int = DEFAULT_PAGE_SIZE) -> int:
    try:
        value = int(page_size)
    except (TypeError, ValueError):
        value = default
    return min(max(value, 1), maximum)


def paginate(
    pool: Sequence[NormalizedItem],
    page: int,
    page_size: int,
    exhausted: bool = True,
) -> Tuple[List[NormalizedItem], bool]:
    """
    Slice ``pool[(page - 1) * page_size : page * page_size]``.

    ``has_more`` is True when the pool already holds items past this page, or
    when the pool build stopped before every source ran dry.
    """
    page = clamp_page(page)
    page_size = max(int(page_size), 1)
    start = (page - 1) * page_size
    end = page * page_size
    page_items = list(pool[start:end])
    has_more = len(pool) > end or not exhausted
    return page_items, has_more
