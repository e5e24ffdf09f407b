"""Request-scoped dedup and cover-priority pooling over paged upstream results."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

from ingestion.base import CatalogClient, UpstreamError
from models.catalog import Cursor, NormalizedItem, PoolBuild, QueryExpression

logger = logging.getLogger(__name__)

# Books: 50 pages of <=40 per expression, 4000 raw items per request.
BOOK_MAX_PAGES_PER_EXPRESSION = 50
BOOK_RAW_ITEM_CAP = 4000
BOOK_MIN_OVERFETCH = 60
BOOK_OVERFETCH_PAGES = 6

# Videos: 2 pages for each of 3 upstream categories.
VIDEO_MAX_PAGES_PER_CATEGORY = 2
VIDEO_OVERFETCH = 60

Classifier = Callable[[NormalizedItem], List[str]]
Acceptor = Callable[[NormalizedItem], bool]
StopSignal = Callable[[], Awaitable[bool]]


def book_target_count(page: int, page_size: int) -> int:
    return page * page_size + max(BOOK_MIN_OVERFETCH, page_size * BOOK_OVERFETCH_PAGES)


def video_target_count(page: int, page_size: int) -> int:
    return page * page_size + VIDEO_OVERFETCH


class PoolBuilder:
    """Accumulates accepted items into two pools, keyed by item identity."""

    def __init__(self, accept: Acceptor, classify: Optional[Classifier] = None):
        self.accept = accept
        self.classify = classify
        self.seen: Set[str] = set()
        self.result = PoolBuild()

    def add(self, item: NormalizedItem, expression: Optional[QueryExpression] = None) -> bool:
        """Classify, filter and pool one item. Returns True when it was pooled."""
        self.result.total_raw_seen += 1
        key = item.dedup_key
        if key is not None and key in self.seen:
            return False
        if key is not None:
            self.seen.add(key)

        if self.classify is not None:
            item.buckets = self.classify(item)
        if key is None:
            # Still classified above, but without identity it cannot be deduped.
            self.result.unkeyed_items += 1
            return False
        if expression is not None and not expression.juvenile_biased and not item.buckets:
            return False
        if not self.accept(item):
            return False

        if item.thumbnail:
            self.result.with_thumb.append(item)
        else:
            self.result.without_thumb.append(item)
        return True


async def build_pools(
    expressions: Sequence[QueryExpression],
    client: CatalogClient,
    target_count: int,
    accept: Acceptor,
    classify: Optional[Classifier] = None,
    *,
    lanes: Optional[Sequence[Dict[str, Any]]] = None,
    max_pages: int = BOOK_MAX_PAGES_PER_EXPRESSION,
    raw_item_cap: Optional[int] = None,
    fetch_options: Optional[Dict[str, Any]] = None,
    should_stop: Optional[StopSignal] = None,
) -> PoolBuild:
    """
    Page through every expression in priority order and pool the results.

    Args:
        expressions: Query expressions, highest priority first.
        client: Upstream client; one ``fetch_page`` call per page.
        target_count: Stop once both pools together hold this many items.
        accept: Safety filter applied after classification.
        classify: Optional bucket classifier.
        lanes: Per-expression fetch variants (e.g. video categories); each lane
            is paged separately with its own cursor. Defaults to one lane.
        max_pages: Page depth limit per lane.
        raw_item_cap: Global limit on raw upstream items for the request.
        fetch_options: Extra keyword arguments for every ``fetch_page`` call.
        should_stop: Awaited before every upstream call; True cancels the walk.

    Returns:
        PoolBuild whose ``exhausted`` flag is True only if every lane reached
        its upstream end (failed lanes count as ended).
    """
    builder = PoolBuilder(accept, classify)
    result = builder.result
    lane_list: List[Dict[str, Any]] = [dict(lane) for lane in (lanes or [{}])]
    base_options = dict(fetch_options or {})

    def target_reached() -> bool:
        return result.size >= target_count

    def cap_reached() -> bool:
        return raw_item_cap is not None and result.total_raw_seen >= raw_item_cap

    stopped = False
    for expression in expressions:
        if stopped:
            result.exhausted = False
            break
        result.queries_used.append(expression.text)
        pooled_for_expression = 0

        for lane in lane_list:
            if stopped:
                result.exhausted = False
                break
            cursor: Cursor = None
            lane_ended = False

            for _ in range(max_pages):
                if should_stop is not None and await should_stop():
                    result.cancelled = True
                    stopped = True
                    break
                try:
                    page = await client.fetch_page(expression, cursor, **base_options, **lane)
                except UpstreamError as exc:
                    result.failed_pages += 1
                    logger.warning(
                        "Upstream page failed source=%s query=%r cursor=%r lane=%s: %s",
                        client.source, expression.text, cursor, lane, exc,
                    )
                    lane_ended = True
                    break

                result.pages_fetched += 1
                if page.approx_total:
                    result.approx_total = max(result.approx_total, page.approx_total)
                for item in page.items:
                    if builder.add(item, expression):
                        pooled_for_expression += 1

                cursor = page.next_cursor
                if cursor is None:
                    lane_ended = True
                if target_reached() or cap_reached():
                    stopped = True
                    break
                if lane_ended:
                    break

            if not lane_ended:
                result.exhausted = False

        if pooled_for_expression:
            result.expressions_with_data += 1

    logger.debug(
        "Pool build source=%s queries=%d raw=%d with_thumb=%d without_thumb=%d exhausted=%s",
        client.source,
        len(result.queries_used),
        result.total_raw_seen,
        len(result.with_thumb),
        len(result.without_thumb),
        result.exhausted,
    )
    return result
