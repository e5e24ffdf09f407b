"""Multi-query catalog aggregation for books, videos and library titles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from config import settings
from ingestion.google_books import GoogleBooksClient
from ingestion.nlb import NLBCatalogClient
from ingestion.youtube import (
    CATEGORY_EDUCATION,
    CATEGORY_ENTERTAINMENT,
    CATEGORY_MUSIC,
    YouTubeClient,
)
from models.catalog import CatalogMode, PageResult, PoolBuild, QueryExpression
from services.discovery.classifier import BOOK_BUCKETS, classify_book, classify_library
from services.discovery.paginator import clamp_page, clamp_page_size, paginate
from services.discovery.pool_builder import (
    BOOK_MAX_PAGES_PER_EXPRESSION,
    BOOK_RAW_ITEM_CAP,
    VIDEO_MAX_PAGES_PER_CATEGORY,
    PoolBuilder,
    book_target_count,
    build_pools,
    video_target_count,
)
from services.discovery.query_expander import expand, normalize_video_category
from services.discovery.safety import SafetyPolicy, filter_made_for_kids, is_acceptable

logger = logging.getLogger(__name__)

BOOK_MAX_PAGE_SIZE = 40
VIDEO_MAX_PAGE_SIZE = 20
LIBRARY_MAX_PAGE_SIZE = 100
VIDEO_CATEGORY_IDS = (CATEGORY_EDUCATION, CATEGORY_ENTERTAINMENT, CATEGORY_MUSIC)

StopSignal = Callable[[], Awaitable[bool]]


@dataclass
class CatalogClients:
    books: GoogleBooksClient
    videos: YouTubeClient
    library: NLBCatalogClient

    async def aclose(self) -> None:
        for client in (self.books, self.videos, self.library):
            await client.aclose()


def build_catalog_clients(http_client: Optional[httpx.AsyncClient] = None) -> CatalogClients:
    """Create the upstream clients from settings, optionally sharing one HTTP pool."""
    return CatalogClients(
        books=GoogleBooksClient(api_key=settings.BOOKS_API_KEY, http_client=http_client),
        videos=YouTubeClient(api_key=settings.YOUTUBE_API_KEY, http_client=http_client),
        library=NLBCatalogClient(
            api_key=settings.NLB_API_KEY,
            app_id=settings.NLB_APP_ID,
            app_code=settings.NLB_APP_CODE,
            http_client=http_client,
        ),
    )


def _cover_rate(pool: PoolBuild) -> float:
    if not pool.size:
        return 0.0
    return round(len(pool.with_thumb) / pool.size, 3)


def _debug_payload(
    *,
    mode: CatalogMode,
    expressions: List[QueryExpression],
    pool: PoolBuild,
    target_count: int,
    page: int,
    page_size: int,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    counters: Dict[str, Any] = {
        "mode": mode.value,
        "queries": [expression.text for expression in expressions],
        "queriesUsed": list(pool.queries_used),
        "rawSeen": pool.total_raw_seen,
        "withThumb": len(pool.with_thumb),
        "withoutThumb": len(pool.without_thumb),
        "poolSize": pool.size,
        "coverRate": _cover_rate(pool),
        "unkeyedItems": pool.unkeyed_items,
        "pagesFetched": pool.pages_fetched,
        "failedPages": pool.failed_pages,
        "exhausted": pool.exhausted,
        "cancelled": pool.cancelled,
        "approxTotal": pool.approx_total,
        "targetCount": target_count,
    }
    counters.update(extra or {})
    return {"page": page, "pageSize": page_size, "debug": counters}


def _log_if_all_failed(mode: CatalogMode, pool: PoolBuild) -> None:
    # Zero results and "every upstream call failed" look identical to callers.
    if pool.failed_pages and not pool.pages_fetched:
        logger.warning(
            "All upstream calls failed mode=%s queries=%d failed_pages=%d",
            mode.value, len(pool.queries_used), pool.failed_pages,
        )


async def search_books_service(
    *,
    client: GoogleBooksClient,
    query: str = "",
    bucket: Optional[str] = None,
    lang: str = "",
    include_young_adult: bool = False,
    page: int = 1,
    page_size: int = 20,
    debug: bool = False,
    should_stop: Optional[StopSignal] = None,
) -> Dict[str, Any]:
    """Aggregate a deep, deduplicated, cover-first book result page."""
    page = clamp_page(page)
    page_size = clamp_page_size(page_size, BOOK_MAX_PAGE_SIZE)
    policy = SafetyPolicy.for_request(bucket=bucket, include_young_adult=include_young_adult)
    expressions = expand(query, CatalogMode.BOOK, policy.bucket)
    if policy.bucket and policy.bucket not in BOOK_BUCKETS:
        # Nothing can ever carry an unknown bucket.
        logger.debug("Unknown book bucket %r, skipping upstream calls", policy.bucket)
        expressions = []
    target_count = book_target_count(page, page_size)

    pool = await build_pools(
        expressions,
        client,
        target_count,
        accept=lambda item: is_acceptable(item, CatalogMode.BOOK, policy),
        classify=classify_book,
        max_pages=BOOK_MAX_PAGES_PER_EXPRESSION,
        raw_item_cap=BOOK_RAW_ITEM_CAP,
        fetch_options={"lang": (lang or "").strip()},
        should_stop=should_stop,
    )
    _log_if_all_failed(CatalogMode.BOOK, pool)

    ordered = pool.ordered()
    page_items, has_more = paginate(ordered, page, page_size, exhausted=pool.exhausted)
    result = PageResult(items=page_items, has_more=has_more, total_approx=pool.approx_total or len(ordered))

    logger.info(
        "books search q=%r bucket=%s page=%d size=%d raw=%d pool=%d returned=%d has_more=%s",
        query, policy.bucket or "-", page, page_size, pool.total_raw_seen, pool.size,
        len(result.items), result.has_more,
    )
    if debug:
        return _debug_payload(
            mode=CatalogMode.BOOK,
            expressions=expressions,
            pool=pool,
            target_count=target_count,
            page=page,
            page_size=page_size,
            extra={"bucket": policy.bucket, "includeYA": policy.include_young_adult},
        )
    return {
        "items": [item.as_response() for item in result.items],
        "page": page,
        "pageSize": page_size,
        "hasMore": result.has_more,
        "totalApprox": result.total_approx,
        "baseSize": pool.size,
    }


async def _collect_videos_for_query(
    client: YouTubeClient,
    expression: QueryExpression,
    page: int,
    page_size: int,
    should_stop: Optional[StopSignal],
) -> tuple[PageResult, PoolBuild]:
    pool = await build_pools(
        [expression],
        client,
        video_target_count(page, page_size),
        accept=lambda item: is_acceptable(item, CatalogMode.VIDEO),
        lanes=[{"category_id": category_id} for category_id in VIDEO_CATEGORY_IDS],
        max_pages=VIDEO_MAX_PAGES_PER_CATEGORY,
        should_stop=should_stop,
    )
    if pool.cancelled:
        # Client is gone: no status lookup for the partial pool.
        return PageResult(items=[], has_more=True, total_approx=0), pool
    ordered = pool.ordered()
    kids_safe_ids = await client.fetch_kids_safe_ids(item.id for item in ordered if item.id) if ordered else set()
    kept = filter_made_for_kids(ordered, kids_safe_ids)
    page_items, has_more = paginate(kept, page, page_size, exhausted=pool.exhausted)
    return PageResult(items=page_items, has_more=has_more, total_approx=len(kept)), pool


async def search_videos_service(
    *,
    client: YouTubeClient,
    query: str = "",
    category: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    debug: bool = False,
    should_stop: Optional[StopSignal] = None,
) -> Dict[str, Any]:
    """Try shelf expressions in order; the first one yielding a non-empty page wins."""
    page = clamp_page(page)
    page_size = clamp_page_size(page_size, VIDEO_MAX_PAGE_SIZE)
    shelf = normalize_video_category(category)
    expressions = expand(query, CatalogMode.VIDEO, shelf)

    best = PageResult(items=[], has_more=False, total_approx=0)
    best_pool = PoolBuild(exhausted=True)
    used: Optional[QueryExpression] = None
    for expression in expressions:
        if should_stop is not None and await should_stop():
            break
        best, best_pool = await _collect_videos_for_query(client, expression, page, page_size, should_stop)
        used = expression
        if best.items:
            break
    _log_if_all_failed(CatalogMode.VIDEO, best_pool)

    logger.info(
        "videos search q=%r category=%s page=%d size=%d query_used=%r returned=%d has_more=%s",
        query, shelf or "-", page, page_size, used.text if used else None, len(best.items), best.has_more,
    )
    if debug:
        return _debug_payload(
            mode=CatalogMode.VIDEO,
            expressions=expressions,
            pool=best_pool,
            target_count=video_target_count(page, page_size),
            page=page,
            page_size=page_size,
            extra={"category": shelf, "queryUsed": used.text if used else None, "madeForKids": best.total_approx},
        )
    return {
        "items": [item.as_response() for item in best.items],
        "page": page,
        "pageSize": page_size,
        "hasMore": best.has_more,
        "category": shelf,
    }


async def search_library_service(
    *,
    client: NLBCatalogClient,
    query: str,
    media_code: str = "BOOK",
    include_young_adult: bool = False,
    page: int = 1,
    page_size: int = 20,
) -> Dict[str, Any]:
    """
    Search the library catalogue for one result set.

    Unlike the aggregated searches this is a single upstream call, so
    ``UpstreamError`` propagates and the router maps it to a response.
    """
    page = clamp_page(page)
    page_size = clamp_page_size(page_size, LIBRARY_MAX_PAGE_SIZE)
    policy = SafetyPolicy.for_request(include_young_adult=include_young_adult)
    expression = QueryExpression(query.strip(), juvenile_biased=False)

    catalog_page = await client.fetch_page(expression, page, media_code=media_code, page_size=page_size)
    builder = PoolBuilder(
        accept=lambda item: is_acceptable(item, CatalogMode.LIBRARY, policy),
        classify=lambda item: classify_library(item.categories, item.title),
    )
    for item in catalog_page.items:
        builder.add(item)
    ordered = builder.result.ordered()

    logger.info(
        "library search q=%r page=%d size=%d upstream=%d returned=%d",
        query, page, page_size, len(catalog_page.items), len(ordered),
    )
    return {
        "items": [item.as_response() for item in ordered],
        "page": page,
        "pageSize": page_size,
        "totalApprox": catalog_page.approx_total or 0,
        "hasMore": catalog_page.next_cursor is not None,
        "count": len(ordered),
        "source": "nlb",
    }


async def search_catalog_service(
    mode: CatalogMode | str,
    *,
    clients: CatalogClients,
    query: str = "",
    category: Optional[str] = None,
    lang: str = "",
    include_young_adult: bool = False,
    page: int = 1,
    page_size: int = 20,
    debug: bool = False,
    should_stop: Optional[StopSignal] = None,
) -> Dict[str, Any]:
    """Single entry point: ``category`` is the book bucket or the video shelf."""
    mode = CatalogMode(mode)
    if mode == CatalogMode.BOOK:
        return await search_books_service(
            client=clients.books,
            query=query,
            bucket=category,
            lang=lang,
            include_young_adult=include_young_adult,
            page=page,
            page_size=page_size,
            debug=debug,
            should_stop=should_stop,
        )
    if mode == CatalogMode.VIDEO:
        return await search_videos_service(
            client=clients.videos,
            query=query,
            category=category,
            page=page,
            page_size=page_size,
            debug=debug,
            should_stop=should_stop,
        )
    return await search_library_service(
        client=clients.library,
        query=query,
        include_young_adult=include_young_adult,
        page=page,
        page_size=page_size,
    )
