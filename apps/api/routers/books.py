"""
Book discovery router.
"""

from fastapi import APIRouter, Depends, Query, Request

from config import settings
from models.catalog import CatalogMode
from routers.catalog_deps import cached_json, failure_json, flag, get_catalog_clients
from routers.rate_limit import rate_limit
from services.catalog_search import BOOK_MAX_PAGE_SIZE, CatalogClients, search_catalog_service
from services.discovery.paginator import clamp_page, clamp_page_size
from services.result_cache import get_cached_result, result_cache_key, set_cached_result

router = APIRouter()


@router.get("/books")
async def search_books(
    request: Request,
    q: str = Query(default=""),
    bucket: str = Query(default=""),
    lang: str = Query(default=""),
    include_ya: str = Query(default="", alias="includeYA"),
    page: str = Query(default="1"),
    page_size: str = Query(default="20", alias="pageSize"),
    debug: str = Query(default=""),
    _rate_limit: None = Depends(rate_limit("books_search", limit=settings.BOOKS_RATE_LIMIT_PER_HOUR)),
    clients: CatalogClients = Depends(get_catalog_clients),
):
    """
    Search children's books across subject-biased query variants.

    Out-of-range paging parameters are clamped rather than rejected, so the
    endpoint always answers 200 unless the pipeline itself breaks.
    """
    try:
        wants_debug = flag(debug)
        page_number = clamp_page(page)
        size = clamp_page_size(page_size, BOOK_MAX_PAGE_SIZE)
        bucket_key = bucket.strip().lower()
        cache_key = result_cache_key(
            "books",
            q=q.strip(),
            bucket=bucket_key,
            lang=lang.strip(),
            include_ya=flag(include_ya),
            page=page_number,
            page_size=size,
        )
        if not wants_debug:
            cached = await get_cached_result(cache_key)
            if cached is not None:
                return cached_json(cached, cache_hit=True)

        payload = await search_catalog_service(
            CatalogMode.BOOK,
            clients=clients,
            query=q,
            category=bucket_key or None,
            lang=lang.strip(),
            include_young_adult=flag(include_ya),
            page=page_number,
            page_size=size,
            debug=wants_debug,
            should_stop=request.is_disconnected,
        )
        if not wants_debug and not await request.is_disconnected():
            await set_cached_result(cache_key, payload)
        return cached_json(payload)
    except Exception as exc:
        return failure_json("Books", exc)
