"""
Video discovery router.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from config import settings
from models.catalog import CatalogMode
from routers.catalog_deps import cached_json, failure_json, flag, get_catalog_clients
from routers.rate_limit import rate_limit
from services.catalog_search import VIDEO_MAX_PAGE_SIZE, CatalogClients, search_catalog_service
from services.discovery.paginator import clamp_page, clamp_page_size
from services.discovery.query_expander import normalize_video_category
from services.result_cache import get_cached_result, result_cache_key, set_cached_result

router = APIRouter()


@router.get("/videos")
async def search_videos(
    request: Request,
    q: str = Query(default=""),
    category: Optional[str] = Query(default=None),
    bucket: Optional[str] = Query(default=None),
    page: str = Query(default="1"),
    page_size: str = Query(default="20", alias="pageSize"),
    debug: str = Query(default=""),
    _rate_limit: None = Depends(rate_limit("videos_search", limit=settings.VIDEOS_RATE_LIMIT_PER_HOUR)),
    clients: CatalogClients = Depends(get_catalog_clients),
):
    """Search kid-safe videos, optionally within a shelf (``category`` or legacy ``bucket``)."""
    try:
        wants_debug = flag(debug)
        page_number = clamp_page(page)
        size = clamp_page_size(page_size, VIDEO_MAX_PAGE_SIZE)
        shelf = normalize_video_category(category or bucket)
        cache_key = result_cache_key("videos", q=q.strip(), category=shelf, page=page_number, page_size=size)
        if not wants_debug:
            cached = await get_cached_result(cache_key)
            if cached is not None:
                return cached_json(cached, cache_hit=True)

        payload = await search_catalog_service(
            CatalogMode.VIDEO,
            clients=clients,
            query=q,
            category=shelf or None,
            page=page_number,
            page_size=size,
            debug=wants_debug,
            should_stop=request.is_disconnected,
        )
        if not wants_debug and not await request.is_disconnected():
            await set_cached_result(cache_key, payload)
        return cached_json(payload)
    except Exception as exc:
        return failure_json("Videos", exc)
