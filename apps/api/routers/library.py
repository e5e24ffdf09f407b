"""
Library catalogue (NLB) search router.
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from config import settings
from ingestion.base import UpstreamError
from routers.catalog_deps import cached_json, failure_json, flag, get_catalog_clients
from routers.rate_limit import rate_limit
from services.catalog_search import LIBRARY_MAX_PAGE_SIZE, CatalogClients, search_library_service
from services.discovery.paginator import clamp_page, clamp_page_size
from services.result_cache import get_cached_result, result_cache_key, set_cached_result

router = APIRouter()
logger = logging.getLogger(__name__)

NLB_API_DOCS = "https://openweb.nlb.gov.sg/api/swagger/index.html?urls.primaryName=Catalogue"


def _upstream_error_response(exc: UpstreamError) -> JSONResponse:
    logger.warning("NLB search failed: %s", exc)
    if exc.status_code == 401:
        return JSONResponse(
            status_code=401,
            content={"error": "Invalid API key. Please check your NLB_API_KEY configuration."},
        )
    if exc.status_code == 429:
        return JSONResponse(
            status_code=429,
            content={"error": "Rate limit exceeded. Please try again in a moment."},
        )
    if exc.timed_out:
        return JSONResponse(
            status_code=504,
            content={"error": "Request timeout. The NLB API took too long to respond."},
        )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Failed to search NLB catalog",
            "details": str(exc),
            "help": f"Make sure your NLB_API_KEY is valid. Check the API documentation at {NLB_API_DOCS}",
        },
    )


@router.get("/search")
async def search_library(
    q: str = Query(default=""),
    media_code: str = Query(default="BOOK", alias="mediaCode"),
    include_ya: str = Query(default="", alias="includeYA"),
    page: str = Query(default="1"),
    page_size: str = Query(default="20", alias="pageSize"),
    _rate_limit: None = Depends(rate_limit("library_search", limit=settings.LIBRARY_RATE_LIMIT_PER_HOUR)),
    clients: CatalogClients = Depends(get_catalog_clients),
):
    """Search the NLB catalogue; unlike books/videos this is a single upstream call."""
    if not clients.library.configured:
        return JSONResponse(
            status_code=503,
            content={"error": "NLB API key not configured. Set NLB_API_KEY to enable library search."},
        )
    if not q.strip():
        return JSONResponse(status_code=400, content={"error": "Search query is required"})

    try:
        page_number = clamp_page(page)
        size = clamp_page_size(page_size, LIBRARY_MAX_PAGE_SIZE)
        code = media_code.strip().upper() or "ALL"
        cache_key = result_cache_key(
            "nlb",
            q=q.strip(),
            media_code=code,
            include_ya=flag(include_ya),
            page=page_number,
            page_size=size,
        )
        cached = await get_cached_result(cache_key)
        if cached is not None:
            return cached_json(cached, cache_hit=True)

        payload = await search_library_service(
            client=clients.library,
            query=q,
            media_code=code,
            include_young_adult=flag(include_ya),
            page=page_number,
            page_size=size,
        )
        await set_cached_result(cache_key, payload)
        return cached_json(payload)
    except UpstreamError as exc:
        return _upstream_error_response(exc)
    except Exception as exc:
        return failure_json("Library", exc)
