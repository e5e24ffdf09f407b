"""Shared dependencies and response helpers for the catalog routers."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

from config import settings
from services.catalog_search import CatalogClients, build_catalog_clients

logger = logging.getLogger(__name__)

TRUTHY_FLAGS = {"1", "true", "yes", "on"}


async def get_catalog_clients(request: Request) -> AsyncIterator[CatalogClients]:
    """
    Upstream clients built by the app lifespan live on app state.

    Without them (app served without lifespan events) the request gets its
    own clients, closed once the response is sent.
    """
    shared = getattr(request.app.state, "catalog_clients", None)
    if shared is not None:
        yield shared
        return
    clients = build_catalog_clients()
    try:
        yield clients
    finally:
        await clients.aclose()


def flag(value: Any) -> bool:
    return str(value or "").strip().lower() in TRUTHY_FLAGS


def cached_json(payload: Dict[str, Any], *, cache_hit: bool = False) -> JSONResponse:
    headers = {"Cache-Control": f"public, max-age={int(settings.CACHE_CONTROL_MAX_AGE)}"}
    if cache_hit:
        headers["X-Cache"] = "HIT"
    return JSONResponse(content=payload, headers=headers)


def failure_json(label: str, exc: Exception) -> JSONResponse:
    """Whole-pipeline failure: a structured 500, never a partial success body."""
    logger.exception("%s route error: %s", label, exc)
    return JSONResponse(
        status_code=500,
        content={"error": f"{label} fetch failed", "details": str(exc)},
    )
