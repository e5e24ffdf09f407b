"""Per-client request quotas for the public search endpoints."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis

from config import settings

logger = logging.getLogger(__name__)

# (allowed, seconds until the window resets)
QuotaVerdict = Tuple[bool, int]

_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def _client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def _consume_local_quota(key: str, limit: int, window_seconds: int) -> QuotaVerdict:
    now = time.time()
    async with _local_lock:
        count, reset_at = _local_counters.get(key, (0, now + window_seconds))
        if now >= reset_at:
            count = 0
            reset_at = now + window_seconds
        count += 1
        _local_counters[key] = (count, reset_at)
    return count <= limit, max(int(reset_at - now), 1)


async def _consume_redis_quota(key: str, limit: int, window_seconds: int) -> QuotaVerdict:
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        current = await redis_client.incr(key)
        if current == 1:
            await redis_client.expire(key, window_seconds)
        ttl = await redis_client.ttl(key)
    finally:
        await redis_client.aclose()
    return current <= limit, ttl if ttl and ttl > 0 else window_seconds


def rate_limit(prefix: str, limit: int, window_seconds: int = 3600) -> Callable[[Request], None]:
    """Return a FastAPI dependency that enforces per-client search quotas."""

    async def _dependency(request: Request):
        if getattr(request.app.state, "disable_rate_limits", False) or limit <= 0:
            return

        key = f"kids:rate:{prefix}:{_client_identifier(request)}"
        if settings.REDIS_URL:
            try:
                allowed, retry_after = await _consume_redis_quota(key, limit, window_seconds)
            except Exception as exc:
                logger.debug("Rate limit fell back to local counters: %s", exc)
                allowed, retry_after = await _consume_local_quota(key, limit, window_seconds)
        else:
            allowed, retry_after = await _consume_local_quota(key, limit, window_seconds)

        if not allowed:
            raise HTTPException(
                status_code=429,
                detail=f"Too many {prefix.replace('_', ' ')} requests. Try again later.",
                headers={"Retry-After": str(retry_after)},
            )

    return _dependency
