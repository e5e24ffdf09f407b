"""Caller-side cache of final search payloads (Redis, in-process fallback)."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import redis.asyncio as redis

from config import settings

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "kids:catalog:page"
LOCAL_CACHE_MAX_ENTRIES = 500

_local_entries: Dict[str, Tuple[float, str]] = {}
_local_lock = asyncio.Lock()


def result_cache_key(route: str, **params: Any) -> str:
    """Key covering every request parameter that shapes the payload."""
    normalized = {name: params[name] for name in sorted(params)}
    return f"{CACHE_KEY_PREFIX}:{route}:{json.dumps(normalized, sort_keys=True, default=str)}"


async def _local_get(key: str) -> Optional[str]:
    async with _local_lock:
        hit = _local_entries.get(key)
        if hit is None:
            return None
        expires_at, value = hit
        if time.time() >= expires_at:
            _local_entries.pop(key, None)
            return None
        return value


async def _local_set(key: str, value: str, ttl_seconds: int) -> None:
    now = time.time()
    async with _local_lock:
        for stale in [k for k, (expires_at, _) in _local_entries.items() if expires_at <= now]:
            del _local_entries[stale]
        # Re-inserting keeps the dict ordered by write time, oldest first.
        _local_entries.pop(key, None)
        while len(_local_entries) >= LOCAL_CACHE_MAX_ENTRIES:
            del _local_entries[next(iter(_local_entries))]
        _local_entries[key] = (now + ttl_seconds, value)


def clear_local_cache() -> None:
    _local_entries.clear()


async def get_cached_result(key: str) -> Optional[Dict[str, Any]]:
    if not settings.RESULT_CACHE_ENABLED:
        return None
    raw: Optional[str] = None
    if settings.REDIS_URL:
        try:
            client = redis.from_url(settings.REDIS_URL, decode_responses=True)
            try:
                raw = await client.get(key)
            finally:
                await client.aclose()
        except Exception as exc:
            logger.debug("Result cache read fell back to local store: %s", exc)
            raw = await _local_get(key)
    else:
        raw = await _local_get(key)
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except ValueError:
        logger.warning("Discarding unreadable cached result for key=%s", key)
        return None
    return payload if isinstance(payload, dict) else None


async def set_cached_result(key: str, payload: Dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
    if not settings.RESULT_CACHE_ENABLED:
        return
    ttl = int(ttl_seconds or settings.RESULT_CACHE_TTL_SECONDS)
    if ttl <= 0:
        return
    raw = json.dumps(payload, default=str)
    if settings.REDIS_URL:
        try:
            client = redis.from_url(settings.REDIS_URL, decode_responses=True)
            try:
                await client.set(key, raw, ex=ttl)
            finally:
                await client.aclose()
            return
        except Exception as exc:
            logger.debug("Result cache write fell back to local store: %s", exc)
    await _local_set(key, raw, ttl)
