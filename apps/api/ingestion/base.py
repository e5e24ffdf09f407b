"""Shared upstream catalog client contract."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from config import settings
from models.catalog import CatalogPage, Cursor, QueryExpression

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """Raised when a catalog API call fails (non-2xx, transport error or timeout)."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status_code = status_code

    @property
    def timed_out(self) -> bool:
        return isinstance(self.__cause__, httpx.TimeoutException)


class RequestThrottle:
    """Minimum spacing between calls made through one client instance."""

    def __init__(self, min_interval_seconds: float = 0.0):
        self.min_interval_seconds = max(float(min_interval_seconds or 0.0), 0.0)
        self._last_request_at = 0.0
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        if self.min_interval_seconds <= 0:
            return
        async with self._lock:
            elapsed = time.monotonic() - self._last_request_at
            if elapsed < self.min_interval_seconds:
                await asyncio.sleep(self.min_interval_seconds - elapsed)
            self._last_request_at = time.monotonic()


class CatalogClient(ABC):
    """One page per call; looping over pages belongs to the caller."""

    source: str
    page_size: int

    def __init__(
        self,
        *,
        api_key: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: Optional[float] = None,
        throttle: Optional[RequestThrottle] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.timeout_seconds = float(timeout_seconds or settings.UPSTREAM_TIMEOUT_SECONDS)
        self.throttle = throttle or RequestThrottle()
        self._http = http_client
        self._owns_http = http_client is None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _get_json(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        await self.throttle.wait()
        try:
            response = await self.http.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(self.source, f"timed out after {self.timeout_seconds:.1f}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(self.source, f"transport error: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(
                self.source,
                f"HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(self.source, "response body is not JSON", response.status_code) from exc
        return data if isinstance(data, dict) else {}

    @abstractmethod
    async def fetch_page(self, expression: QueryExpression, cursor: Cursor = None, **options: Any) -> CatalogPage:
        raise NotImplementedError
