"""
YouTube Data API client for token-paged video search and made-for-kids checks.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from ingestion.base import CatalogClient, UpstreamError
from models.catalog import (
    PLACEHOLDER_TITLE,
    CatalogPage,
    Cursor,
    MaturityRating,
    NormalizedItem,
    QueryExpression,
)

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
YOUTUBE_MAX_RESULTS = 50
STATUS_BATCH_SIZE = 50

# Upstream videoCategoryId values
CATEGORY_EDUCATION = 27
CATEGORY_ENTERTAINMENT = 24
CATEGORY_MUSIC = 10


def _thumbnail_url(thumbnails: Dict[str, Any]) -> Optional[str]:
    for size in ("medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def parse_search_result(raw: Dict[str, Any], category_id: Optional[int] = None) -> NormalizedItem:
    """Turn one ``search.list`` result into a NormalizedItem."""
    snippet = raw.get("snippet") or {}
    video_id = str((raw.get("id") or {}).get("videoId") or "").strip() or None
    title = str(snippet.get("title") or "").strip()
    description = str(snippet.get("description") or "").strip()
    channel_title = str(snippet.get("channelTitle") or "")
    return NormalizedItem(
        id=video_id,
        title=title or PLACEHOLDER_TITLE,
        authors=[channel_title],
        categories=[],
        # safeSearch=strict is always requested
        maturity_rating=MaturityRating.NOT_MATURE,
        thumbnail=_thumbnail_url(snippet.get("thumbnails") or {}),
        best_link=f"https://youtu.be/{video_id}" if video_id else None,
        description=description or None,
        snippet=description or None,
        source="youtube",
        extra={
            "channelId": str(snippet.get("channelId") or ""),
            "publishedAt": str(snippet.get("publishedAt") or ""),
            "categoryHint": category_id,
        },
    )


class YouTubeClient(CatalogClient):
    """Client for interacting with YouTube Data API v3 search and video status."""

    source = "youtube"
    page_size = YOUTUBE_MAX_RESULTS

    async def fetch_page(
        self,
        expression: QueryExpression,
        cursor: Cursor = None,
        *,
        category_id: Optional[int] = None,
        max_results: int = YOUTUBE_MAX_RESULTS,
        **options: Any,
    ) -> CatalogPage:
        """
        Fetch one page of embeddable, strictly safe-searched videos.

        Args:
            expression: Query expression; only its text is sent upstream.
            cursor: Opaque ``pageToken`` from the previous page, or None.
            category_id: Optional upstream ``videoCategoryId``.
            max_results: Page size (1-50).

        Returns:
            CatalogPage whose next cursor is the upstream ``nextPageToken``.
        """
        params: Dict[str, Any] = {
            "part": "snippet",
            "type": "video",
            "videoEmbeddable": "true",
            "safeSearch": "strict",
            "maxResults": max(1, min(int(max_results or YOUTUBE_MAX_RESULTS), YOUTUBE_MAX_RESULTS)),
            "q": expression.text,
        }
        if category_id is not None:
            params["videoCategoryId"] = str(category_id)
        if cursor:
            params["pageToken"] = str(cursor)
        if self.api_key:
            params["key"] = self.api_key

        data = await self._get_json(YOUTUBE_SEARCH_URL, params)
        raw_items = data.get("items") if isinstance(data.get("items"), list) else []
        items = [parse_search_result(raw, category_id) for raw in raw_items if isinstance(raw, dict)]
        page_info = data.get("pageInfo") or {}
        total = page_info.get("totalResults")
        return CatalogPage(
            items=items,
            next_cursor=data.get("nextPageToken") or None,
            approx_total=int(total) if isinstance(total, int) else None,
        )

    async def fetch_kids_safe_ids(self, video_ids: Iterable[str]) -> Set[str]:
        """
        Return the subset of ids whose status declares ``madeForKids``.

        Ids are looked up in batches of 50. A failed batch leaves its ids
        unconfirmed, so they are excluded rather than assumed safe.
        """
        ordered: List[str] = list(dict.fromkeys(vid for vid in video_ids if vid))
        confirmed: Set[str] = set()

        for i in range(0, len(ordered), STATUS_BATCH_SIZE):
            batch = ordered[i:i + STATUS_BATCH_SIZE]
            params: Dict[str, Any] = {"part": "status", "id": ",".join(batch)}
            if self.api_key:
                params["key"] = self.api_key
            try:
                data = await self._get_json(YOUTUBE_VIDEOS_URL, params)
            except UpstreamError as exc:
                logger.warning("Made-for-kids lookup failed for %d ids: %s", len(batch), exc)
                continue

            for item in data.get("items") or []:
                if not isinstance(item, dict):
                    continue
                if (item.get("status") or {}).get("madeForKids") is True and item.get("id"):
                    confirmed.add(str(item["id"]))

        return confirmed
