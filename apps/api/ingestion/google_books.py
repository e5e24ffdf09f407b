"""
Google Books API client for offset-paged volume search.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ingestion.base import CatalogClient
from models.catalog import (
    PLACEHOLDER_TITLE,
    CatalogPage,
    Cursor,
    MaturityRating,
    NormalizedItem,
    QueryExpression,
)

logger = logging.getLogger(__name__)

BOOKS_VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"
BOOKS_MAX_RESULTS = 40

# Partial response: only the fields the pipeline reads.
BOOKS_FIELDS = (
    "totalItems,"
    "items(id,"
    "volumeInfo/title,"
    "volumeInfo/subtitle,"
    "volumeInfo/authors,"
    "volumeInfo/categories,"
    "volumeInfo/description,"
    "volumeInfo/maturityRating,"
    "volumeInfo/imageLinks/thumbnail,"
    "volumeInfo/previewLink,"
    "volumeInfo/canonicalVolumeLink,"
    "volumeInfo/infoLink"
    "),"
    "items/searchInfo/textSnippet"
)

HTML_TAG_PATTERN = re.compile(r"<[^>]+>")


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def strip_html(value: Any) -> str:
    return HTML_TAG_PATTERN.sub("", str(value or "")).strip()


def _maturity(value: Any) -> MaturityRating:
    text = str(value or "").strip().upper()
    if not text:
        return MaturityRating.UNKNOWN
    if text == MaturityRating.NOT_MATURE.value:
        return MaturityRating.NOT_MATURE
    return MaturityRating.MATURE


def parse_volume(raw: Dict[str, Any]) -> NormalizedItem:
    """Turn one ``volumes`` item into a NormalizedItem."""
    info = raw.get("volumeInfo") or {}
    volume_id = str(raw.get("id") or "").strip() or None
    categories = [str(c) for c in (info.get("categories") or []) if str(c or "").strip()]
    authors = [str(a) for a in (info.get("authors") or []) if str(a or "").strip()]
    description = info.get("description") or None
    preview_link = info.get("previewLink") or None
    canonical_link = info.get("canonicalVolumeLink") or None
    info_link = info.get("infoLink") or None
    fallback_link = f"https://books.google.com/books?id={quote(volume_id)}" if volume_id else None

    return NormalizedItem(
        id=volume_id,
        title=str(info.get("title") or "").strip() or PLACEHOLDER_TITLE,
        authors=authors,
        categories=categories,
        maturity_rating=_maturity(info.get("maturityRating")),
        thumbnail=(info.get("imageLinks") or {}).get("thumbnail") or None,
        best_link=preview_link or canonical_link or info_link or fallback_link,
        preview_link=preview_link,
        canonical_volume_link=canonical_link,
        info_link=info_link,
        subtitle=info.get("subtitle") or None,
        description=description,
        snippet=(raw.get("searchInfo") or {}).get("textSnippet") or None,
        synopsis=strip_html(description) or None,
        source="google_books",
    )


class GoogleBooksClient(CatalogClient):
    """Client for the Google Books volumes search endpoint."""

    source = "google_books"
    page_size = BOOKS_MAX_RESULTS

    async def fetch_page(
        self,
        expression: QueryExpression,
        cursor: Cursor = None,
        *,
        lang: str = "",
        max_results: int = BOOKS_MAX_RESULTS,
        **options: Any,
    ) -> CatalogPage:
        """
        Fetch one page of volumes.

        Args:
            expression: Query expression; only its text is sent upstream.
            cursor: Numeric start index (None means 0).
            lang: Optional ``langRestrict`` value.
            max_results: Page size, capped at 40 by the API.

        Returns:
            CatalogPage whose next cursor is the next start index, or None once
            the upstream reports no further results.
        """
        start_index = max(_safe_int(cursor, 0), 0)
        max_results = max(1, min(int(max_results or BOOKS_MAX_RESULTS), BOOKS_MAX_RESULTS))
        params: Dict[str, Any] = {
            "q": expression.text,
            "printType": "books",
            "orderBy": "relevance",
            "maxResults": max_results,
            "startIndex": start_index,
            "fields": BOOKS_FIELDS,
        }
        if lang:
            params["langRestrict"] = lang
        if self.api_key:
            params["key"] = self.api_key

        data = await self._get_json(BOOKS_VOLUMES_URL, params)
        raw_items = data.get("items") if isinstance(data.get("items"), list) else []
        logger.debug("books page q=%r start=%d raw=%d", expression.text, start_index, len(raw_items))
        items: List[NormalizedItem] = [parse_volume(raw) for raw in raw_items if isinstance(raw, dict)]

        approx_total: Optional[int] = None
        if "totalItems" in data:
            approx_total = max(_safe_int(data.get("totalItems"), 0), 0)

        next_index = start_index + max_results
        next_cursor: Cursor = next_index
        if not raw_items or (approx_total is not None and next_index >= approx_total):
            next_cursor = None

        return CatalogPage(items=items, next_cursor=next_cursor, approx_total=approx_total)
