"""
National Library Board (NLB) catalogue client.

The NLB open API allows roughly one request per second per key, so every
client instance owns a RequestThrottle that spaces out its own calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config import settings
from ingestion.base import CatalogClient, RequestThrottle
from models.catalog import (
    PLACEHOLDER_TITLE,
    CatalogPage,
    Cursor,
    MaturityRating,
    NormalizedItem,
    QueryExpression,
)

logger = logging.getLogger(__name__)

NLB_API_BASE = "https://openweb.nlb.gov.sg/api/v2/Catalogue"
NLB_RECORD_URL = "https://catalogue.nlb.gov.sg/cgi-bin/spydus.exe/ENQ/WPAC/BIBENQ?SETLVL=1&BRN={bid}"
NLB_COVER_URL = "https://catalogue.nlb.gov.sg/cover/{isbn}.jpg"
NLB_DEFAULT_PAGE_SIZE = 20


def _pick(raw: Dict[str, Any], *keys: str) -> Any:
    """NLB responses mix PascalCase and camelCase keys."""
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def parse_title(raw: Dict[str, Any]) -> NormalizedItem:
    """Turn one ``GetTitles`` record into a NormalizedItem."""
    bid = _pick(raw, "BID", "bid")
    isbn = _pick(raw, "ISBN", "isbn")
    title = str(_pick(raw, "Title", "title") or "").strip()
    author = str(_pick(raw, "Author", "author") or "")
    subjects = _pick(raw, "Subjects", "subjects") or []
    publisher = str(_pick(raw, "Publisher", "publisher") or "Unknown Publisher")
    publish_year = str(_pick(raw, "PublishYear", "publishYear") or "")
    summary = str(_pick(raw, "Summary", "summary") or "").strip()

    record_link = NLB_RECORD_URL.format(bid=bid) if bid else None
    synopsis = f"{publisher} ({publish_year})" if publish_year else publisher

    return NormalizedItem(
        id=f"nlb-{bid}" if bid else None,
        title=title or PLACEHOLDER_TITLE,
        authors=[part.strip() for part in author.split(";") if part.strip()],
        categories=[str(s) for s in subjects] if isinstance(subjects, list) else [],
        # Library catalogue holdings carry no maturity metadata
        maturity_rating=MaturityRating.NOT_MATURE,
        thumbnail=NLB_COVER_URL.format(isbn=isbn) if isbn else None,
        best_link=record_link,
        canonical_volume_link=record_link,
        info_link=record_link,
        description=summary or None,
        snippet=summary or None,
        synopsis=synopsis.strip(),
        source="nlb",
        title_keyed=not bid,
        extra={
            "nlb": {
                "BID": bid,
                "ISBN": isbn,
                "MediaCode": _pick(raw, "MediaCode", "mediaCode"),
                "CallNumber": _pick(raw, "CallNumber", "callNumber"),
                "PublishYear": publish_year,
                "Publisher": publisher,
            }
        },
    )


class NLBCatalogClient(CatalogClient):
    """Client for the NLB ``GetTitles`` search."""

    source = "nlb"
    page_size = NLB_DEFAULT_PAGE_SIZE

    def __init__(
        self,
        *,
        api_key: str = "",
        app_id: str = "",
        app_code: str = "",
        min_interval_seconds: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        if min_interval_seconds is None:
            min_interval_seconds = settings.NLB_MIN_REQUEST_INTERVAL_SECONDS
        kwargs.setdefault("throttle", RequestThrottle(min_interval_seconds))
        super().__init__(api_key=api_key, **kwargs)
        self.app_id = (app_id or "").strip()
        self.app_code = (app_code or "").strip()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_page(
        self,
        expression: QueryExpression,
        cursor: Cursor = None,
        *,
        media_code: str = "BOOK",
        page_size: int = NLB_DEFAULT_PAGE_SIZE,
        **options: Any,
    ) -> CatalogPage:
        """Fetch one result set; the cursor is the 1-based ``SetNo``."""
        set_no = max(_safe_int(cursor, 1), 1)
        page_size = max(1, int(page_size or NLB_DEFAULT_PAGE_SIZE))
        params: Dict[str, Any] = {
            "Keywords": expression.text,
            "Limit": page_size,
            "SetNo": set_no,
        }
        if self.api_key:
            params["APIKey"] = self.api_key
        if media_code and media_code.upper() != "ALL":
            params["MediaCode"] = media_code.upper()
        headers = {
            "Accept": "application/json",
            "X-APP-ID": self.app_id,
            "X-APP-CODE": self.app_code,
            "X-API-KEY": self.api_key,
        }

        data = await self._get_json(f"{NLB_API_BASE}/GetTitles", params, headers=headers)
        titles = _pick(data, "titles", "Titles") or []
        items: List[NormalizedItem] = [parse_title(raw) for raw in titles if isinstance(raw, dict)]
        total = _safe_int(_pick(data, "totalRecords", "TotalRecords"), 0)
        has_more = bool(_pick(data, "hasMore", "HasMore")) or len(titles) == page_size
        logger.debug("nlb page q=%r set=%d titles=%d total=%d", expression.text, set_no, len(titles), total)

        return CatalogPage(
            items=items,
            next_cursor=set_no + 1 if has_more and titles else None,
            approx_total=total or None,
        )
