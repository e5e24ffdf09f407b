"""
Catalog data model shared by the upstream clients and the discovery pipeline.

Everything here is request-scoped: items, expressions and pools are built
for a single aggregation call and dropped afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class CatalogMode(str, Enum):
    BOOK = "book"
    VIDEO = "video"
    LIBRARY = "library"


class MaturityRating(str, Enum):
    NOT_MATURE = "NOT_MATURE"
    MATURE = "MATURE"
    UNKNOWN = "UNKNOWN"  # upstream sent nothing; treated as NOT_MATURE by the safety filter


# Book catalog: numeric offset. Video catalog: opaque page token. Library: page number.
Cursor = Union[int, str, None]

PLACEHOLDER_TITLE = "Untitled"


def _normalize_key_part(value: Any) -> str:
    text = str(value or "").strip().lower()
    return re.sub(r"[^a-z0-9]+", " ", text).strip()


@dataclass
class NormalizedItem:
    id: Optional[str]
    title: str = PLACEHOLDER_TITLE
    authors: List[str] = field(default_factory=list)  # books: authors, videos: [channel title]
    categories: List[str] = field(default_factory=list)
    maturity_rating: MaturityRating = MaturityRating.UNKNOWN
    made_for_kids: Optional[bool] = None
    thumbnail: Optional[str] = None
    best_link: Optional[str] = None
    preview_link: Optional[str] = None
    canonical_volume_link: Optional[str] = None
    info_link: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    snippet: Optional[str] = None
    synopsis: Optional[str] = None
    buckets: List[str] = field(default_factory=list)
    source: str = "unknown"
    title_keyed: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def dedup_key(self) -> Optional[str]:
        """Stable identity used for request-wide dedup.

        Title-only sources fall back to a normalized ``title|first author`` key;
        anything else without an id has no key and stays out of the pools.
        """
        if self.id:
            return f"{self.source}:{self.id}"
        if not self.title_keyed:
            return None
        title = _normalize_key_part(self.title)
        if not title or self.title == PLACEHOLDER_TITLE:
            return None
        first_author = _normalize_key_part(self.authors[0]) if self.authors else ""
        return f"{self.source}:title:{title}|{first_author}"

    def classifier_text(self) -> str:
        parts = [self.title or "", self.subtitle or "", self.description or ""]
        return " ".join(parts).lower()

    def as_response(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title or PLACEHOLDER_TITLE,
            "authors": list(self.authors),
            "categories": list(self.categories),
            "maturityRating": self.maturity_rating.value,
            "thumbnail": self.thumbnail,
            "bestLink": self.best_link,
            "snippet": self.snippet,
            "synopsis": self.synopsis,
            "buckets": list(self.buckets),
        }
        if self.source == "youtube":
            payload["channel"] = self.authors[0] if self.authors else ""
            payload["madeForKids"] = self.made_for_kids
            payload["url"] = self.best_link
            payload["type"] = "video"
        else:
            payload["previewLink"] = self.preview_link
            payload["canonicalVolumeLink"] = self.canonical_volume_link
            payload["infoLink"] = self.info_link
            payload["description"] = self.description
        payload.update(self.extra)
        return payload


@dataclass(frozen=True)
class QueryExpression:
    """Upstream-ready search string plus metadata that is never sent upstream."""

    text: str
    juvenile_biased: bool = True
    origin: str = "variant"


@dataclass
class CatalogPage:
    items: List[NormalizedItem]
    next_cursor: Cursor = None
    approx_total: Optional[int] = None


@dataclass
class PoolBuild:
    with_thumb: List[NormalizedItem] = field(default_factory=list)
    without_thumb: List[NormalizedItem] = field(default_factory=list)
    total_raw_seen: int = 0
    exhausted: bool = True
    approx_total: int = 0
    pages_fetched: int = 0
    failed_pages: int = 0
    expressions_with_data: int = 0
    unkeyed_items: int = 0
    cancelled: bool = False
    queries_used: List[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.with_thumb) + len(self.without_thumb)

    def ordered(self) -> List[NormalizedItem]:
        """Cover-art items first, then the rest, each in arrival order."""
        return self.with_thumb + self.without_thumb


@dataclass
class PageResult:
    items: List[NormalizedItem]
    has_more: bool
    total_approx: Optional[int] = None
