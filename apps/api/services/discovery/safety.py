"""Content-safety policy for catalog items."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from models.catalog import CatalogMode, MaturityRating, NormalizedItem
from services.discovery.classifier import YOUNG_ADULT, video_category_label

# Known children's channels whose music uploads skip the kids-music text checks.
TRUSTED_MUSIC_CHANNELS = frozenset(
    {
        "UCbCmjCuTUZos6Inko4u57UQ",  # Cocomelon
        "UCPlwvN0w4qFSP1FllALB92w",  # Super Simple
        "UCcdwLMPsaU2ezNSJU1nFoBQ",  # Pinkfong
        "UC9x0AN7BWHpCDHSm9NiJFJQ",  # Blippi
        "UCXJQ-jqFN8JwXvY4x7R5Q2A",  # Mother Goose Club
    }
)

POSITIVE_KIDS_MUSIC = re.compile(
    r"\b(nursery|kids?|children'?s|kinder|toddlers?|preschool|rhymes?|lullab(y|ies)|phonics|abcs?|abc song|123"
    r"|sing[-\s]?along|cocomelon|pinkfong|super simple|little baby bum|kidzbop|peppa pig|blippi|sesame"
    r"|mother goose)\b",
    re.IGNORECASE,
)
NEGATIVE_KIDS_MUSIC = re.compile(
    r"\b(official music video|explicit|vevo|lyrics?|live performance|mtv|remix|tiktok|club|trap|drill|nsfw)\b",
    re.IGNORECASE,
)
NEGATIVE_GENERIC = re.compile(
    r"\b(prank|challenge|fail compilation|horror|violent|gore|gun|shooting|war|murder|crime|killer|nsfw"
    r"|self[-\s]?harm|suicide|porn\w*|sexy)\b|18\+",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class SafetyPolicy:
    """Per-request knobs of the filter."""

    include_young_adult: bool = False
    bucket: Optional[str] = None

    @classmethod
    def for_request(cls, bucket: Optional[str] = None, include_young_adult: bool = False) -> "SafetyPolicy":
        bucket = (bucket or "").strip().lower() or None
        # Asking for the young-adult shelf is itself the opt-in.
        return cls(include_young_adult=include_young_adult or bucket == YOUNG_ADULT, bucket=bucket)


def is_not_mature(item: NormalizedItem) -> bool:
    # An absent rating counts as NOT_MATURE. Product policy; see DESIGN.md.
    return item.maturity_rating in (MaturityRating.NOT_MATURE, MaturityRating.UNKNOWN)


def _video_text(item: NormalizedItem) -> str:
    return f"{item.title or ''} {item.description or ''}"


def video_text_is_acceptable(item: NormalizedItem) -> bool:
    text = _video_text(item)
    if NEGATIVE_GENERIC.search(text):
        return False
    if video_category_label(item) != "music":
        return True
    if str(item.extra.get("channelId") or "") in TRUSTED_MUSIC_CHANNELS:
        return True
    return bool(POSITIVE_KIDS_MUSIC.search(text)) and not NEGATIVE_KIDS_MUSIC.search(text)


def is_acceptable(item: NormalizedItem, mode: CatalogMode | str, policy: SafetyPolicy = SafetyPolicy()) -> bool:
    """
    Decide whether an item may appear in a default response.

    Books and library records need a non-mature rating, must not be young
    adult unless the policy opts in, and must carry the requested bucket.
    Videos are screened on title and description here; the made-for-kids
    confirmation runs later via ``filter_made_for_kids`` because it needs a
    batched upstream lookup.
    """
    mode = CatalogMode(mode)
    if mode == CatalogMode.VIDEO:
        return video_text_is_acceptable(item)

    if not is_not_mature(item):
        return False
    if not policy.include_young_adult and YOUNG_ADULT in item.buckets:
        return False
    if policy.bucket and policy.bucket not in item.buckets:
        return False
    return True


def filter_made_for_kids(items: Iterable[NormalizedItem], kids_safe_ids: Set[str]) -> List[NormalizedItem]:
    """Keep only videos whose id the upstream confirmed as made for kids."""
    kept: List[NormalizedItem] = []
    for item in items:
        if item.id and item.id in kids_safe_ids:
            item.made_for_kids = True
            kept.append(item)
    return kept
