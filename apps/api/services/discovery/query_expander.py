"""Turn a user search term or shelf into prioritized upstream query expressions."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from models.catalog import CatalogMode, QueryExpression

# Browsing with no search term: subject seeds that keep results child-oriented.
BOOK_SEED_SUBJECTS = [
    "subject:juvenile",
    'subject:"early reader"',
    'subject:"board book"',
    'subject:"picture book"',
    "subject:\"children's\"",
    'subject:"children"',
    'subject:"juvenile fiction"',
    'subject:"juvenile nonfiction"',
]

# Appended to every term variant, in priority order. "{term}" is replaced.
BOOK_SUFFIX_TEMPLATES = [
    "{term} subject:juvenile",
    "intitle:{term} subject:juvenile",
    "{term} subject:\"children's\"",
    '{term} subject:"children"',
    '{term} subject:"picture book"',
    '{term} subject:"early reader"',
    '{term} subject:"board book"',
    '{term} subject:"juvenile fiction"',
    '{term} subject:"juvenile nonfiction"',
    "{term} subject:\"children's literature\"",
    '{term} subject:"juvenile literature"',
]

# Lowest-priority expressions used to deepen a single bucket shelf.
BUCKET_TOPUP_SEEDS: Dict[str, List[str]] = {
    "education": [
        "subject:education", '"study and teaching"', "phonics", "workbook", "worksheet",
        "curriculum", '"language arts"', "math", "science", "STEM",
    ],
    "poetry_humor": ["poetry", "rhyme", "jokes", "humor", "humour", "limerick", "verse"],
    "biography": ["biography", '"life of"', "who was", "autobiography"],
    "early_readers": ['"picture book"', '"board book"', '"early reader"', '"leveled reader"', '"sight words"'],
    "middle_grade": [
        '"middle grade"', '"chapter book"', '"upper elementary"', '"middle school"',
        '"ages 8-12"', '"ages 9-12"', '"grades 3-7"', '"grades 4-7"', "MG",
    ],
    "literature": [
        "\"children's literature\"", '"juvenile literature"', "classic", "classics", '"fairy tales"',
        "folklore", "myths", "mythology", "fables", "anthology", "retold", "retelling",
        '"novel study"', '"novel studies"',
    ],
    "juvenile_fiction": ['"juvenile fiction"', "kids fiction", "children fiction"],
    "juvenile_nonfiction": ['"juvenile nonfiction"', "kids nonfiction", "children nonfiction"],
    "young_adult": ['"young adult"', "YA"],
}

# These shelves are broad enough that a juvenile subject restriction starves them.
UNBIASED_TOPUP_BUCKETS = {"literature", "middle_grade"}

VIDEO_CATEGORY_ALIASES = {
    "songs": "songs_rhymes",
    "rhymes": "songs_rhymes",
    "nursery_rhymes": "songs_rhymes",
    "story": "stories",
    "art": "artcraft",
    "crafts": "artcraft",
    "art_craft": "artcraft",
}

VIDEO_CATEGORY_PHRASES: Dict[str, str] = {
    "stories": "bedtime stories for kids",
    "songs_rhymes": "nursery rhymes kids songs",
    "learning": "learning videos for kids",
    "science": "science experiments for kids",
    "math": "math for kids",
    "animals": "animals for kids",
    "artcraft": "arts and crafts for kids",
}

# Topic-specific seeds per shelf; "{topic}" is replaced.
VIDEO_TOPIC_SEEDS: Dict[str, List[str]] = {
    "songs_rhymes": ["{topic} nursery rhymes", "{topic} kids songs", "{topic} abc song"],
    "stories": ["{topic} bedtime story", "{topic} read aloud", "{topic} stories for kids"],
    "learning": ["{topic} for kids", "{topic} phonics", "{topic} alphabet for kids"],
    "science": ["{topic} science for kids", "{topic} stem for kids", "{topic} experiment for kids"],
    "math": ["{topic} math for kids", "{topic} counting for kids", "{topic} numbers for kids"],
    "animals": ["{topic} animals for kids", "{topic} dinosaurs for kids", "{topic} wildlife for kids"],
    "artcraft": ["{topic} art for kids", "{topic} crafts for kids", "{topic} drawing for kids"],
}

VIDEO_DEFAULT_QUERY = "stories for kids"
VIDEO_FALLBACK_QUERIES: Dict[str, List[str]] = {
    "songs_rhymes": ["nursery rhymes", "kids songs"],
    "stories": ["bedtime stories", "stories for kids"],
}
VIDEO_GENERIC_FALLBACKS = ["stories for kids", "learning for kids"]


def _clean(value: Optional[str]) -> str:
    return re.sub(r"\s+", " ", str(value or "")).strip()


def _unique(expressions: Sequence[QueryExpression]) -> List[QueryExpression]:
    """Drop repeated query strings, keeping the first (highest priority) one."""
    seen = set()
    ordered: List[QueryExpression] = []
    for expression in expressions:
        if not expression.text or expression.text in seen:
            continue
        seen.add(expression.text)
        ordered.append(expression)
    return ordered


def term_variants(term: str) -> List[str]:
    """
    Lexical variants of a search term.

    Single words of three or more letters also get a plural (``+s``, plus
    ``y -> ies``). Words that already look plural get their singular instead
    of a second ``s``.
    """
    term = _clean(term)
    if not term:
        return []
    variants = [term]
    parts = term.split(" ")
    if len(parts) == 1 and len(term) >= 3:
        lowered = term.lower()
        looks_plural = len(term) >= 4 and lowered.endswith("s") and not lowered.endswith("ss")
        if looks_plural:
            variants.append(term[:-3] + "y" if lowered.endswith("ies") else term[:-1])
        else:
            variants.append(term + "s")
        if lowered.endswith("y"):
            variants.append(term[:-1] + "ies")
    return list(dict.fromkeys(variants))


def normalize_video_category(category: Optional[str]) -> str:
    key = _clean(category).lower().replace("-", "_").replace(" ", "_").replace("&", "")
    return VIDEO_CATEGORY_ALIASES.get(key, key)


def _expand_books(raw_query: str, bucket: str) -> List[QueryExpression]:
    term = _clean(raw_query)
    expressions: List[QueryExpression] = []
    if term:
        for variant in term_variants(term):
            for template in BOOK_SUFFIX_TEMPLATES:
                expressions.append(QueryExpression(template.format(term=variant), origin="variant"))
    else:
        expressions.extend(QueryExpression(seed, origin="seed") for seed in BOOK_SEED_SUBJECTS)

    for seed in BUCKET_TOPUP_SEEDS.get(bucket, []):
        if bucket in UNBIASED_TOPUP_BUCKETS:
            text = " ".join(part for part in (term, seed) if part)
            expressions.append(QueryExpression(text, juvenile_biased=False, origin="topup"))
        else:
            text = " ".join(part for part in (term, seed, "subject:juvenile") if part)
            expressions.append(QueryExpression(text, origin="topup"))
    return _unique(expressions)


def _expand_videos(raw_query: str, category: str) -> List[QueryExpression]:
    topic = _clean(raw_query)
    shelf = normalize_video_category(category)
    expressions: List[QueryExpression] = []

    if shelf in VIDEO_CATEGORY_PHRASES:
        if topic:
            expressions.extend(
                QueryExpression(template.format(topic=topic), origin="shelf")
                for template in VIDEO_TOPIC_SEEDS.get(shelf, [])
            )
        expressions.append(QueryExpression(VIDEO_CATEGORY_PHRASES[shelf], origin="shelf"))
    elif topic:
        expressions.append(QueryExpression(f"{topic} kids", origin="variant"))
    else:
        expressions.append(QueryExpression(VIDEO_DEFAULT_QUERY, origin="seed"))

    if not topic:
        for text in VIDEO_FALLBACK_QUERIES.get(shelf, VIDEO_GENERIC_FALLBACKS):
            expressions.append(QueryExpression(text, origin="fallback"))
    return _unique(expressions)


def expand(raw_query: str, mode: CatalogMode | str, category: Optional[str] = None) -> List[QueryExpression]:
    """
    Build upstream query expressions in priority order.

    Args:
        raw_query: Free-text user search, possibly empty.
        mode: ``book`` or ``video`` (``library`` searches are sent as typed).
        category: Book bucket for top-up seeds, or video shelf keyword.

    Returns:
        Deduplicated expressions; earlier entries are fetched first.
    """
    mode = CatalogMode(mode)
    if mode == CatalogMode.BOOK:
        return _expand_books(raw_query, _clean(category).lower())
    if mode == CatalogMode.VIDEO:
        return _expand_videos(raw_query, category or "")
    term = _clean(raw_query)
    return [QueryExpression(term, juvenile_biased=False, origin="variant")] if term else []
