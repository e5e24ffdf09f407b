"""Heuristic topical bucket classification.

Rules are evaluated in table order and are independent of each other: every
rule whose predicate matches contributes its label. Inputs are expected to be
lower-cased (see ``classify``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Sequence, Tuple

from models.catalog import NormalizedItem

YOUNG_ADULT = "young_adult"
JUVENILE_FICTION = "juvenile_fiction"
JUVENILE_NONFICTION = "juvenile_nonfiction"
LITERATURE = "literature"
BIOGRAPHY = "biography"
POETRY_HUMOR = "poetry_humor"
EARLY_READERS = "early_readers"
MIDDLE_GRADE = "middle_grade"
EDUCATION = "education"
JUVENILE_OTHER = "juvenile_other"
SCIENCE_NATURE = "science_nature"

BOOK_BUCKETS = (
    YOUNG_ADULT,
    JUVENILE_FICTION,
    JUVENILE_NONFICTION,
    LITERATURE,
    BIOGRAPHY,
    POETRY_HUMOR,
    EARLY_READERS,
    MIDDLE_GRADE,
    EDUCATION,
    JUVENILE_OTHER,
)

_KIDS_WORD = re.compile(r"children|juvenile|kids?")
_LITERARY_CATEGORY = re.compile(
    r"literature|classics?|antholog(y|ies)|folklore|myths?|mythology|fables|fairy tales?"
)
_KIDS_TEXT = re.compile(r"\bchildren|juvenile|kids?\b")


@dataclass(frozen=True)
class BucketRule:
    label: str
    categories: Tuple[str, ...] = ()
    text: Optional[Pattern[str]] = None
    extra: Optional[Callable[[Sequence[str], str], bool]] = None

    def matches(self, categories: Sequence[str], text: str) -> bool:
        if any(needle in category for category in categories for needle in self.categories):
            return True
        if self.text is not None and self.text.search(text):
            return True
        return bool(self.extra and self.extra(categories, text))


def _literary_kids_category(categories: Sequence[str], text: str) -> bool:
    return any(_LITERARY_CATEGORY.search(c) and _KIDS_WORD.search(c) for c in categories)


def _kids_biography_category(categories: Sequence[str], text: str) -> bool:
    if not any("biography & autobiography" in c for c in categories):
        return False
    return any("juvenile" in c for c in categories) or bool(_KIDS_TEXT.search(text))


def _juvenile_prefix(categories: Sequence[str], text: str) -> bool:
    return any(c.startswith("juvenile") for c in categories)


BOOK_RULES: Tuple[BucketRule, ...] = (
    BucketRule(YOUNG_ADULT, ("young adult",), re.compile(r"\byoung[-\s]?adult\b")),
    BucketRule(JUVENILE_FICTION, ("juvenile fiction",)),
    BucketRule(JUVENILE_NONFICTION, ("juvenile nonfiction",)),
    BucketRule(
        LITERATURE,
        ("juvenile literature", "children's literature"),
        re.compile(
            r"\b(children'?s|juvenile)\s+literature\b"
            r"|\b(classic|classics|great books|canon|folklore|myths?|mythology|fables?|fairy[-\s]?tales?"
            r"|retold|retelling|antholog(?:y|ies)|reader'?s? theater|novel study|novel studies)\b"
        ),
        _literary_kids_category,
    ),
    BucketRule(
        BIOGRAPHY,
        ("juvenile biography",),
        re.compile(r"\bbiograph|autobiograph|life of\b|\bwho (?:is|was)\b"),
        _kids_biography_category,
    ),
    BucketRule(
        POETRY_HUMOR,
        ("juvenile poetry", "juvenile humor", "juvenile humour"),
        re.compile(r"\b(poem|poems|poetry|rhyme|rhymes|verse|limerick|jokes?|humou?r|funny|laugh\w*|giggle)\b"),
    ),
    BucketRule(
        EARLY_READERS,
        ("picture", "board book", "early reader", "beginning reader"),
        re.compile(r"\b(picture book|board book|early reader|beginning reader|leveled reader|sight words?)\b"),
    ),
    BucketRule(
        MIDDLE_GRADE,
        ("middle grade",),
        re.compile(
            r"\bmiddle[-\s]?grade\b"
            r"|\b(ages?\s*(8|9|10|11|12)(?:\s*[-–]\s*1?2)?"
            r"|grades?\s*(3|4|5|6|7)(?:\s*[-–]\s*(6|7))?"
            r"|upper\s+elementary|middle\s+school|chapter\s*books?|independent\s*reader)\b"
        ),
    ),
    BucketRule(
        EDUCATION,
        (
            "education", "study aids", "language arts", "reading", "spelling", "handwriting",
            "mathematics", "math", "algebra", "geometry", "science", "technology", "computers",
            "curriculum", "schools", "activity books", "workbooks", "study guides",
        ),
        re.compile(
            r"\b(education|educational|study (?:and )?teaching|curriculum|school|classroom|workbook"
            r"|activity book|worksheet|phonics|sight words?|counting|shapes|colou?rs?|alphabet)\b"
        ),
    ),
    BucketRule(JUVENILE_OTHER, extra=_juvenile_prefix),
)


def classify(categories_raw: Sequence[str], combined_text: str, rules: Sequence[BucketRule] = BOOK_RULES) -> List[str]:
    """
    Assign bucket labels from category metadata and free text.

    Pure: identical inputs always give the same labels, in rule order.
    An empty list means "uncategorized", not an error.
    """
    categories = [str(c or "").lower() for c in categories_raw]
    text = str(combined_text or "").lower()
    return [rule.label for rule in rules if rule.matches(categories, text)]


def classify_book(item: NormalizedItem) -> List[str]:
    return classify(item.categories, item.classifier_text())


# Library records have sparse subjects, so matching runs on subjects + title.
_LIBRARY_KEYWORD_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (JUVENILE_NONFICTION, ("non-fiction", "nonfiction")),
    (EARLY_READERS, ("picture book", "board book", "early reader", "beginner")),
    (MIDDLE_GRADE, ("middle grade", "ages 8-12", "juvenile literature")),
    (BIOGRAPHY, ("biography", "biographies", "autobiography")),
    (POETRY_HUMOR, ("poetry", "poems", "humor", "humour", "jokes", "comic")),
    (EDUCATION, ("education", "textbook", "study", "learning", "reference")),
    (LITERATURE, ("literature", "classic")),
    (SCIENCE_NATURE, ("science", "nature", "animals", "space")),
)


def classify_library(subjects: Sequence[str], title: str) -> List[str]:
    """Bucket a library catalogue record; always returns at least one label."""
    combined = " ".join(str(s or "").lower() for s in subjects) + " " + str(title or "").lower()
    buckets: List[str] = []

    if any(word in combined for word in ("fiction", "stories", "novel")):
        if "juvenile" in combined or "children" in combined:
            buckets.append(JUVENILE_FICTION)
        elif "young adult" in combined or "teen" in combined:
            buckets.append(YOUNG_ADULT)
    for label, needles in _LIBRARY_KEYWORD_RULES:
        if any(needle in combined for needle in needles):
            buckets.append(label)

    if not buckets:
        if "young adult" in combined or "teen" in combined:
            buckets.append(YOUNG_ADULT)
        elif "juvenile" in combined or "children" in combined:
            buckets.append(JUVENILE_FICTION)
        else:
            buckets.append(JUVENILE_OTHER)
    return list(dict.fromkeys(buckets))


VIDEO_CATEGORY_LABELS: Dict[int, str] = {27: "education", 24: "entertainment", 10: "music"}


def video_category_label(item: NormalizedItem) -> Optional[str]:
    """Map the upstream category hint of a video to a readable label."""
    hint = item.extra.get("categoryHint")
    return VIDEO_CATEGORY_LABELS.get(hint) if isinstance(hint, int) else None
