from models.catalog import NormalizedItem
from services.discovery.classifier import (
    BOOK_RULES,
    classify,
    classify_book,
    classify_library,
    video_category_label,
)


def test_picture_book_with_juvenile_fiction_category():
    buckets = classify(["Juvenile Fiction / Animals / Dinosaurs"], "A dinosaur picture book")

    assert buckets == ["juvenile_fiction", "early_readers", "juvenile_other"]


def test_young_adult_category():
    assert classify(["Young Adult Fiction"], "") == ["young_adult"]
    assert "young_adult" in classify([], "A gripping young-adult thriller")


def test_biography_from_category_and_kids_text():
    buckets = classify(["Biography & Autobiography"], "A life story for kids")
    assert "biography" in buckets


def test_middle_grade_and_education_text_rules():
    buckets = classify([], "A chapter book for ages 8-12 with a phonics workbook")
    assert "middle_grade" in buckets
    assert "education" in buckets


def test_literature_from_kids_literary_category():
    buckets = classify(["Juvenile Fiction / Fairy Tales & Folklore"], "")
    assert "literature" in buckets


def test_uncategorized_is_empty_not_error():
    assert classify([], "") == []
    assert classify([None], None) == []


def test_classification_is_pure():
    categories = ["Juvenile Nonfiction / Science & Nature"]
    text = "Counting shapes and colors"
    first = classify(categories, text, BOOK_RULES)
    assert classify(list(categories), text, BOOK_RULES) == first
    assert first == classify(categories, text, BOOK_RULES)


def test_classify_book_reads_title_subtitle_and_description():
    item = NormalizedItem(
        id="v1",
        title="Silly Rhymes",
        subtitle="A board book",
        description=None,
        categories=[],
    )
    assert classify_book(item) == ["poetry_humor", "early_readers"]


def test_library_rules():
    assert classify_library(["Juvenile fiction"], "The cat") == ["juvenile_fiction"]
    assert classify_library([], "Zebra") == ["juvenile_other"]
    assert "young_adult" in classify_library(["Teenagers -- Fiction"], "Running")
    assert "science_nature" in classify_library(["Animals -- Juvenile literature"], "Sharks")


def test_video_category_label():
    item = NormalizedItem(id="x", source="youtube", extra={"categoryHint": 10})
    assert video_category_label(item) == "music"
    assert video_category_label(NormalizedItem(id="y", source="youtube")) is None
