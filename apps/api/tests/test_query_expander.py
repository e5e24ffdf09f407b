from models.catalog import CatalogMode, QueryExpression
from services.discovery.query_expander import (
    BOOK_SEED_SUBJECTS,
    expand,
    normalize_video_category,
    term_variants,
)


def _texts(expressions):
    return [expression.text for expression in expressions]


def test_plural_term_expands_to_singular_and_intitle_variants():
    texts = _texts(expand("dinosaurs", CatalogMode.BOOK))

    assert texts[0] == "dinosaurs subject:juvenile"
    assert "dinosaur subject:juvenile" in texts
    assert "intitle:dinosaurs subject:juvenile" in texts
    assert not any("dinosaurss" in text for text in texts)
    # Singular variants come after every template of the typed term.
    assert texts.index("dinosaurs subject:juvenile") < texts.index("dinosaur subject:juvenile")


def test_term_variants_handle_y_and_ies_endings():
    assert term_variants("bunny")[0] == "bunny"
    assert "bunnies" in term_variants("bunny")
    assert term_variants("stories") == ["stories", "story"]
    assert term_variants("cat") == ["cat", "cats"]


def test_multi_word_terms_are_not_pluralized():
    assert term_variants("  space   rockets ") == ["space rockets"]
    assert term_variants("") == []


def test_empty_book_query_uses_seed_subjects():
    texts = _texts(expand("", CatalogMode.BOOK))
    assert texts == BOOK_SEED_SUBJECTS


def test_bucket_topup_seeds_follow_base_expressions():
    expressions = expand("", CatalogMode.BOOK, "early_readers")
    texts = _texts(expressions)

    assert texts[: len(BOOK_SEED_SUBJECTS)] == BOOK_SEED_SUBJECTS
    assert '"picture book" subject:juvenile' in texts
    assert '"sight words" subject:juvenile' in texts
    assert all(expression.juvenile_biased for expression in expressions)


def test_literature_topup_is_not_juvenile_biased():
    expressions = expand("owls", CatalogMode.BOOK, "literature")
    topups = [expression for expression in expressions if expression.origin == "topup"]

    assert topups
    assert all(not expression.juvenile_biased for expression in topups)
    assert "owls folklore" in _texts(topups)
    assert all("subject:juvenile" not in expression.text for expression in topups)


def test_unknown_bucket_adds_nothing():
    assert _texts(expand("", CatalogMode.BOOK, "not_a_bucket")) == BOOK_SEED_SUBJECTS


def test_expressions_are_unique():
    texts = _texts(expand("cat", CatalogMode.BOOK, "juvenile_fiction"))
    assert len(texts) == len(set(texts))


def test_video_shelf_maps_to_fixed_phrase():
    texts = _texts(expand("", CatalogMode.VIDEO, "songs_rhymes"))
    assert texts[0] == "nursery rhymes kids songs"
    assert texts[1:] == ["nursery rhymes", "kids songs"]


def test_video_shelf_aliases_and_topic_seeds():
    assert normalize_video_category("Songs") == "songs_rhymes"
    assert normalize_video_category("art-craft") == "artcraft"

    texts = _texts(expand("shark", CatalogMode.VIDEO, "songs"))
    assert texts[0] == "shark nursery rhymes"
    assert texts[-1] == "nursery rhymes kids songs"


def test_video_topic_without_shelf():
    assert _texts(expand("trains", CatalogMode.VIDEO)) == ["trains kids"]
    assert _texts(expand("", CatalogMode.VIDEO)) == ["stories for kids", "learning for kids"]


def test_library_queries_are_sent_as_typed():
    assert expand("  the  gruffalo ", CatalogMode.LIBRARY) == [
        QueryExpression("the gruffalo", juvenile_biased=False, origin="variant")
    ]
    assert expand("", CatalogMode.LIBRARY) == []
