from models.catalog import CatalogMode, MaturityRating, NormalizedItem
from services.discovery.safety import (
    SafetyPolicy,
    filter_made_for_kids,
    is_acceptable,
    video_text_is_acceptable,
)


def _book(rating=MaturityRating.NOT_MATURE, buckets=("juvenile_fiction",)):
    return NormalizedItem(id="b1", maturity_rating=rating, buckets=list(buckets), source="google_books")


def _video(title, category_id=None, channel_id="UCsomeone", video_id="v1"):
    return NormalizedItem(
        id=video_id,
        title=title,
        source="youtube",
        maturity_rating=MaturityRating.NOT_MATURE,
        extra={"categoryHint": category_id, "channelId": channel_id},
    )


def test_mature_books_are_rejected():
    assert not is_acceptable(_book(MaturityRating.MATURE), CatalogMode.BOOK)
    assert is_acceptable(_book(MaturityRating.NOT_MATURE), CatalogMode.BOOK)


def test_absent_rating_is_treated_as_not_mature():
    assert is_acceptable(_book(MaturityRating.UNKNOWN), CatalogMode.BOOK)


def test_young_adult_requires_opt_in():
    item = _book(buckets=("young_adult",))
    assert not is_acceptable(item, CatalogMode.BOOK)
    assert is_acceptable(item, CatalogMode.BOOK, SafetyPolicy(include_young_adult=True))
    assert SafetyPolicy.for_request(bucket="Young_Adult").include_young_adult is True


def test_bucket_filter_requires_requested_bucket():
    policy = SafetyPolicy.for_request(bucket="early_readers")
    assert not is_acceptable(_book(buckets=("juvenile_fiction",)), CatalogMode.BOOK, policy)
    assert is_acceptable(_book(buckets=("juvenile_fiction", "early_readers")), CatalogMode.BOOK, policy)


def test_generic_negative_terms_reject_any_video():
    assert not video_text_is_acceptable(_video("Epic prank compilation", category_id=24))
    assert video_text_is_acceptable(_video("Counting to ten", category_id=27))


def test_music_videos_need_kids_signals_unless_trusted():
    assert is_acceptable(_video("Wheels on the Bus nursery rhymes", category_id=10), CatalogMode.VIDEO)
    assert not is_acceptable(_video("Summer hits (Official Music Video)", category_id=10), CatalogMode.VIDEO)
    assert not is_acceptable(_video("Kids songs remix", category_id=10), CatalogMode.VIDEO)
    trusted = _video("Wheels on the Bus", category_id=10, channel_id="UCbCmjCuTUZos6Inko4u57UQ")
    assert is_acceptable(trusted, CatalogMode.VIDEO)


def test_filter_made_for_kids_keeps_confirmed_ids_only():
    items = [_video("a", video_id="a"), _video("b", video_id="b"), _video("c", video_id=None)]

    kept = filter_made_for_kids(items, {"a"})

    assert [item.id for item in kept] == ["a"]
    assert kept[0].made_for_kids is True
    assert items[1].made_for_kids is None
