from models.catalog import NormalizedItem
from services.discovery.paginator import clamp_page, clamp_page_size, paginate


def _pool(count):
    return [NormalizedItem(id=f"i{index}") for index in range(count)]


def test_second_page_is_exact_slice():
    pool = _pool(50)
    items, has_more = paginate(pool, page=2, page_size=20)

    assert items == pool[20:40]
    assert has_more is True


def test_has_more_depends_on_pool_length_and_exhaustion():
    pool = _pool(40)
    assert paginate(pool, 2, 20, exhausted=True) == (pool[20:40], False)
    assert paginate(pool, 2, 20, exhausted=False)[1] is True


def test_page_past_end_is_empty():
    items, has_more = paginate(_pool(5), page=3, page_size=20)
    assert items == []
    assert has_more is False


def test_clamping():
    assert clamp_page(0) == 1
    assert clamp_page("-4") == 1
    assert clamp_page("abc") == 1
    assert clamp_page("3") == 3
    assert clamp_page_size(500, 40) == 40
    assert clamp_page_size(0, 40) == 1
    assert clamp_page_size("x", 20) == 20
    assert clamp_page_size(None, 100) == 20
