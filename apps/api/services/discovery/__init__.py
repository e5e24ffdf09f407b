"""Catalog discovery pipeline: expansion, classification, safety, pooling, paging."""

from services.discovery.classifier import BOOK_BUCKETS, classify, classify_book, classify_library
from services.discovery.paginator import clamp_page, clamp_page_size, paginate
from services.discovery.pool_builder import PoolBuilder, book_target_count, build_pools, video_target_count
from services.discovery.query_expander import expand, normalize_video_category, term_variants
from services.discovery.safety import SafetyPolicy, filter_made_for_kids, is_acceptable

__all__ = [
    "BOOK_BUCKETS",
    "PoolBuilder",
    "SafetyPolicy",
    "book_target_count",
    "build_pools",
    "clamp_page",
    "clamp_page_size",
    "classify",
    "classify_book",
    "classify_library",
    "expand",
    "filter_made_for_kids",
    "is_acceptable",
    "normalize_video_category",
    "paginate",
    "term_variants",
    "video_target_count",
]
