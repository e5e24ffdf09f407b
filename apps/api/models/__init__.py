"""Models package."""

from .catalog import (
    CatalogMode,
    CatalogPage,
    Cursor,
    MaturityRating,
    NormalizedItem,
    PageResult,
    PoolBuild,
    QueryExpression,
)
