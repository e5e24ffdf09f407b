"""Routers package."""

from . import (
    health,
    books,
    videos,
    library,
)
