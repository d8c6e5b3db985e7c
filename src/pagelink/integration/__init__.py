"""pagelink.integration -- connection lifecycle, page catalog and fetch path."""

from __future__ import annotations

from .catalog import PageCatalog
from .connection import ConnectionManager
from .source import PageSource

__all__ = [
    "ConnectionManager",
    "PageCatalog",
    "PageSource",
]
