"""Reconciliation between a local document and its linked remote page.

Exports
-------
SyncCoordinator
    State machine driving link, refresh, manual sync and unlink.
blocks_changed, title_changed
    Structural comparison of stored and fetched content.
has_unsupported_nesting
    Detect nested pages or databases in a fetched block tree.
requires_confirmation
    Decide whether linking would overwrite local authorship.
"""

from .compat import has_unsupported_nesting
from .coordinator import NESTED_PAGE_MESSAGE, NESTED_SYNC_MESSAGE, SyncCoordinator
from .differ import blocks_changed, fingerprint, title_changed
from .gate import requires_confirmation

__all__ = [
    "NESTED_PAGE_MESSAGE",
    "NESTED_SYNC_MESSAGE",
    "SyncCoordinator",
    "blocks_changed",
    "fingerprint",
    "has_unsupported_nesting",
    "requires_confirmation",
    "title_changed",
]
