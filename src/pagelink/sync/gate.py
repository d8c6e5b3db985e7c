"""Protection of existing local authorship when linking a page."""

from __future__ import annotations

from pagelink.blocks import block_text, is_link_block
from pagelink.models import LocalDocument


def requires_confirmation(document: LocalDocument, provider_type: str) -> bool:
    """Return ``True`` if linking would overwrite content the user wrote.

    * an empty document never needs confirmation;
    * two or more blocks always do;
    * a single block does unless it is already a link block of the same
      provider, or its text is blank.
    """
    blocks = document.blocks
    if not blocks:
        return False
    if len(blocks) > 1:
        return True
    block = blocks[0]
    if is_link_block(block, provider_type):
        return False
    return bool(block_text(block).strip())
