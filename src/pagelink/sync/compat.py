"""Detection of remote content that cannot be linked.

Linked pages must be flat documents: a page that embeds other pages or
databases is rejected.  :func:`has_unsupported_nesting` walks the whole
block tree, looking for children under ``children``, under ``content``, and
inside the type-specific payload (``block[block["type"]]["children"]``).
"""

from __future__ import annotations

from typing import Any

UNSUPPORTED_BLOCK_TYPES: frozenset[str] = frozenset({"child_page", "child_database"})


def _is_unsupported(block: dict[str, Any]) -> bool:
    block_type = block.get("type")
    if not isinstance(block_type, str):
        return False
    if block_type in UNSUPPORTED_BLOCK_TYPES:
        return True
    if block_type == "link_to_page":
        target = block.get("link_to_page")
        if isinstance(target, dict):
            return target.get("type") == "database_id" or "database_id" in target
    return False


def _child_lists(block: dict[str, Any]) -> list[list[Any]]:
    lists: list[list[Any]] = []
    for key in ("children", "content"):
        value = block.get(key)
        if isinstance(value, list):
            lists.append(value)
    block_type = block.get("type")
    if isinstance(block_type, str):
        payload = block.get(block_type)
        if isinstance(payload, dict) and isinstance(payload.get("children"), list):
            lists.append(payload["children"])
    return lists


def has_unsupported_nesting(blocks: list[dict[str, Any]]) -> bool:
    """Return ``True`` if any block in the tree is a nested page or database.

    Total over malformed input: non-dict entries are skipped.
    """
    stack: list[Any] = list(blocks)
    while stack:
        block = stack.pop()
        if not isinstance(block, dict):
            continue
        if _is_unsupported(block):
            return True
        for children in _child_lists(block):
            stack.extend(children)
    return False
