"""Helpers for the editor's block shape.

The editor exchanges blocks shaped as::

    {"id": ..., "type": "paragraph", "content": [{"type": "text", "text": "..."}],
     "props": {...}}

A linked remote page is stored as a single *link block*::

    {"id": ..., "type": "integration", "position": 0,
     "content": [<fetched remote blocks>],
     "props": {"integration_type": "notion", "integration_id": "7",
               "resource_id": "<page id>", "resource_name": "<title>"}}
"""

from __future__ import annotations

import copy
import uuid
from typing import Any

from pagelink.models import LinkedResource

LINK_BLOCK_TYPE = "integration"


def build_link_block(resource: LinkedResource, blocks: list[dict[str, Any]]) -> dict[str, Any]:
    """Return a new link block carrying *resource* and the fetched *blocks*."""
    props: dict[str, Any] = {
        "integration_type": resource.provider_type,
        "resource_id": resource.resource_id,
        "resource_name": resource.resource_name,
    }
    if resource.integration_id is not None:
        props["integration_id"] = resource.integration_id
    return {
        "id": str(uuid.uuid4()),
        "type": LINK_BLOCK_TYPE,
        "content": copy.deepcopy(blocks),
        "props": props,
        "position": 0,
    }


def is_link_block(block: dict[str, Any], provider_type: str | None = None) -> bool:
    """Return ``True`` if *block* is a link block (of *provider_type*, if given)."""
    if block.get("type") != LINK_BLOCK_TYPE:
        return False
    if provider_type is None:
        return True
    return (block.get("props") or {}).get("integration_type") == provider_type


def find_link_block(
    blocks: list[dict[str, Any]],
    provider_type: str | None = None,
) -> dict[str, Any] | None:
    """Return the first link block in *blocks*, or ``None``."""
    for block in blocks:
        if is_link_block(block, provider_type):
            return block
    return None


def linked_resource_from_block(block: dict[str, Any]) -> LinkedResource | None:
    """Read the :class:`LinkedResource` stored in a link block's props.

    Returns ``None`` for blocks without a ``resource_id``.
    """
    props = block.get("props") or {}
    resource_id = props.get("resource_id")
    if not resource_id:
        return None
    integration_id = props.get("integration_id")
    return LinkedResource(
        provider_type=props.get("integration_type", ""),
        resource_id=str(resource_id),
        resource_name=props.get("resource_name") or "",
        integration_id=str(integration_id) if integration_id is not None else None,
    )


def replace_link_content(
    blocks: list[dict[str, Any]],
    fetched: list[dict[str, Any]],
    title: str | None,
    provider_type: str | None = None,
) -> list[dict[str, Any]]:
    """Return a copy of *blocks* with the link block's content and title replaced.

    Only link blocks of *provider_type* (any provider, if ``None``) are
    rewritten; every other block is carried over unchanged.  A ``None``
    *title* keeps the stored resource name.
    """
    updated: list[dict[str, Any]] = []
    for block in blocks:
        if is_link_block(block, provider_type):
            new_block = dict(block)
            new_block["content"] = copy.deepcopy(fetched)
            props = dict(block.get("props") or {})
            if title:
                props["resource_name"] = title
            new_block["props"] = props
            updated.append(new_block)
        else:
            updated.append(block)
    return updated


def block_text(block: dict[str, Any]) -> str:
    """Concatenate the inline text of an editor block.

    ``content`` may be a plain string or a list of inline items carrying
    ``text``.
    """
    content = block.get("content")
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for item in content:
        if isinstance(item, dict):
            text = item.get("text")
            if isinstance(text, str):
                parts.append(text)
    return "".join(parts)


def placeholder_document() -> list[dict[str, Any]]:
    """The default empty document: one empty paragraph."""
    return [
        {
            "id": str(uuid.uuid4()),
            "type": "paragraph",
            "props": {},
            "content": [],
        }
    ]
