"""Structural comparison of stored and fetched remote content.

Two block lists are considered equal when their *normalised* trees hash to
the same fingerprint.  Normalisation:

* drops volatile metadata (ids, timestamps, authors, request ids) at every
  depth;
* reduces rich-text segments to ``{text, annotations, href}`` where
  ``text`` is ``plain_text`` or ``text.content``, so both encodings of the
  same string compare equal;
* keeps only the annotations that are switched on, so an explicit
  all-default annotations object equals a missing one.

Block order, inline styles and empty-text segments all count.
"""

from __future__ import annotations

from typing import Any

from pagelink.models import LinkedResource
from pagelink.utils.hashing import hash_dict

_VOLATILE_KEYS: frozenset[str] = frozenset({
    "id",
    "created_time",
    "last_edited_time",
    "created_by",
    "last_edited_by",
    "request_id",
})


def _normalize_segment(segment: Any) -> Any:
    if not isinstance(segment, dict):
        return _normalize(segment)
    text = segment.get("plain_text")
    if text is None:
        inner = segment.get("text")
        if isinstance(inner, dict):
            text = inner.get("content")
        elif isinstance(inner, str):
            text = inner
    normalized: dict[str, Any] = {"text": text or ""}
    annotations = segment.get("annotations")
    if isinstance(annotations, dict):
        active = {k: v for k, v in annotations.items() if v and v != "default"}
        if active:
            normalized["annotations"] = active
    href = segment.get("href")
    if not href and isinstance(segment.get("text"), dict):
        link = segment["text"].get("link")
        if isinstance(link, dict):
            href = link.get("url")
    if href:
        normalized["href"] = href
    return normalized


def _normalize(value: Any) -> Any:
    if isinstance(value, list):
        return [_normalize(item) for item in value]
    if not isinstance(value, dict):
        return value
    result: dict[str, Any] = {}
    for key, item in value.items():
        if key in _VOLATILE_KEYS:
            continue
        if key == "rich_text" and isinstance(item, list):
            result[key] = [_normalize_segment(seg) for seg in item]
        else:
            result[key] = _normalize(item)
    return result


def fingerprint(blocks: list[dict[str, Any]]) -> str:
    """Return the content fingerprint of *blocks* after normalisation."""
    return hash_dict(_normalize(blocks))


def blocks_changed(stored: list[dict[str, Any]], fetched: list[dict[str, Any]]) -> bool:
    """Return ``True`` if *fetched* differs structurally from *stored*.

    Examples
    --------
    >>> blocks_changed([], [])
    False
    """
    if len(stored) != len(fetched):
        return True
    return fingerprint(stored) != fingerprint(fetched)


def title_changed(resource: LinkedResource, fetched_title: str | None) -> bool:
    """Return ``True`` if the remote title differs from the stored name.

    A ``None`` title (lookup failed or absent) never counts as a change.
    """
    if fetched_title is None:
        return False
    return fetched_title != resource.resource_name
