"""MD5 helpers for content fingerprints.

The content differ reduces a block tree to a normalised structure and
compares the fingerprints of stored and fetched copies.  These hashes are
**not** used for security purposes.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def md5_hash(data: str) -> str:
    """Return the hex-encoded MD5 digest of *data* (UTF-8 encoded).

    Examples
    --------
    >>> md5_hash("hello")
    '5d41402abc4b2a76b9719d911017c592'
    """
    return hashlib.md5(data.encode("utf-8")).hexdigest()


def hash_dict(d: dict[str, Any] | list[Any]) -> str:
    """Return the hex-encoded MD5 of a JSON-serialised dict or list.

    Serialisation uses **sorted keys** and ``ensure_ascii=False`` so that
    key order never affects the result.  Values that JSON cannot encode
    natively are stringified.

    Examples
    --------
    >>> hash_dict({"b": 2, "a": 1}) == hash_dict({"a": 1, "b": 2})
    True
    """
    return md5_hash(json.dumps(d, sort_keys=True, ensure_ascii=False, default=str))
