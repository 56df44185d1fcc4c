"""Content digest for stored records."""
from __future__ import annotations

import hashlib
import json
from typing import Any


def generate_digest(data: Any) -> str:
    """SHA-256 of the canonical JSON form of a record.

    Key order does not affect the digest.
    """
    encoded = json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
