"""
Canonical serialization for audit payloads.

Event data is serialized through these functions before encryption so the
same logical input always yields the same plaintext bytes.
"""

import json
from typing import Any


def canonicalize(obj: Any) -> Any:
    """
    Convert arbitrary nested dict/list to canonical form.

    Rules:
    - dict keys sorted
    - tuples converted to lists
    - recursive normalization
    """
    if isinstance(obj, dict):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic compact JSON bytes.

    Guarantees:
    - sort_keys=True
    - separators remove whitespace
    - ensure_ascii=False keeps UTF-8 stable
    - NaN and infinities are rejected

    Returns:
        UTF-8 encoded JSON bytes
    """
    canon = canonicalize(obj)
    s = json.dumps(
        canon,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    """
    Deterministic JSON string (for display or queue messages).

    Same guarantees as canonical_json_bytes but returns string.
    """
    return canonical_json_bytes(obj).decode("utf-8")
