"""
Core primitives shared by the cipher and the ledger.

- Canonical: deterministic JSON serialization
- EventCodec: validated encode/decode of event data
- Errors: the audit chain error taxonomy
"""

from .canonical import canonicalize, canonical_json_bytes, canonical_json_str
from .codec import EventCodec, EventData, EventValue, check_event_value
from .errors import (
    AuditChainError,
    AuthenticationFailure,
    IntegrityViolation,
    StoreError,
    ChainConflictError,
    MisuseError,
    KeyArchiveError,
    QueueError,
)

__all__ = [
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "EventCodec",
    "EventData",
    "EventValue",
    "check_event_value",
    "AuditChainError",
    "AuthenticationFailure",
    "IntegrityViolation",
    "StoreError",
    "ChainConflictError",
    "MisuseError",
    "KeyArchiveError",
    "QueueError",
]
