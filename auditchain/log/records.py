"""
Audit record model.

Records are immutable once written; any change after the fact is exactly
the condition the hash chain exists to expose.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AuditRecord:
    """
    Persisted audit chain record.

    Fields:
        id: Store-assigned, monotonically increasing sequence number
        event_type: Short tag (e.g., "login", "delete_user"); not hashed
        ciphertext: Base64 AES-GCM envelope of the event data
        event_hash: sha256(ciphertext || previous_hash), hex
        previous_hash: event_hash of record id-1, or GENESIS_HASH
        created_at: Write timestamp
    """
    id: int
    event_type: str
    ciphertext: str
    event_hash: str
    previous_hash: str
    created_at: datetime
