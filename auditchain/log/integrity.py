"""
Hash chain integrity.

Each record's event_hash covers its ciphertext and the previous record's
hash, so editing, reordering or relinking any stored record breaks every
link from that point on. Verification never needs the encryption key.
"""

import hashlib
from dataclasses import dataclass
from typing import Iterable, Optional

from .records import AuditRecord

GENESIS_HASH = "0" * 64


def chain_hash(ciphertext: str, previous_hash: str) -> str:
    """
    Compute the chained hash of a record.

    Hash input: ciphertext + previous_hash (UTF-8)

    Args:
        ciphertext: Stored envelope text
        previous_hash: Hash of previous record (or GENESIS_HASH)

    Returns:
        SHA-256 hash as hex string
    """
    b = (ciphertext + previous_hash).encode("utf-8")
    return hashlib.sha256(b).hexdigest()


@dataclass
class VerificationResult:
    """
    Result of a chain walk.

    Fields:
        valid: True if every link checked out
        checked: Number of records verified before the break (or in total)
        error: "previous_hash mismatch" or "event_hash mismatch"
        record: First offending record
        expected: Value the chain required
        actual: Value found in the store
    """
    valid: bool
    checked: int = 0
    error: Optional[str] = None
    record: Optional[AuditRecord] = None
    expected: Optional[str] = None
    actual: Optional[str] = None


def verify_chain(records: Iterable[AuditRecord]) -> VerificationResult:
    """
    Walk records in ascending id order and stop at the first broken link.

    Checks per record:
    - stored previous_hash equals the running hash (GENESIS_HASH first)
    - chain_hash(ciphertext, running hash) equals stored event_hash

    Records after a break are not inspected: once a link is broken nothing
    after it can be trusted.
    """
    prev_hash = GENESIS_HASH
    checked = 0

    for rec in records:
        if rec.previous_hash != prev_hash:
            return VerificationResult(
                valid=False,
                checked=checked,
                error="previous_hash mismatch",
                record=rec,
                expected=prev_hash,
                actual=rec.previous_hash,
            )

        computed = chain_hash(rec.ciphertext, prev_hash)
        if computed != rec.event_hash:
            return VerificationResult(
                valid=False,
                checked=checked,
                error="event_hash mismatch",
                record=rec,
                expected=computed,
                actual=rec.event_hash,
            )

        prev_hash = rec.event_hash
        checked += 1

    return VerificationResult(valid=True, checked=checked)
