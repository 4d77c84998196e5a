"""
Append-only, encrypted, hash-chained audit ledger.

Append: event data -> EventCodec -> CipherBox -> chain_hash -> store.
Verify: walk stored records in id order recomputing every link; no
decryption is involved, so integrity checks work without the key.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from . import metrics
from .alerts.signal import LoggingTamperSignal, TamperReport, TamperSignal
from .core.codec import EventCodec, EventData
from .core.errors import ChainConflictError, IntegrityViolation, MisuseError
from .crypto.cipher import CipherBox, DecryptResult
from .log.integrity import GENESIS_HASH, VerificationResult, chain_hash, verify_chain
from .log.records import AuditRecord
from .log.store import AppendResult, AuditStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChainLedger:
    """
    Audit ledger over an AuditStore.

    Every append links the new record to the current head; the store's
    compare-and-append keeps concurrent writers from forking the chain.

    Example:
        >>> ledger = ChainLedger(store, CipherBox("secret"))
        >>> record_id = ledger.append("login", {"user": "alice"})
        >>> ledger.verify_integrity()
        True
    """

    def __init__(
        self,
        store: AuditStore,
        cipher: CipherBox,
        signal: Optional[TamperSignal] = None,
        codec: Optional[EventCodec] = None,
        clock: Optional[Callable[[], datetime]] = None,
        batch_size: int = 500,
    ):
        if batch_size < 1:
            raise MisuseError(f"batch_size must be positive, got {batch_size}")
        self.store = store
        self.cipher = cipher
        self.signal = signal or LoggingTamperSignal()
        self.codec = codec or EventCodec()
        self.clock = clock or _utc_now
        self.batch_size = batch_size

    def last_record_hash(self) -> Optional[str]:
        """Hash of the highest-id record, or None for an empty chain."""
        return self.store.get_last_hash()

    def _seal(self, event_type: str, event_data: Mapping[str, Any]) -> str:
        if not isinstance(event_type, str) or not event_type.strip():
            raise MisuseError("event_type must be a non-empty string")
        payload = self.codec.encode(event_data)
        return self.cipher.encrypt(payload)

    def _link(self, event_type: str, ciphertext: str) -> AppendResult:
        previous_hash = self.last_record_hash() or GENESIS_HASH
        event_hash = chain_hash(ciphertext, previous_hash)
        return self.store.append(
            event_type=event_type,
            ciphertext=ciphertext,
            event_hash=event_hash,
            previous_hash=previous_hash,
            created_at=self.clock(),
            expected_prev_hash=previous_hash,
        )

    def _committed(self, event_type: str, result: AppendResult) -> int:
        record = result.record
        metrics.track_append(event_type)
        logger.debug(
            "Appended record %s (%s) hash=%s", record.id, event_type, record.event_hash[:16]
        )
        return record.id

    def append(self, event_type: str, event_data: Mapping[str, Any]) -> int:
        """
        Encrypt event_data and append it as the new chain head.

        Args:
            event_type: Short tag stored in clear
            event_data: JSON-compatible mapping (encrypted at rest)

        Returns:
            Store-assigned record id

        Raises:
            MisuseError: Invalid event type or data (nothing written)
            ChainConflictError: Another writer moved the head (nothing written)
            StoreError: The store failed
        """
        ciphertext = self._seal(event_type, event_data)
        result = self._link(event_type, ciphertext)
        if not result.committed:
            raise ChainConflictError(
                f"chain head moved to {result.observed_prev_hash} during append"
            )
        return self._committed(event_type, result)

    def append_with_retry(
        self, event_type: str, event_data: Mapping[str, Any], max_retries: int = 3
    ) -> int:
        """
        Append, relinking on head conflicts up to max_retries times.

        The payload is encrypted once; only the link (previous and event
        hash) is recomputed. Store failures are never retried.
        """
        ciphertext = self._seal(event_type, event_data)
        for attempt in range(max_retries):
            result = self._link(event_type, ciphertext)
            if result.committed:
                return self._committed(event_type, result)
            logger.info("Append conflict on attempt %d, relinking", attempt + 1)
        raise ChainConflictError(f"append failed after {max_retries} conflicts")

    def verify(self) -> VerificationResult:
        """
        Verify the full chain and return diagnostics.

        The tamper signal fires once for the first broken link; signal
        failures are logged and never change the result.
        """
        with metrics.track_verify_duration():
            result = verify_chain(self.store.iter_records(self.batch_size))

        if result.valid:
            logger.info("Audit chain verified (%d records)", result.checked)
            return result

        metrics.track_tamper()
        report = TamperReport(
            record=result.record,
            expected_hash=result.expected,
            actual_hash=result.actual,
            reason=result.error,
            checked=result.checked,
        )
        try:
            self.signal.on_tamper_detected(report)
        except Exception as ex:
            logger.warning("Tamper signal failed: %s", ex)
        return result

    def verify_integrity(self) -> bool:
        """True if every stored link checks out (an empty chain does)."""
        return self.verify().valid

    def require_integrity(self) -> VerificationResult:
        """
        Verify the chain and raise if it is broken.

        Raises:
            IntegrityViolation: With the VerificationResult attached
        """
        result = self.verify()
        if not result.valid:
            raise IntegrityViolation(
                f"{result.error} at record {result.record.id}", result=result
            )
        return result

    def get_record(self, record_id: int) -> Optional[AuditRecord]:
        return self.store.get(record_id)

    def recent(self, limit: int = 10) -> List[AuditRecord]:
        return self.store.recent(limit)

    def read_event(self, record: AuditRecord) -> DecryptResult:
        """Decrypt a record's payload under the current key."""
        return self.cipher.decrypt(record.ciphertext)

    def decode_event(self, record: AuditRecord) -> Optional[EventData]:
        """
        Decrypt and decode a record's event data.

        Returns:
            The event mapping, or None if the record does not decrypt
            under the current key
        """
        opened = self.read_event(record)
        if not opened.ok:
            return None
        return self.codec.decode(opened.plaintext)
