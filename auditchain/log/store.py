"""
AuditStore abstract interface.

Defines the contract the ledger needs from its persistence collaborator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional

from .records import AuditRecord


@dataclass(frozen=True)
class AppendResult:
    """
    Result of an append attempt.

    When committed is False and conflict is True, nothing was written: the
    chain head moved away from expected_prev_hash before the insert.
    """

    record: Optional[AuditRecord]
    committed: bool
    conflict: bool
    observed_prev_hash: Optional[str] = None


class AuditStore(ABC):
    """
    Abstract audit record storage.

    All implementations must guarantee:
    - Append-only (no updates, no deletes)
    - Store-assigned, increasing ids
    - Atomic appends: a record is either fully written or not at all
    """

    @abstractmethod
    def append(
        self,
        event_type: str,
        ciphertext: str,
        event_hash: str,
        previous_hash: str,
        created_at: datetime,
        expected_prev_hash: Optional[str] = None,
    ) -> AppendResult:
        """
        Append one record.

        Args:
            expected_prev_hash: If given, the insert only happens when the
                current head hash (GENESIS_HASH for an empty chain) equals it

        Returns:
            AppendResult with commit/conflict info

        Raises:
            StoreError: If the store fails
        """
        ...

    @abstractmethod
    def latest(self) -> Optional[AuditRecord]:
        """Return the record with the highest id, or None if empty."""
        ...

    @abstractmethod
    def iter_records(self, batch_size: int = 500) -> Iterator[AuditRecord]:
        """
        Yield all records in ascending id order.

        Implementations should stream rather than load the whole table.
        """
        ...

    @abstractmethod
    def get(self, record_id: int) -> Optional[AuditRecord]:
        ...

    @abstractmethod
    def recent(self, limit: int = 10) -> List[AuditRecord]:
        """Return up to limit records, newest first."""
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    def get_last_hash(self) -> Optional[str]:
        rec = self.latest()
        return rec.event_hash if rec is not None else None
