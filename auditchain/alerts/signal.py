"""
Tamper signal contract.

The ledger's job ends at calling on_tamper_detected() with the offending
record; delivering the alert is up to the signal implementation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..log.records import AuditRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TamperReport:
    """
    Diagnostic context for a broken chain link.

    Fields:
        record: First record that failed verification
        expected_hash: Value the chain required at that record
        actual_hash: Value found in the store
        reason: "previous_hash mismatch" or "event_hash mismatch"
        checked: Records verified before the break
    """
    record: AuditRecord
    expected_hash: Optional[str]
    actual_hash: Optional[str]
    reason: str
    checked: int = 0


def format_alert(report: TamperReport) -> str:
    """Plaintext alert body shared by every transport."""
    return (
        "ALERT: audit trail integrity compromised. "
        f"Record #{report.record.id} ({report.record.event_type}), "
        f"Hash: {report.record.event_hash}, reason: {report.reason}"
    )


class TamperSignal(ABC):
    """Hook invoked once per failed verification."""

    @abstractmethod
    def on_tamper_detected(self, report: TamperReport) -> None:
        ...


class LoggingTamperSignal(TamperSignal):
    """Writes the alert to the log at ERROR level."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def on_tamper_detected(self, report: TamperReport) -> None:
        self.log.error(
            format_alert(report),
            extra={
                "record_id": report.record.id,
                "event_hash": report.record.event_hash,
                "expected_hash": report.expected_hash,
                "actual_hash": report.actual_hash,
                "reason": report.reason,
            },
        )


class CompositeTamperSignal(TamperSignal):
    """
    Fans an alert out to several signals.

    Delivery is best-effort: a failing transport is logged and skipped so
    the remaining ones still run and verification still reports False.
    """

    def __init__(self, signals: Iterable[TamperSignal]):
        self.signals: List[TamperSignal] = list(signals)

    def on_tamper_detected(self, report: TamperReport) -> None:
        for signal in self.signals:
            try:
                signal.on_tamper_detected(report)
            except Exception as ex:
                logger.warning(
                    "Tamper alert via %s failed: %s", type(signal).__name__, ex
                )
