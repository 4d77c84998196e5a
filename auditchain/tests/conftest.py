import logging
from typing import List

import pytest
from sqlalchemy import update

from auditchain.alerts.signal import TamperReport, TamperSignal
from auditchain.crypto import CipherBox
from auditchain.ledger import ChainLedger
from auditchain.log import SqlAuditStore


class RecordingSignal(TamperSignal):
    """Collects tamper reports instead of delivering them."""

    def __init__(self) -> None:
        self.reports: List[TamperReport] = []

    def on_tamper_detected(self, report: TamperReport) -> None:
        self.reports.append(report)


@pytest.fixture
def store(tmp_path):
    s = SqlAuditStore(f"sqlite:///{tmp_path / 'audit.db'}")
    s.create_schema()
    yield s
    s.close()


@pytest.fixture
def cipher():
    return CipherBox("test_secret_key")


@pytest.fixture
def signal():
    return RecordingSignal()


@pytest.fixture
def ledger(store, cipher, signal):
    return ChainLedger(store, cipher, signal=signal)


@pytest.fixture
def tamper(store):
    """Overwrite a stored column directly, bypassing the ledger."""

    def _tamper(record_id: int, **values) -> None:
        t = store.table
        with store.engine.begin() as conn:
            conn.execute(update(t).where(t.c.id == record_id).values(**values))

    return _tamper


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
