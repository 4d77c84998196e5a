"""
Tests for the SQLAlchemy-backed audit store.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine

from auditchain.core.errors import MisuseError, StoreError
from auditchain.log import GENESIS_HASH, SqlAuditStore, chain_hash


def _append(store, ciphertext, expected=None):
    prev = store.get_last_hash() or GENESIS_HASH
    return store.append(
        event_type="TEST",
        ciphertext=ciphertext,
        event_hash=chain_hash(ciphertext, prev),
        previous_hash=prev,
        created_at=datetime.now(timezone.utc),
        expected_prev_hash=expected,
    )


def test_empty_store(store):
    assert store.count() == 0
    assert store.latest() is None
    assert store.get_last_hash() is None
    assert list(store.iter_records()) == []


def test_append_assigns_increasing_ids(store):
    r1 = _append(store, "c1")
    r2 = _append(store, "c2")

    assert r1.committed and r2.committed
    assert r2.record.id > r1.record.id
    assert store.latest().id == r2.record.id
    assert store.get_last_hash() == r2.record.event_hash


def test_stale_expected_hash_does_not_write(store):
    _append(store, "c1", expected=GENESIS_HASH)

    result = _append(store, "c2", expected=GENESIS_HASH)

    assert result.conflict
    assert not result.committed
    assert result.observed_prev_hash == store.get_last_hash()
    assert store.count() == 1


def test_fork_rejected_by_unique_previous_hash(store):
    """Two records chaining to the same predecessor: the second is refused."""
    first = _append(store, "c1")
    prev = first.record.event_hash
    _append(store, "c2")

    result = store.append(
        event_type="TEST",
        ciphertext="fork",
        event_hash=chain_hash("fork", prev),
        previous_hash=prev,
        created_at=datetime.now(timezone.utc),
    )

    assert result.conflict
    assert store.count() == 2


def test_iter_records_streams_in_id_order(store):
    for i in range(7):
        _append(store, f"c{i}")

    ids = [rec.id for rec in store.iter_records(batch_size=3)]

    assert ids == sorted(ids)
    assert len(ids) == 7


def test_recent_is_newest_first(store):
    for i in range(5):
        _append(store, f"c{i}")

    recent = store.recent(3)

    assert [r.ciphertext for r in recent] == ["c4", "c3", "c2"]


def test_get_round_trips_columns(store):
    result = _append(store, "payload")

    rec = store.get(result.record.id)

    assert rec.ciphertext == "payload"
    assert rec.previous_hash == GENESIS_HASH
    assert rec.event_hash == chain_hash("payload", GENESIS_HASH)
    assert rec.event_type == "TEST"
    assert rec.created_at is not None
    assert store.get(999) is None


def test_in_memory_url_shares_one_database():
    store = SqlAuditStore("sqlite://")
    store.create_schema()

    _append(store, "c1")

    assert store.count() == 1
    store.close()


def test_custom_table_name(tmp_path):
    store = SqlAuditStore(f"sqlite:///{tmp_path / 'x.db'}", table_name="trail")
    store.create_schema()
    _append(store, "c1")

    assert store.table.name == "trail"
    assert store.count() == 1


def test_missing_table_raises_store_error(tmp_path):
    store = SqlAuditStore(create_engine(f"sqlite:///{tmp_path / 'empty.db'}"))

    with pytest.raises(StoreError):
        store.count()
    with pytest.raises(StoreError):
        _append(store, "c1")


@pytest.mark.parametrize("batch_size", [0, -1])
def test_iter_records_rejects_non_positive_batch(store, batch_size):
    with pytest.raises(MisuseError):
        list(store.iter_records(batch_size))
