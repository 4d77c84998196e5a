"""
Relational audit store on SQLAlchemy Core.

Any database SQLAlchemy can reach works (MySQL, PostgreSQL, SQLite). The
table keeps the column names of the original secure_audit_trails schema;
the ciphertext lives in event_data.
"""

import logging
from datetime import datetime
from typing import Iterator, List, Optional, Union

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    func,
    insert,
    select,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from ..core.errors import MisuseError, StoreError
from .integrity import GENESIS_HASH
from .records import AuditRecord
from .store import AppendResult, AuditStore

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "secure_audit_trails"


def build_table(metadata: MetaData, name: str = DEFAULT_TABLE) -> Table:
    """
    Define the audit table.

    previous_hash is unique: two records chaining to the same predecessor
    would fork the chain, so the database refuses the second one.
    """
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("event_type", String(100), nullable=False),
        Column("event_data", Text, nullable=False),
        Column("event_hash", String(64), nullable=False),
        Column("previous_hash", String(64), nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        UniqueConstraint("previous_hash", name=f"uq_{name}_previous_hash"),
    )


def make_engine(url: str) -> Engine:
    """
    Create an engine for url.

    In-memory SQLite gets a single shared connection, otherwise every
    checkout would see its own empty database.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:"):
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(url, pool_pre_ping=True)


class SqlAuditStore(AuditStore):
    """
    Append-only audit store backed by a relational table.

    Guarantees:
    - Head read and insert happen in one transaction
    - A stale expected_prev_hash never writes
    - Reads stream in id order with keyset pagination

    Example:
        >>> store = SqlAuditStore("sqlite://")
        >>> store.create_schema()
        >>> store.count()
        0
    """

    def __init__(self, engine: Union[Engine, str], table_name: str = DEFAULT_TABLE):
        self.engine = make_engine(engine) if isinstance(engine, str) else engine
        self.metadata = MetaData()
        self.table = build_table(self.metadata, table_name)

    def create_schema(self) -> None:
        """Create the audit table if it does not exist."""
        try:
            self.metadata.create_all(self.engine)
        except SQLAlchemyError as ex:
            raise StoreError(f"cannot create schema: {ex}") from ex

    def _to_record(self, row) -> AuditRecord:
        return AuditRecord(
            id=row.id,
            event_type=row.event_type,
            ciphertext=row.event_data,
            event_hash=row.event_hash,
            previous_hash=row.previous_hash,
            created_at=row.created_at,
        )

    def append(
        self,
        event_type: str,
        ciphertext: str,
        event_hash: str,
        previous_hash: str,
        created_at: datetime,
        expected_prev_hash: Optional[str] = None,
    ) -> AppendResult:
        t = self.table
        try:
            with self.engine.begin() as conn:
                head = conn.execute(
                    select(t.c.event_hash).order_by(t.c.id.desc()).limit(1)
                ).scalar()
                observed = head or GENESIS_HASH

                if expected_prev_hash is not None and expected_prev_hash != observed:
                    return AppendResult(
                        record=None,
                        committed=False,
                        conflict=True,
                        observed_prev_hash=observed,
                    )

                result = conn.execute(
                    insert(t).values(
                        event_type=event_type,
                        event_data=ciphertext,
                        event_hash=event_hash,
                        previous_hash=previous_hash,
                        created_at=created_at,
                    )
                )
                record_id = result.inserted_primary_key[0]
        except IntegrityError as ex:
            if self._is_linked(previous_hash):
                logger.warning("Append lost race for predecessor %s", previous_hash[:16])
                return AppendResult(
                    record=None,
                    committed=False,
                    conflict=True,
                    observed_prev_hash=self.get_last_hash(),
                )
            raise StoreError(str(ex)) from ex
        except SQLAlchemyError as ex:
            raise StoreError(str(ex)) from ex

        record = AuditRecord(
            id=record_id,
            event_type=event_type,
            ciphertext=ciphertext,
            event_hash=event_hash,
            previous_hash=previous_hash,
            created_at=created_at,
        )
        return AppendResult(
            record=record,
            committed=True,
            conflict=False,
            observed_prev_hash=observed,
        )

    def _is_linked(self, previous_hash: str) -> bool:
        t = self.table
        try:
            with self.engine.connect() as conn:
                found = conn.execute(
                    select(t.c.id).where(t.c.previous_hash == previous_hash).limit(1)
                ).first()
        except SQLAlchemyError as ex:
            raise StoreError(str(ex)) from ex
        return found is not None

    def latest(self) -> Optional[AuditRecord]:
        t = self.table
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(t).order_by(t.c.id.desc()).limit(1)).first()
        except SQLAlchemyError as ex:
            raise StoreError(str(ex)) from ex
        return self._to_record(row) if row is not None else None

    def iter_records(self, batch_size: int = 500) -> Iterator[AuditRecord]:
        if batch_size < 1:
            raise MisuseError(f"batch_size must be positive, got {batch_size}")
        t = self.table
        last_id = 0
        while True:
            try:
                with self.engine.connect() as conn:
                    rows = conn.execute(
                        select(t).where(t.c.id > last_id).order_by(t.c.id.asc()).limit(batch_size)
                    ).all()
            except SQLAlchemyError as ex:
                raise StoreError(str(ex)) from ex

            for row in rows:
                yield self._to_record(row)
            if len(rows) < batch_size:
                return
            last_id = rows[-1].id

    def get(self, record_id: int) -> Optional[AuditRecord]:
        t = self.table
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(t).where(t.c.id == record_id)).first()
        except SQLAlchemyError as ex:
            raise StoreError(str(ex)) from ex
        return self._to_record(row) if row is not None else None

    def recent(self, limit: int = 10) -> List[AuditRecord]:
        t = self.table
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(t).order_by(t.c.id.desc()).limit(limit)).all()
        except SQLAlchemyError as ex:
            raise StoreError(str(ex)) from ex
        return [self._to_record(row) for row in rows]

    def count(self) -> int:
        t = self.table
        try:
            with self.engine.connect() as conn:
                return conn.execute(select(func.count()).select_from(t)).scalar_one()
        except SQLAlchemyError as ex:
            raise StoreError(str(ex)) from ex

    def close(self) -> None:
        self.engine.dispose()
