"""
Wiring of settings, store, cipher and ledger for CLI commands.
"""

from dataclasses import dataclass

from auditchain.alerts import build_tamper_signal
from auditchain.config import Settings
from auditchain.crypto import CipherBox, FileKeyArchive
from auditchain.ledger import ChainLedger
from auditchain.log import SqlAuditStore
from auditchain.queue import AmqpEventPublisher


@dataclass
class AppContext:
    settings: Settings
    store: SqlAuditStore
    cipher: CipherBox
    ledger: ChainLedger


def build_context(settings: Settings) -> AppContext:
    """
    Open the store (creating the table if needed) and build the ledger.

    Raises:
        StoreError: If the database is unreachable
    """
    store = SqlAuditStore(settings.database_url, table_name=settings.table_name)
    store.create_schema()
    cipher = CipherBox(settings.app_key, archive=FileKeyArchive(settings.key_backup_dir))
    ledger = ChainLedger(store, cipher, signal=build_tamper_signal(settings))
    return AppContext(settings=settings, store=store, cipher=cipher, ledger=ledger)


def build_publisher(settings: Settings) -> AmqpEventPublisher:
    return AmqpEventPublisher(
        host=settings.amqp_host,
        port=settings.amqp_port,
        username=settings.amqp_user,
        password=settings.amqp_password,
        queue=settings.amqp_queue,
    )
