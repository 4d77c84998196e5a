"""
Audit record storage and integrity verification.

This module provides:
- AuditStore: Abstract interface for record persistence
- SqlAuditStore: Relational append-only storage (SQLAlchemy Core)
- Integrity: Hash chain computation and verification
"""

from .records import AuditRecord
from .store import AuditStore, AppendResult
from .sql_store import SqlAuditStore, build_table, make_engine
from .integrity import GENESIS_HASH, chain_hash, verify_chain, VerificationResult

__all__ = [
    "AuditRecord",
    "AuditStore",
    "AppendResult",
    "SqlAuditStore",
    "build_table",
    "make_engine",
    "GENESIS_HASH",
    "chain_hash",
    "verify_chain",
    "VerificationResult",
]
