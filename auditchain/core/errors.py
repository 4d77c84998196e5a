"""
Exception types for the audit chain.
"""


class AuditChainError(Exception):
    """Base class for all audit chain errors."""
    pass


class AuthenticationFailure(AuditChainError):
    """Raised when a failed decryption result is unwrapped."""
    pass


class IntegrityViolation(AuditChainError):
    """Raised when hash chain verification finds a broken link."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class StoreError(AuditChainError):
    """Raised when the persistence collaborator fails."""
    pass


class ChainConflictError(StoreError):
    """Raised when another writer advanced the chain head first."""
    pass


class MisuseError(AuditChainError, ValueError):
    """Raised for invalid inputs, before any state is mutated."""
    pass


class KeyArchiveError(AuditChainError):
    """Raised when the outgoing key cannot be archived during rotation."""
    pass


class QueueError(AuditChainError):
    """Raised when publishing to the message queue fails."""
    pass
