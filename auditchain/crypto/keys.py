"""
Symmetric key derivation and key archiving.

Key management:
- Keys are derived from a user-supplied secret with a single SHA-256 pass.
- On rotation the outgoing key is archived base64-encoded (not encrypted)
  as an operational escape hatch for forensic recovery.
"""

import base64
import hashlib
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple

from ..core.errors import KeyArchiveError, MisuseError

logger = logging.getLogger(__name__)

KEY_SIZE = 32


def _now() -> datetime:
    return datetime.now(timezone.utc)


def derive_key(secret: str) -> bytes:
    """
    Derive a 32-byte AES key from a secret.

    No salt and no iteration count: the same secret always yields the same
    key, which existing ciphertexts depend on.

    Raises:
        MisuseError: If secret is empty
    """
    if not isinstance(secret, str) or not secret.strip():
        raise MisuseError("secret must be a non-empty string")
    return hashlib.sha256(secret.encode("utf-8")).digest()


@dataclass(frozen=True)
class KeyHolder:
    """
    Immutable holder for the current encryption key.

    Fields:
        key: 32 raw key bytes
        installed_at: UTC instant the key became current
    """
    key: bytes = field(repr=False)
    installed_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if len(self.key) != KEY_SIZE:
            raise MisuseError(f"key must be {KEY_SIZE} bytes, got {len(self.key)}")

    @classmethod
    def from_secret(cls, secret: str) -> "KeyHolder":
        return cls(key=derive_key(secret))

    @property
    def key_id(self) -> str:
        """Short identifier safe to log (SHA-256 of the key, first 16 chars)."""
        return hashlib.sha256(self.key).hexdigest()[:16]

    def encoded(self) -> str:
        """Base64 form of the raw key, as written to key backups."""
        return base64.b64encode(self.key).decode("ascii")


class KeyArchive:
    """Destination for keys retired by rotation."""

    def store(self, holder: KeyHolder, rotated_at: datetime) -> None:
        raise NotImplementedError


class MemoryKeyArchive(KeyArchive):
    """Keeps retired keys in process memory."""

    def __init__(self) -> None:
        self.entries: List[Tuple[datetime, str]] = []

    def store(self, holder: KeyHolder, rotated_at: datetime) -> None:
        self.entries.append((rotated_at, holder.encoded()))


class FileKeyArchive(KeyArchive):
    """
    Writes retired keys to key_backup_YYYYMMDD.key files.

    Each rotation appends one line "<iso timestamp> <base64 key>", so several
    rotations on the same day keep every key.
    """

    def __init__(self, directory: str = ".") -> None:
        self.directory = Path(directory)

    def path_for(self, rotated_at: datetime) -> Path:
        return self.directory / f"key_backup_{rotated_at.strftime('%Y%m%d')}.key"

    def store(self, holder: KeyHolder, rotated_at: datetime) -> None:
        path = self.path_for(rotated_at)
        line = f"{rotated_at.isoformat()} {holder.encoded()}\n"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "a", encoding="ascii") as f:
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        except OSError as ex:
            raise KeyArchiveError(f"cannot archive key to {path}: {ex}") from ex
        logger.info("Archived key %s to %s", holder.key_id, path)
