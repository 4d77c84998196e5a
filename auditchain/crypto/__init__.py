"""
Authenticated encryption and key handling.
"""

from .cipher import CipherBox, DecryptResult, AUTH_FAILURE
from .keys import (
    KeyHolder,
    KeyArchive,
    FileKeyArchive,
    MemoryKeyArchive,
    derive_key,
)

__all__ = [
    "CipherBox",
    "DecryptResult",
    "AUTH_FAILURE",
    "KeyHolder",
    "KeyArchive",
    "FileKeyArchive",
    "MemoryKeyArchive",
    "derive_key",
]
