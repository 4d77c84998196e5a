"""
Authenticated encryption of audit payloads with AES-256-GCM.

Envelope format (base64 text, suitable for text columns):
    nonce (12 bytes) || tag (16 bytes) || ciphertext
"""

import base64
import binascii
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .. import metrics
from ..core.errors import AuthenticationFailure, MisuseError
from .keys import KeyArchive, KeyHolder, MemoryKeyArchive

logger = logging.getLogger(__name__)

NONCE_SIZE = 12
TAG_SIZE = 16


@dataclass(frozen=True)
class DecryptResult:
    """
    Outcome of a decrypt call.

    plaintext is None only for the failure marker; an empty payload is a
    successful result holding b"".
    """
    plaintext: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return self.plaintext is not None

    def unwrap(self) -> bytes:
        """
        Return the plaintext.

        Raises:
            AuthenticationFailure: If this is the failure marker
        """
        if self.plaintext is None:
            raise AuthenticationFailure("envelope failed authentication")
        return self.plaintext


AUTH_FAILURE = DecryptResult()


class CipherBox:
    """
    AES-256-GCM cipher bound to exactly one current key.

    Provides:
    - encrypt with a fresh random nonce per call
    - decrypt returning DecryptResult (never raises on bad input)
    - key rotation that archives the outgoing key first

    Envelopes written under a previous key do not decrypt after rotation;
    callers needing historical reads keep old keys out-of-band.
    """

    def __init__(self, secret: str, archive: Optional[KeyArchive] = None):
        self._holder = KeyHolder.from_secret(secret)
        self.archive = archive if archive is not None else MemoryKeyArchive()
        self._lock = threading.Lock()

    @property
    def key_id(self) -> str:
        return self._holder.key_id

    def encrypt(self, plaintext: bytes) -> str:
        """
        Encrypt plaintext under the current key.

        Args:
            plaintext: Bytes to encrypt

        Returns:
            Base64 envelope (nonce || tag || ciphertext)
        """
        if not isinstance(plaintext, (bytes, bytearray)):
            raise MisuseError("plaintext must be bytes")
        nonce = os.urandom(NONCE_SIZE)
        sealed = AESGCM(self._holder.key).encrypt(nonce, bytes(plaintext), None)
        # AESGCM appends the tag; the envelope carries it right after the nonce
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, envelope: Union[str, bytes]) -> DecryptResult:
        """
        Decrypt and authenticate an envelope.

        Args:
            envelope: Base64 envelope produced by encrypt()

        Returns:
            DecryptResult with plaintext, or AUTH_FAILURE if the envelope is
            malformed, was produced under another key, or was altered
        """
        try:
            raw = base64.b64decode(envelope, validate=True)
        except (binascii.Error, ValueError, TypeError):
            metrics.track_decrypt_failure()
            return AUTH_FAILURE

        if len(raw) < NONCE_SIZE + TAG_SIZE:
            metrics.track_decrypt_failure()
            return AUTH_FAILURE

        nonce = raw[:NONCE_SIZE]
        tag = raw[NONCE_SIZE:NONCE_SIZE + TAG_SIZE]
        ciphertext = raw[NONCE_SIZE + TAG_SIZE:]
        try:
            plaintext = AESGCM(self._holder.key).decrypt(nonce, ciphertext + tag, None)
        except InvalidTag:
            metrics.track_decrypt_failure()
            return AUTH_FAILURE
        return DecryptResult(plaintext=plaintext)

    def rotate_key(self, new_secret: str) -> None:
        """
        Replace the current key with one derived from new_secret.

        The outgoing key is archived before the new one is installed; if
        archiving fails the current key stays in place.

        Raises:
            MisuseError: If new_secret is empty
            KeyArchiveError: If the outgoing key cannot be archived
        """
        new_holder = KeyHolder.from_secret(new_secret)
        with self._lock:
            old = self._holder
            self.archive.store(old, datetime.now(timezone.utc))
            self._holder = new_holder
        metrics.track_key_rotation()
        logger.info("Rotated encryption key %s -> %s", old.key_id, new_holder.key_id)
