"""
Tests for AES-256-GCM envelopes and key rotation.
"""

import base64
import os

import pytest

from auditchain.core.errors import AuthenticationFailure, KeyArchiveError, MisuseError
from auditchain.crypto import AUTH_FAILURE, CipherBox, MemoryKeyArchive, derive_key
from auditchain.crypto.cipher import NONCE_SIZE, TAG_SIZE


def test_encrypt_decrypt_round_trip(cipher):
    original = b"confidential message"
    envelope = cipher.encrypt(original)

    assert envelope != original.decode()
    result = cipher.decrypt(envelope)
    assert result.ok
    assert result.unwrap() == original


@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 4096])
def test_round_trip_various_sizes(cipher, size):
    data = os.urandom(size)

    assert cipher.decrypt(cipher.encrypt(data)).plaintext == data


def test_empty_plaintext_is_success_not_failure(cipher):
    result = cipher.decrypt(cipher.encrypt(b""))

    assert result.ok
    assert result.plaintext == b""
    assert result is not AUTH_FAILURE


def test_envelope_layout(cipher):
    """Envelope is base64(nonce || tag || ciphertext); GCM adds no padding."""
    plaintext = b"x" * 10
    raw = base64.b64decode(cipher.encrypt(plaintext))

    assert len(raw) == NONCE_SIZE + TAG_SIZE + len(plaintext)


def test_fresh_nonce_per_call(cipher):
    e1 = base64.b64decode(cipher.encrypt(b"same"))
    e2 = base64.b64decode(cipher.encrypt(b"same"))

    assert e1[:NONCE_SIZE] != e2[:NONCE_SIZE]
    assert e1 != e2


def test_decrypt_accepts_bytes_envelope(cipher):
    envelope = cipher.encrypt(b"data").encode("ascii")

    assert cipher.decrypt(envelope).plaintext == b"data"


def test_decrypt_with_wrong_key_fails(cipher):
    envelope = cipher.encrypt(b"dato")
    other = CipherBox("wrong_key")

    result = other.decrypt(envelope)
    assert result is AUTH_FAILURE
    assert not result.ok


def test_unwrap_failure_raises(cipher):
    result = CipherBox("wrong_key").decrypt(cipher.encrypt(b"dato"))

    with pytest.raises(AuthenticationFailure):
        result.unwrap()


def test_tampered_ciphertext_fails(cipher):
    raw = bytearray(base64.b64decode(cipher.encrypt(b"important data")))
    raw[-1] ^= 0x01
    tampered = base64.b64encode(bytes(raw)).decode("ascii")

    assert cipher.decrypt(tampered) is AUTH_FAILURE


def test_tampered_tag_fails(cipher):
    raw = bytearray(base64.b64decode(cipher.encrypt(b"important data")))
    raw[NONCE_SIZE] ^= 0x80
    tampered = base64.b64encode(bytes(raw)).decode("ascii")

    assert cipher.decrypt(tampered) is AUTH_FAILURE


@pytest.mark.parametrize("envelope", ["", "not base64 !!", "malicious_data", base64.b64encode(b"short").decode()])
def test_malformed_envelopes_fail(cipher, envelope):
    assert cipher.decrypt(envelope) is AUTH_FAILURE


def test_rotate_key_invalidates_old_envelopes(cipher):
    envelope = cipher.encrypt(b"important data")

    cipher.rotate_key("new_key")

    assert cipher.decrypt(envelope) is AUTH_FAILURE
    fresh = cipher.encrypt(b"after rotation")
    assert cipher.decrypt(fresh).plaintext == b"after rotation"


def test_rotation_matches_fresh_instance():
    """A rotated box uses exactly the key a new box would derive."""
    box = CipherBox("k1")
    box.rotate_key("k2")

    assert CipherBox("k2").decrypt(box.encrypt(b"x")).plaintext == b"x"
    assert box.key_id == CipherBox("k2").key_id


def test_rotate_archives_outgoing_key():
    archive = MemoryKeyArchive()
    box = CipherBox("k1", archive=archive)

    box.rotate_key("k2")

    assert len(archive.entries) == 1
    _, encoded = archive.entries[0]
    assert base64.b64decode(encoded) == derive_key("k1")


@pytest.mark.parametrize("secret", ["", "   "])
def test_rotate_rejects_empty_secret(secret):
    archive = MemoryKeyArchive()
    box = CipherBox("k1", archive=archive)
    envelope = box.encrypt(b"still readable")

    with pytest.raises(MisuseError):
        box.rotate_key(secret)

    assert archive.entries == []
    assert box.decrypt(envelope).plaintext == b"still readable"


def test_failed_archive_keeps_current_key():
    class BrokenArchive(MemoryKeyArchive):
        def store(self, holder, rotated_at):
            raise KeyArchiveError("disk full")

    box = CipherBox("k1", archive=BrokenArchive())
    envelope = box.encrypt(b"data")

    with pytest.raises(KeyArchiveError):
        box.rotate_key("k2")

    assert box.decrypt(envelope).plaintext == b"data"


def test_empty_secret_rejected_at_construction():
    with pytest.raises(MisuseError):
        CipherBox("")


def test_encrypt_requires_bytes(cipher):
    with pytest.raises(MisuseError):
        cipher.encrypt("text")  # type: ignore[arg-type]
