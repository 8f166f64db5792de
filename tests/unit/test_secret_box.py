"""Tests for vc_agent.kms.secret_box."""
from __future__ import annotations

import pytest

from vc_agent.errors import DecryptionFailed
from vc_agent.kms.secret_box import SecretBox


class TestSecretBoxConstruction:
    def test_rejects_non_hex_secret(self) -> None:
        with pytest.raises(ValueError, match="hex"):
            SecretBox("not-hex" * 10)

    def test_rejects_short_secret(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            SecretBox("ab" * 16)

    def test_repr_hides_secret(self) -> None:
        box = SecretBox("cd" * 32)
        assert "cd" not in repr(box)


class TestSecretBoxEncryption:
    def test_decrypt_returns_original_plaintext(self) -> None:
        box = SecretBox("01" * 32)
        blob = box.encrypt(b"private key bytes")
        assert box.decrypt(blob) == b"private key bytes"

    def test_same_plaintext_encrypts_differently(self) -> None:
        box = SecretBox("01" * 32)
        assert box.encrypt(b"x") != box.encrypt(b"x")

    def test_blob_is_hex(self) -> None:
        blob = SecretBox("01" * 32).encrypt(b"abc")
        bytes.fromhex(blob)

    def test_wrong_secret_fails(self) -> None:
        blob = SecretBox("01" * 32).encrypt(b"secret")
        with pytest.raises(DecryptionFailed):
            SecretBox("02" * 32).decrypt(blob)

    def test_flipped_bit_fails(self) -> None:
        box = SecretBox("01" * 32)
        raw = bytearray(bytes.fromhex(box.encrypt(b"secret")))
        raw[-1] ^= 0x01
        with pytest.raises(DecryptionFailed):
            box.decrypt(raw.hex())

    def test_truncated_blob_fails(self) -> None:
        box = SecretBox("01" * 32)
        with pytest.raises(DecryptionFailed):
            box.decrypt(box.encrypt(b"secret")[:20])

    def test_garbage_blob_fails(self) -> None:
        with pytest.raises(DecryptionFailed):
            SecretBox("01" * 32).decrypt("zz-not-hex")
