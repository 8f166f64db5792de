"""SecretBox: authenticated encryption of private keys at rest.

Blobs are hex strings of ``nonce (12 bytes) || AES-256-GCM ciphertext``.
The 32-byte secret is supplied by configuration and is never written next
to the blobs it protects. A wrong secret, a truncated blob or a flipped bit
all fail tag verification, so decryption either returns the exact plaintext
or raises :class:`~vc_agent.errors.DecryptionFailed`.
"""
from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from vc_agent.errors import DecryptionFailed

_NONCE_SIZE = 12
_AAD = b"vc-agent-private-key-v1"


class SecretBox:
    """Encrypt and decrypt small secrets with a process-wide key.

    Parameters
    ----------
    secret_key_hex:
        64 hex characters (32 bytes).

    Example
    -------
    ::

        box = SecretBox("a" * 64)
        blob = box.encrypt(b"private key bytes")
        assert box.decrypt(blob) == b"private key bytes"
    """

    def __init__(self, secret_key_hex: str) -> None:
        try:
            key = bytes.fromhex(secret_key_hex)
        except ValueError as exc:
            raise ValueError("SecretBox key must be hex encoded.") from exc
        if len(key) != 32:
            raise ValueError(f"SecretBox key must be 32 bytes, got {len(key)}.")
        self._aead = AESGCM(key)

    def __repr__(self) -> str:
        return "SecretBox(<redacted>)"

    def encrypt(self, plaintext: bytes) -> str:
        """Encrypt *plaintext* and return the hex blob."""
        nonce = os.urandom(_NONCE_SIZE)
        ciphertext = self._aead.encrypt(nonce, plaintext, _AAD)
        return (nonce + ciphertext).hex()

    def decrypt(self, blob: str) -> bytes:
        """Decrypt a blob produced by :meth:`encrypt`.

        Raises
        ------
        DecryptionFailed
            If the blob is malformed or does not authenticate under this key.
        """
        try:
            raw = bytes.fromhex(blob)
        except ValueError as exc:
            raise DecryptionFailed("Encrypted key blob is not valid hex.") from exc
        if len(raw) <= _NONCE_SIZE:
            raise DecryptionFailed("Encrypted key blob is truncated.")
        try:
            return self._aead.decrypt(raw[:_NONCE_SIZE], raw[_NONCE_SIZE:], _AAD)
        except InvalidTag as exc:
            raise DecryptionFailed(
                "Private key could not be decrypted; the KMS secret is wrong "
                "or the stored key has been modified."
            ) from exc


__all__ = ["SecretBox"]
