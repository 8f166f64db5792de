"""LocalKeyManagementSystem: key generation, signing and verification.

A thin layer over two libraries:

- ``cryptography`` for Ed25519,
- ``eth-account`` / ``eth-keys`` for secp256k1, recoverable ECDSA and
  EIP-712 typed-data signatures.

All key material crosses this module as raw bytes so callers can store or
transmit keys without depending on either library's types. Nothing here
persists or caches private keys.

Signing algorithms
------------------
``EdDSA``
    Ed25519 over the raw payload. 64-byte signature.
``ES256K-R``
    secp256k1 ECDSA over ``SHA-256(payload)``; 65-byte ``r || s || v``
    signature with ``v`` in ``{0, 1}`` so the signer can be recovered.
``eth_signTypedData``
    EIP-712 signature. The payload is the UTF-8 JSON of the complete typed
    data document (``types``, ``primaryType``, ``domain``, ``message``).
    65-byte signature with ``v`` in ``{27, 28}``.
"""
from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from vc_agent.errors import UnsupportedFormat, UnsupportedKeyType
from vc_agent.keys.key import KeyType


class SigningAlgorithm(str, Enum):
    """Signature algorithms understood by :meth:`LocalKeyManagementSystem.sign`."""

    EDDSA = "EdDSA"
    ES256K_R = "ES256K-R"
    ETH_SIGN_TYPED_DATA = "eth_signTypedData"


_ALGORITHMS_BY_KEY_TYPE: dict[KeyType, frozenset[SigningAlgorithm]] = {
    KeyType.ED25519: frozenset({SigningAlgorithm.EDDSA}),
    KeyType.SECP256K1: frozenset(
        {SigningAlgorithm.ES256K_R, SigningAlgorithm.ETH_SIGN_TYPED_DATA}
    ),
}


def parse_algorithm(algorithm: str | SigningAlgorithm) -> SigningAlgorithm:
    """Return *algorithm* as a :class:`SigningAlgorithm`.

    Raises
    ------
    UnsupportedFormat
        If the name is not a known algorithm.
    """
    try:
        return SigningAlgorithm(algorithm)
    except ValueError as exc:
        raise UnsupportedFormat(f"Unknown signing algorithm {algorithm!r}.") from exc


def algorithms_for(key_type: KeyType) -> frozenset[SigningAlgorithm]:
    """Return the algorithms a key of *key_type* can produce."""
    return _ALGORITHMS_BY_KEY_TYPE.get(key_type, frozenset())


class LocalKeyManagementSystem:
    """Generate keypairs and sign with raw private key bytes.

    Example
    -------
    ::

        kms = LocalKeyManagementSystem()
        private_bytes, public_bytes = kms.generate_keypair(KeyType.ED25519)
        signature = kms.sign(KeyType.ED25519, private_bytes, b"hello", "EdDSA")
        assert verify_ed25519(public_bytes, signature, b"hello")
    """

    name: str = "local"

    def generate_keypair(self, key_type: KeyType) -> tuple[bytes, bytes]:
        """Generate a new keypair.

        Returns
        -------
        tuple[bytes, bytes]
            ``(private_key_bytes, public_key_bytes)``. Ed25519 keys are 32
            raw bytes each; secp256k1 private keys are 32 bytes and public
            keys are 33-byte compressed points.

        Raises
        ------
        UnsupportedKeyType
            If *key_type* has no generator.
        """
        if key_type is KeyType.ED25519:
            private_key = Ed25519PrivateKey.generate()
            private_bytes = private_key.private_bytes(
                Encoding.Raw, PrivateFormat.Raw, NoEncryption()
            )
            public_bytes = private_key.public_key().public_bytes(
                Encoding.Raw, PublicFormat.Raw
            )
            return private_bytes, public_bytes
        if key_type is KeyType.SECP256K1:
            account = Account.create()
            private_bytes = bytes(account.key)
            public_bytes = keys.PrivateKey(private_bytes).public_key.to_compressed_bytes()
            return private_bytes, public_bytes
        raise UnsupportedKeyType(key_type)

    def sign(
        self,
        key_type: KeyType,
        private_key: bytes,
        data: bytes,
        algorithm: str | SigningAlgorithm,
    ) -> bytes:
        """Sign *data* with *private_key* using *algorithm*.

        Raises
        ------
        UnsupportedFormat
            If the algorithm is unknown or does not fit the key type, or if
            an ``eth_signTypedData`` payload is not valid typed data.
        """
        algo = parse_algorithm(algorithm)
        if algo not in algorithms_for(key_type):
            raise UnsupportedFormat(
                f"Algorithm {algo.value!r} cannot be used with {key_type.value} keys."
            )

        if algo is SigningAlgorithm.EDDSA:
            return Ed25519PrivateKey.from_private_bytes(private_key).sign(data)

        if algo is SigningAlgorithm.ES256K_R:
            digest = hashlib.sha256(data).digest()
            return keys.PrivateKey(private_key).sign_msg_hash(digest).to_bytes()

        try:
            typed_data = json.loads(data.decode("utf-8"))
            signable = encode_typed_data(full_message=typed_data)
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
            raise UnsupportedFormat(f"Payload is not EIP-712 typed data: {exc}") from exc
        signed = Account.sign_message(signable, private_key=private_key)
        return bytes(signed.signature)


# ---------------------------------------------------------------------------
# Verification helpers (public key operations only)
# ---------------------------------------------------------------------------


def verify_ed25519(public_key: bytes, signature: bytes, data: bytes) -> bool:
    """Return ``True`` if *signature* is a valid Ed25519 signature of *data*."""
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, data)
        return True
    except (InvalidSignature, ValueError):
        return False


def recover_es256k(signature: bytes, data: bytes) -> bytes | None:
    """Recover the compressed secp256k1 public key behind an ``ES256K-R`` signature.

    Returns ``None`` when the signature is malformed or not recoverable.
    """
    if len(signature) != 65:
        return None
    digest = hashlib.sha256(data).digest()
    try:
        sig = keys.Signature(signature_bytes=signature)
        return sig.recover_public_key_from_msg_hash(digest).to_compressed_bytes()
    except (BadSignature, ValidationError, ValueError):
        return None


def recover_typed_data_signer(typed_data: dict[str, Any], signature: bytes) -> str | None:
    """Return the checksum address that produced an EIP-712 *signature*.

    Returns ``None`` when the signature cannot be recovered.
    """
    try:
        signable = encode_typed_data(full_message=typed_data)
        return Account.recover_message(signable, signature=signature)
    except (BadSignature, ValidationError, ValueError, KeyError, TypeError):
        return None


def secp256k1_address(public_key: bytes) -> str:
    """Return the checksum Ethereum address of a secp256k1 public key.

    Accepts compressed (33 bytes), uncompressed (65 bytes, ``0x04``
    prefix) or raw (64 bytes) encodings.
    """
    if len(public_key) == 33:
        return keys.PublicKey.from_compressed_bytes(public_key).to_checksum_address()
    if len(public_key) == 65 and public_key[0] == 4:
        public_key = public_key[1:]
    if len(public_key) != 64:
        raise ValueError(f"Not a secp256k1 public key ({len(public_key)} bytes).")
    return keys.PublicKey(public_key).to_checksum_address()


def compress_secp256k1(public_key: bytes) -> bytes:
    """Normalize a secp256k1 public key to its 33-byte compressed form."""
    if len(public_key) == 33:
        return public_key
    if len(public_key) == 65 and public_key[0] == 4:
        public_key = public_key[1:]
    if len(public_key) != 64:
        raise ValueError(f"Not a secp256k1 public key ({len(public_key)} bytes).")
    return keys.PublicKey(public_key).to_compressed_bytes()


__all__ = [
    "LocalKeyManagementSystem",
    "SigningAlgorithm",
    "algorithms_for",
    "compress_secp256k1",
    "parse_algorithm",
    "recover_es256k",
    "recover_typed_data_signer",
    "secp256k1_address",
    "verify_ed25519",
]
