"""did:key codec: Ed25519 public keys encoded directly in the DID.

Implements the encoding of https://w3c-ccg.github.io/did-method-key/:

1. Prepend the Ed25519 multicodec prefix ``0xed 0x01`` to the 32-byte key.
2. Encode the 34 bytes with base58btc.
3. Prefix with ``z`` (multibase base58btc) and ``did:key:``.

The DID is self-describing, so resolution needs no registry or network.
The same multibase form is used for ``publicKeyMultibase`` in DID
documents.
"""
from __future__ import annotations

_ED25519_MULTICODEC_PREFIX: bytes = b"\xed\x01"
_DID_KEY_PREFIX: str = "did:key:z"

_BASE58_ALPHABET: str = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def base58btc_encode(data: bytes) -> str:
    """Encode *data* as base58btc, keeping leading zero bytes as ``1``."""
    n = int.from_bytes(data, "big")
    digits: list[str] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        digits.append(_BASE58_ALPHABET[remainder])
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return "1" * leading_zeros + "".join(reversed(digits))


def base58btc_decode(encoded: str) -> bytes:
    """Decode a base58btc string.

    Raises
    ------
    ValueError
        If the string contains a character outside the alphabet.
    """
    n = 0
    for char in encoded:
        index = _BASE58_ALPHABET.find(char)
        if index < 0:
            raise ValueError(f"Invalid base58btc character {char!r} in {encoded!r}")
        n = n * 58 + index
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    leading_ones = len(encoded) - len(encoded.lstrip("1"))
    return b"\x00" * leading_ones + body


def ed25519_multibase(public_key: bytes) -> str:
    """Return the ``z``-prefixed multibase form of an Ed25519 public key."""
    return "z" + base58btc_encode(_ED25519_MULTICODEC_PREFIX + public_key)


def ed25519_from_multibase(value: str) -> bytes:
    """Decode a ``z``-prefixed multicodec Ed25519 key to its 32 raw bytes.

    Raises
    ------
    ValueError
        If the value is not base58btc multibase or not an Ed25519 key.
    """
    if not value.startswith("z"):
        raise ValueError(f"Unsupported multibase encoding in {value!r}; expected 'z'.")
    decoded = base58btc_decode(value[1:])
    if not decoded.startswith(_ED25519_MULTICODEC_PREFIX):
        prefix_hex = decoded[:2].hex()
        raise ValueError(
            f"Unsupported multicodec prefix 0x{prefix_hex}; only Ed25519 (0xed01) is supported."
        )
    public_key = decoded[len(_ED25519_MULTICODEC_PREFIX):]
    if len(public_key) != 32:
        raise ValueError(f"Ed25519 key must be 32 bytes, got {len(public_key)}.")
    return public_key


def public_key_to_did_key(public_key: bytes) -> str:
    """Encode a raw Ed25519 public key as ``did:key:z...``."""
    return "did:key:" + ed25519_multibase(public_key)


def did_key_to_public_key(did: str) -> bytes:
    """Decode the Ed25519 public key embedded in a ``did:key``.

    Raises
    ------
    ValueError
        If *did* is not a well-formed Ed25519 ``did:key``.
    """
    base = did.split("#", 1)[0]
    if not base.startswith(_DID_KEY_PREFIX) or len(base) == len(_DID_KEY_PREFIX):
        raise ValueError(
            f"Invalid did:key format: {did!r}. Expected did:key:z<base58btc-encoded-key>"
        )
    return ed25519_from_multibase(base[len("did:key:"):])


__all__ = [
    "base58btc_decode",
    "base58btc_encode",
    "did_key_to_public_key",
    "ed25519_from_multibase",
    "ed25519_multibase",
    "public_key_to_did_key",
]
