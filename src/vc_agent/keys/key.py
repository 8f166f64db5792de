"""Key: public handle for a managed keypair."""
from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum


class KeyType(str, Enum):
    """Key types the local KMS can generate."""

    SECP256K1 = "Secp256k1"
    ED25519 = "Ed25519"


@dataclass(frozen=True)
class Key:
    """Public view of a key held by :class:`~vc_agent.keys.manager.KeyManager`.

    The private half lives encrypted in the private key table and is never
    attached to this object.

    Parameters
    ----------
    key_id:
        Lowercase hex of :attr:`public_key`. Doubles as the primary key.
    type:
        The key's curve.
    public_key:
        33-byte compressed secp256k1 point, or 32-byte raw Ed25519 key.
    kms:
        Label of the key management system holding the private half.
    """

    key_id: str
    type: KeyType
    public_key: bytes
    kms: str = "local"
    created_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "kid": self.key_id,
            "type": self.type.value,
            "kms": self.kms,
            "publicKeyHex": self.public_key_hex,
            "createdAt": self.created_at.isoformat(),
        }


__all__ = ["Key", "KeyType"]
