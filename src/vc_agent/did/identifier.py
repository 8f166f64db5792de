"""Identifier: a managed DID and the key that controls it."""
from __future__ import annotations

import datetime
from dataclasses import dataclass, field

from vc_agent.did.document import ServiceEndpoint


@dataclass(frozen=True)
class Identifier:
    """A DID owned by this agent.

    Parameters
    ----------
    did:
        The fully qualified DID string.
    provider:
        The provider that minted the DID, e.g. ``"did:ethr:sepolia"``.
    controller_key_id:
        Id of the :class:`~vc_agent.keys.key.Key` that signs for this DID.
        Non-owning reference.
    alias:
        Optional human label, unique across the store when set.
    services:
        Ordered service endpoints attached to the DID.
    """

    did: str
    provider: str
    controller_key_id: str
    alias: str | None = None
    services: tuple[ServiceEndpoint, ...] = ()
    created_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def method(self) -> str:
        """The DID method name, e.g. ``"ethr"``."""
        return self.did.split(":", 2)[1]

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "did": self.did,
            "alias": self.alias,
            "provider": self.provider,
            "controllerKeyId": self.controller_key_id,
            "services": [s.to_dict() for s in self.services],
            "createdAt": self.created_at.isoformat(),
        }


__all__ = ["Identifier"]
