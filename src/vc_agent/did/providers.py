"""DID providers: how each method turns a fresh key into a DID string.

A provider knows two things: which key type its method uses, and how to
build the DID from that key (and, for ``did:web``, the alias). Providers
never write anything; :class:`~vc_agent.did.manager.DIDManager` owns
persistence.

Registered names follow the ``did:<method>[:<network>]`` convention used in
configuration, e.g. ``"did:ethr:sepolia"``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from vc_agent.did.did_key import public_key_to_did_key
from vc_agent.did.ethr import NETWORKS, EthrNetwork
from vc_agent.keys.key import Key, KeyType
from vc_agent.kms.local import secp256k1_address


class DIDProvider(ABC):
    """Base class for DID method naming conventions."""

    key_type: KeyType

    @abstractmethod
    def build_did(self, key: Key, alias: str | None) -> str:
        """Return the DID controlled by *key*.

        Raises
        ------
        ValueError
            If the provider cannot build a DID from these inputs.
        """


class EthrDIDProvider(DIDProvider):
    """``did:ethr``: secp256k1 keys, DID derived from the Ethereum address.

    Parameters
    ----------
    network:
        Target network. Mainnet DIDs omit the network segment.
    """

    key_type = KeyType.SECP256K1

    def __init__(self, network: EthrNetwork | None = None) -> None:
        self.network = network or NETWORKS["mainnet"]

    def build_did(self, key: Key, alias: str | None) -> str:
        address = secp256k1_address(key.public_key)
        if self.network.name == "mainnet":
            return f"did:ethr:{address}"
        return f"did:ethr:{self.network.name}:{address}"


class WebDIDProvider(DIDProvider):
    """``did:web``: the alias names the host serving the DID document.

    ``did:web:example.com`` for alias ``example.com``; a port is
    percent-encoded (``localhost%3A8080``) and path segments use ``:``.
    """

    key_type = KeyType.ED25519

    def build_did(self, key: Key, alias: str | None) -> str:
        if not alias:
            raise ValueError("did:web identifiers need an alias naming the host.")
        host, _, path = alias.partition("/")
        segments = [host.replace(":", "%3A")]
        segments.extend(p for p in path.split("/") if p)
        return "did:web:" + ":".join(segments)


class KeyDIDProvider(DIDProvider):
    """``did:key``: the Ed25519 public key is the identifier."""

    key_type = KeyType.ED25519

    def build_did(self, key: Key, alias: str | None) -> str:
        return public_key_to_did_key(key.public_key)


def default_providers() -> dict[str, DIDProvider]:
    """Return the provider set every agent starts with."""
    providers: dict[str, DIDProvider] = {
        "did:ethr": EthrDIDProvider(NETWORKS["mainnet"]),
        "did:web": WebDIDProvider(),
        "did:key": KeyDIDProvider(),
    }
    for name, network in NETWORKS.items():
        if name != "mainnet":
            providers[f"did:ethr:{name}"] = EthrDIDProvider(network)
    return providers


__all__ = [
    "DIDProvider",
    "EthrDIDProvider",
    "KeyDIDProvider",
    "WebDIDProvider",
    "default_providers",
]
