"""did:ethr naming: networks, chain ids and DID parsing.

DID format
----------
::

    did:ethr:<0x address or 0x compressed public key>            (mainnet)
    did:ethr:<network>:<0x address or 0x compressed public key>

``<network>`` is a network name (``sepolia``) or a hex chain id
(``0xaa36a7``).
"""
from __future__ import annotations

import re
from dataclasses import dataclass

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PUBLIC_KEY_PATTERN = re.compile(r"^0x0[23][0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class EthrNetwork:
    """An Ethereum network with a deployed ERC-1056 DID registry.

    Parameters
    ----------
    name:
        Network name used in DIDs and in the Infura host name.
    chain_id:
        EIP-155 chain id.
    registry:
        Address of the ``EthereumDIDRegistry`` contract.
    """

    name: str
    chain_id: int
    registry: str

    def infura_url(self, project_id: str) -> str:
        return f"https://{self.name}.infura.io/v3/{project_id}"


NETWORKS: dict[str, EthrNetwork] = {
    "mainnet": EthrNetwork("mainnet", 1, "0xdca7ef03e98e0dc2b855be647c39abe984fcf21b"),
    "sepolia": EthrNetwork("sepolia", 11155111, "0x03d5003bf0e79C5F5223588F347ebA39AfbC3818"),
}


def network_by_name(name: str) -> EthrNetwork:
    """Look up a network by name or hex chain id.

    Raises
    ------
    ValueError
        If the network is unknown.
    """
    if name in NETWORKS:
        return NETWORKS[name]
    if name.startswith("0x"):
        try:
            chain_id = int(name, 16)
        except ValueError:
            chain_id = -1
        for network in NETWORKS.values():
            if network.chain_id == chain_id:
                return network
    raise ValueError(f"Unknown did:ethr network {name!r}.")


def parse_ethr_did(did: str) -> tuple[EthrNetwork, str]:
    """Split a ``did:ethr`` into its network and identifier.

    Returns
    -------
    tuple[EthrNetwork, str]
        The network and the ``0x`` address or compressed public key.

    Raises
    ------
    ValueError
        If *did* is not a well-formed ``did:ethr``.
    """
    base = did.split("#", 1)[0]
    parts = base.split(":")
    if len(parts) < 3 or parts[0] != "did" or parts[1] != "ethr":
        raise ValueError(f"Not a did:ethr identifier: {did!r}")
    if len(parts) == 3:
        network, identifier = NETWORKS["mainnet"], parts[2]
    elif len(parts) == 4:
        network, identifier = network_by_name(parts[2]), parts[3]
    else:
        raise ValueError(f"Malformed did:ethr identifier: {did!r}")
    if not (_ADDRESS_PATTERN.match(identifier) or _PUBLIC_KEY_PATTERN.match(identifier)):
        raise ValueError(
            f"did:ethr identifier {identifier!r} is neither an address nor a compressed public key."
        )
    return network, identifier


def chain_id_for(did: str) -> int:
    """Return the EIP-155 chain id implied by *did* (``1`` for non-ethr DIDs)."""
    try:
        network, _ = parse_ethr_did(did)
    except ValueError:
        return 1
    return network.chain_id


__all__ = ["EthrNetwork", "NETWORKS", "chain_id_for", "network_by_name", "parse_ethr_did"]
