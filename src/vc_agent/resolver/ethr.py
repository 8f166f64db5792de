"""Resolver for ``did:ethr`` backed by the ERC-1056 ``EthereumDIDRegistry``.

Resolution talks JSON-RPC to an Ethereum node (Infura by default):

1. ``eth_call`` of ``changed(address)`` gives the block of the most recent
   registry event for the identity (``0`` when it never changed).
2. Starting at that block, ``eth_getLogs`` walks the linked list of events
   backwards via each event's ``previousChange`` field.
3. ``DIDOwnerChanged`` events are replayed in chronological order to find
   the current owner. Delegate and attribute events are followed for the
   chain but do not alter the document.

The resulting document always has a ``#controller`` method carrying the
owner as a CAIP-10 ``blockchainAccountId``. When the DID embeds a public
key and ownership never moved, ``#controllerKey`` exposes that key as
``publicKeyHex``.
"""
from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx
from eth_utils import keccak, to_checksum_address

from vc_agent.did.document import DID_CONTEXT, DIDDocument, VerificationMethod
from vc_agent.did.ethr import NETWORKS, EthrNetwork, parse_ethr_did
from vc_agent.errors import ResolutionFailed
from vc_agent.kms.local import secp256k1_address
from vc_agent.resolver._http import RetryPolicy, request_json

logger = logging.getLogger(__name__)

SECP256K1_RECOVERY_CONTEXT = "https://w3id.org/security/suites/secp256k1recovery-2020/v2"
ZERO_ADDRESS = "0x" + "00" * 20

_CHANGED_SELECTOR = keccak(text="changed(address)")[:4]
_OWNER_CHANGED = "0x" + keccak(text="DIDOwnerChanged(address,address,uint256)").hex()
_DELEGATE_CHANGED = (
    "0x" + keccak(text="DIDDelegateChanged(address,bytes32,address,uint256,uint256)").hex()
)
_ATTRIBUTE_CHANGED = (
    "0x" + keccak(text="DIDAttributeChanged(address,bytes32,bytes,uint256,uint256)").hex()
)


def _pad_address(address: str) -> str:
    return address[2:].lower().rjust(64, "0")


def _words(data: str) -> list[str]:
    body = data[2:] if data.startswith("0x") else data
    return [body[i : i + 64] for i in range(0, len(body), 64)]


class EthrDIDResolver:
    """Resolve ``did:ethr`` identifiers against the on-chain registry.

    Parameters
    ----------
    rpc_urls:
        JSON-RPC endpoint per network name. DIDs on networks without an
        endpoint fail to resolve.
    timeout:
        Per-request timeout in seconds.
    retry:
        Retry policy for transport errors and 5xx answers.
    client:
        Optional pre-built ``httpx.Client``.
    max_history:
        Upper bound on the number of blocks walked through the event chain.
    """

    def __init__(
        self,
        rpc_urls: Mapping[str, str],
        timeout: float = 10.0,
        retry: RetryPolicy | None = None,
        client: httpx.Client | None = None,
        max_history: int = 256,
    ) -> None:
        self._rpc_urls = dict(rpc_urls)
        self._retry = retry or RetryPolicy()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._max_history = max_history
        self._ids = itertools.count(1)

    @classmethod
    def for_infura(
        cls,
        project_id: str,
        networks: Iterable[EthrNetwork] | None = None,
        **kwargs: Any,
    ) -> "EthrDIDResolver":
        """Build a resolver that reaches every known network through Infura."""
        selected = list(networks) if networks is not None else list(NETWORKS.values())
        return cls({n.name: n.infura_url(project_id) for n in selected}, **kwargs)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, did: str) -> DIDDocument:
        base_did = did.split("#", 1)[0]
        try:
            network, identifier = parse_ethr_did(base_did)
        except ValueError as exc:
            raise ResolutionFailed(did, str(exc)) from exc

        rpc_url = self._rpc_urls.get(network.name)
        if rpc_url is None:
            raise ResolutionFailed(did, f"no RPC endpoint configured for {network.name}")

        if len(identifier) == 42:
            address = to_checksum_address(identifier)
            public_key_hex = None
        else:
            public_key_hex = identifier[2:].lower()
            address = secp256k1_address(bytes.fromhex(public_key_hex))

        owner = self._current_owner(base_did, rpc_url, network, address)
        if owner.lower() == ZERO_ADDRESS:
            raise ResolutionFailed(did, "identifier has been deactivated")

        return self._build_document(base_did, network, address, owner, public_key_hex)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------
    # Registry access
    # ------------------------------------------------------------------

    def _rpc(self, did: str, rpc_url: str, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        body = request_json(self._client, "POST", rpc_url, did=did, policy=self._retry, json=payload)
        if not isinstance(body, dict):
            raise ResolutionFailed(did, f"{method} returned a non-object response")
        if "error" in body:
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise ResolutionFailed(did, f"{method} failed: {message}")
        return body.get("result")

    def _changed_block(self, did: str, rpc_url: str, network: EthrNetwork, address: str) -> int:
        data = "0x" + _CHANGED_SELECTOR.hex() + _pad_address(address)
        result = self._rpc(did, rpc_url, "eth_call", [{"to": network.registry, "data": data}, "latest"])
        if not isinstance(result, str):
            raise ResolutionFailed(did, "changed() returned no data")
        try:
            return int(result, 16) if result not in ("0x", "") else 0
        except ValueError as exc:
            raise ResolutionFailed(did, f"changed() returned {result!r}") from exc

    def _current_owner(self, did: str, rpc_url: str, network: EthrNetwork, address: str) -> str:
        block = self._changed_block(did, rpc_url, network, address)
        owner_changes: list[str] = []
        visited = 0
        while block:
            visited += 1
            if visited > self._max_history:
                raise ResolutionFailed(did, "registry history is too long to walk")
            logs = self._rpc(
                did,
                rpc_url,
                "eth_getLogs",
                [
                    {
                        "address": network.registry,
                        "fromBlock": hex(block),
                        "toBlock": hex(block),
                        "topics": [None, "0x" + _pad_address(address)],
                    }
                ],
            )
            if not isinstance(logs, list):
                raise ResolutionFailed(did, "eth_getLogs returned no list")

            block_owners: list[str] = []
            previous = 0
            for log in logs:
                try:
                    if not isinstance(log, dict):
                        raise ValueError("log entry is not an object")
                    topic = str(log.get("topics", [""])[0]).lower()
                    words = _words(str(log.get("data", "")))
                    if topic == _OWNER_CHANGED:
                        block_owners.append(to_checksum_address("0x" + words[0][-40:]))
                        change = int(words[1], 16)
                    elif topic in (_DELEGATE_CHANGED, _ATTRIBUTE_CHANGED):
                        change = int(words[3], 16)
                    else:
                        continue
                except (IndexError, TypeError, ValueError) as exc:
                    raise ResolutionFailed(did, f"malformed registry event in block {block}") from exc
                if change < block:
                    previous = max(previous, change)
            owner_changes[:0] = block_owners
            block = previous

        owner = owner_changes[-1] if owner_changes else address
        logger.debug("Owner of %s is %s (%d owner change(s))", did, owner, len(owner_changes))
        return owner

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def _build_document(
        self,
        did: str,
        network: EthrNetwork,
        address: str,
        owner: str,
        public_key_hex: str | None,
    ) -> DIDDocument:
        methods = [
            VerificationMethod(
                id=f"{did}#controller",
                type="EcdsaSecp256k1RecoveryMethod2020",
                controller=did,
                blockchain_account_id=f"eip155:{network.chain_id}:{owner}",
            )
        ]
        if public_key_hex is not None and owner.lower() == address.lower():
            methods.append(
                VerificationMethod(
                    id=f"{did}#controllerKey",
                    type="EcdsaSecp256k1VerificationKey2019",
                    controller=did,
                    public_key_hex=public_key_hex,
                )
            )
        refs = [vm.id for vm in methods]
        return DIDDocument(
            context=[DID_CONTEXT, SECP256K1_RECOVERY_CONTEXT],
            id=did,
            verification_method=methods,
            authentication=refs,
            assertion_method=list(refs),
        )


__all__ = ["EthrDIDResolver"]
