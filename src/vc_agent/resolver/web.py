"""Resolver for the ``did:web`` method.

Resolves did:web identifiers to DID documents per
https://w3c-ccg.github.io/did-method-web/::

    did:web:example.com                -> https://example.com/.well-known/did.json
    did:web:example.com:user:alice     -> https://example.com/user/alice/did.json
    did:web:localhost%3A8443           -> https://localhost:8443/.well-known/did.json
"""
from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from vc_agent.did.document import DIDDocument
from vc_agent.errors import ResolutionFailed
from vc_agent.resolver._http import RetryPolicy, request_json

logger = logging.getLogger(__name__)


def did_web_to_url(did: str) -> str:
    """Convert a ``did:web`` identifier to the URL of its document.

    Raises
    ------
    ResolutionFailed
        If *did* is not a ``did:web``.
    """
    if not did.startswith("did:web:"):
        raise ResolutionFailed(did, "not a did:web identifier")
    domain_path = did[len("did:web:"):].split("#", 1)[0]
    parts = domain_path.split(":")
    domain = parts[0].replace("%3A", ":").replace("%3a", ":")
    if not domain:
        raise ResolutionFailed(did, "empty host")
    if len(parts) > 1:
        path = "/" + "/".join(quote(p, safe="") for p in parts[1:]) + "/did.json"
    else:
        path = "/.well-known/did.json"
    return f"https://{domain}{path}"


class WebDIDResolver:
    """Fetch ``did:web`` documents over HTTPS.

    Parameters
    ----------
    timeout:
        Per-request timeout in seconds.
    retry:
        Retry policy for transport errors and 5xx answers.
    client:
        Optional pre-built ``httpx.Client`` (the resolver then does not
        close it).
    """

    def __init__(
        self,
        timeout: float = 10.0,
        retry: RetryPolicy | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._retry = retry or RetryPolicy()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def resolve(self, did: str) -> DIDDocument:
        base_did = did.split("#", 1)[0]
        url = did_web_to_url(base_did)
        data = request_json(
            self._client,
            "GET",
            url,
            did=did,
            policy=self._retry,
            headers={"Accept": "application/did+ld+json, application/json"},
        )
        if not isinstance(data, dict):
            raise ResolutionFailed(did, "DID document is not a JSON object")
        if data.get("id") != base_did:
            raise ResolutionFailed(
                did, f"document id mismatch: expected {base_did}, got {data.get('id')}"
            )
        try:
            document = DIDDocument.from_dict(data)
        except ValueError as exc:
            raise ResolutionFailed(did, f"malformed DID document: {exc}") from exc
        logger.debug("Resolved %s from %s", base_did, url)
        return document

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


__all__ = ["WebDIDResolver", "did_web_to_url"]
