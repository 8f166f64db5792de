"""vc_agent.did: managed identifiers and DID documents.

Submodules
----------
document
    DIDDocument, VerificationMethod and ServiceEndpoint (resolved, read-only).
identifier
    Identifier, the persisted record of a DID this agent controls.
providers
    Naming conventions for did:ethr, did:web and did:key.
manager
    DIDManager: create, list and look up identifiers.
"""
from __future__ import annotations

from vc_agent.did.document import DIDDocument, ServiceEndpoint, VerificationMethod, parse_did
from vc_agent.did.identifier import Identifier
from vc_agent.did.manager import DIDManager
from vc_agent.did.providers import (
    DIDProvider,
    EthrDIDProvider,
    KeyDIDProvider,
    WebDIDProvider,
    default_providers,
)

__all__ = [
    "DIDDocument",
    "DIDManager",
    "DIDProvider",
    "EthrDIDProvider",
    "Identifier",
    "KeyDIDProvider",
    "ServiceEndpoint",
    "VerificationMethod",
    "WebDIDProvider",
    "default_providers",
    "parse_did",
]
