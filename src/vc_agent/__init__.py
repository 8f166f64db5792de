"""vc-agent: decentralized identifiers and verifiable credentials.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import vc_agent
>>> vc_agent.__version__
'0.1.0'

Quick start
-----------
::

    from vc_agent import AgentSettings, create_agent

    with create_agent(AgentSettings()) as agent:
        issuer = agent.ensure_default_identifier()
        credential = agent.issue_credential(
            {"id": "did:web:example.com", "you": "Rock"},
            issuer_alias="default",
        )
        print(agent.verify_credential(credential).verified)
"""
from __future__ import annotations

__version__: str = "0.1.0"

from vc_agent.agent import Agent, create_agent
from vc_agent.config import AgentSettings

# ------------------------------------------------------------------
# Credentials
# ------------------------------------------------------------------
from vc_agent.credentials.model import CredentialStatusEntry, Proof, VerifiableCredential
from vc_agent.credentials.verifier import VerificationResult

# ------------------------------------------------------------------
# Identifiers and keys
# ------------------------------------------------------------------
from vc_agent.did.document import DIDDocument, ServiceEndpoint, VerificationMethod
from vc_agent.did.identifier import Identifier
from vc_agent.keys.key import Key, KeyType
from vc_agent.status.checker import StatusResult

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from vc_agent.errors import (
    AgentError,
    AliasAlreadyExists,
    DecryptionFailed,
    IdentifierNotFound,
    KeyNotFound,
    ResolutionFailed,
    StatusError,
    StatusFetchError,
    StatusMethodAlreadyRegistered,
    StorageError,
    UnknownStatusType,
    UnsupportedFormat,
    UnsupportedKeyType,
    UnsupportedMethod,
)

__all__ = [
    "__version__",
    "Agent",
    "AgentError",
    "AgentSettings",
    "AliasAlreadyExists",
    "CredentialStatusEntry",
    "DIDDocument",
    "DecryptionFailed",
    "Identifier",
    "IdentifierNotFound",
    "Key",
    "KeyNotFound",
    "KeyType",
    "Proof",
    "ResolutionFailed",
    "ServiceEndpoint",
    "StatusError",
    "StatusFetchError",
    "StatusMethodAlreadyRegistered",
    "StatusResult",
    "StorageError",
    "UnknownStatusType",
    "UnsupportedFormat",
    "UnsupportedKeyType",
    "UnsupportedMethod",
    "VerifiableCredential",
    "VerificationMethod",
    "VerificationResult",
    "create_agent",
]
