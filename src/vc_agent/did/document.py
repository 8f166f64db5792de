"""DIDDocument: read-only projection of a resolved DID.

Documents are produced by resolver plugins and are never persisted; every
resolution builds a fresh one. The model follows the W3C DID Core data
model (https://www.w3.org/TR/did-core/#data-model) closely enough to parse
documents served by ``did:web`` hosts and produced by the ``did:ethr`` and
``did:key`` resolvers.

Key material
------------
A :class:`VerificationMethod` carries exactly the key representation its
source used: ``publicKeyHex``, ``publicKeyMultibase``, ``publicKeyJwk`` or
``blockchainAccountId`` (an Ethereum address, CAIP-10 encoded). The
credential verifier decides which representation fits a proof.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, field_validator

DID_CONTEXT: str = "https://www.w3.org/ns/did/v1"

# did:<method>:<method-specific-id>
_DID_PATTERN = re.compile(r"^did:(?P<method>[a-z0-9]+):(?P<msid>[A-Za-z0-9._:%\-]+)$")


def parse_did(did: str) -> tuple[str, str]:
    """Split a DID into ``(method, method_specific_id)``.

    A fragment (``#key-1``) or query is stripped before parsing.

    Raises
    ------
    ValueError
        If *did* is not a syntactically valid DID.
    """
    base = did.split("#", 1)[0].split("?", 1)[0]
    match = _DID_PATTERN.match(base)
    if not match:
        raise ValueError(f"Malformed DID {did!r}. Expected did:<method>:<identifier>.")
    return match.group("method"), match.group("msid")


# ------------------------------------------------------------------
# Verification method
# ------------------------------------------------------------------


@dataclass(frozen=True)
class VerificationMethod:
    """A public key (or account) attached to a DID document.

    Parameters
    ----------
    id:
        Absolute method id, e.g. ``did:ethr:sepolia:0xabc#controller``.
    type:
        Method type, e.g. ``EcdsaSecp256k1RecoveryMethod2020``.
    controller:
        The DID that controls this key.
    """

    id: str
    type: str
    controller: str
    public_key_hex: str | None = None
    public_key_multibase: str | None = None
    public_key_jwk: dict[str, Any] | None = field(default=None, hash=False, compare=False)
    blockchain_account_id: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("VerificationMethod.id must not be empty.")
        if not self.type:
            raise ValueError("VerificationMethod.type must not be empty.")

    @property
    def ethereum_address(self) -> str | None:
        """The address part of ``blockchainAccountId``, if any."""
        if not self.blockchain_account_id:
            return None
        return self.blockchain_account_id.rsplit(":", 1)[-1].split("@", 1)[0]

    def to_dict(self) -> dict[str, object]:
        """Serialize to a W3C-compatible plain dictionary."""
        data: dict[str, object] = {
            "id": self.id,
            "type": self.type,
            "controller": self.controller,
        }
        if self.public_key_hex is not None:
            data["publicKeyHex"] = self.public_key_hex
        if self.public_key_multibase is not None:
            data["publicKeyMultibase"] = self.public_key_multibase
        if self.public_key_jwk is not None:
            data["publicKeyJwk"] = dict(self.public_key_jwk)
        if self.blockchain_account_id is not None:
            data["blockchainAccountId"] = self.blockchain_account_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_did: str) -> "VerificationMethod":
        """Parse a verification method, resolving relative ids against *base_did*."""
        for member in ("publicKeyHex", "publicKeyMultibase", "blockchainAccountId"):
            if member in data and not isinstance(data[member], str):
                raise ValueError(f"verification method {member} must be a string.")
        if "publicKeyJwk" in data and not isinstance(data["publicKeyJwk"], dict):
            raise ValueError("verification method publicKeyJwk must be an object.")
        return cls(
            id=_absolute(str(data.get("id", "")), base_did),
            type=str(data.get("type", "")),
            controller=str(data.get("controller", base_did)),
            public_key_hex=data.get("publicKeyHex"),
            public_key_multibase=data.get("publicKeyMultibase"),
            public_key_jwk=data.get("publicKeyJwk"),
            blockchain_account_id=data.get("blockchainAccountId"),
        )


# ------------------------------------------------------------------
# Service endpoint
# ------------------------------------------------------------------


@dataclass(frozen=True)
class ServiceEndpoint:
    """A service endpoint advertised for a DID.

    Parameters
    ----------
    id:
        The service identifier (e.g. ``did:web:example.com#messaging``).
    type:
        Service type string (e.g. ``"DIDCommMessaging"``, ``"LinkedDomains"``).
    endpoint:
        The URL or URI for this service.
    description:
        Optional free text.
    """

    id: str
    type: str
    endpoint: str
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ServiceEndpoint.id must not be empty.")
        if not self.type:
            raise ValueError("ServiceEndpoint.type must not be empty.")
        if not self.endpoint:
            raise ValueError("ServiceEndpoint.endpoint must not be empty.")

    def to_dict(self) -> dict[str, str]:
        """Serialize to a W3C-compatible plain dictionary."""
        data = {"id": self.id, "type": self.type, "serviceEndpoint": self.endpoint}
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_did: str = "") -> "ServiceEndpoint":
        endpoint = data.get("serviceEndpoint", "")
        if not isinstance(endpoint, str):
            endpoint = str(endpoint)
        return cls(
            id=_absolute(str(data.get("id", "")), base_did),
            type=str(data.get("type", "")),
            endpoint=endpoint,
            description=data.get("description"),
        )


# ------------------------------------------------------------------
# DID Document (Pydantic v2)
# ------------------------------------------------------------------


class DIDDocument(BaseModel):
    """A resolved DID document.

    Parameters
    ----------
    context:
        JSON-LD context URIs.
    id:
        The DID this document describes.
    verification_method:
        Keys and accounts associated with the DID, including any embedded
        in ``authentication`` / ``assertionMethod``.
    authentication:
        Verification method ids usable for authentication.
    assertion_method:
        Verification method ids usable for issuing credentials.
    service:
        Advertised service endpoints.
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    context: list[str] = Field(default_factory=lambda: [DID_CONTEXT])
    id: str
    controller: str | list[str] | None = None
    verification_method: list[VerificationMethod] = Field(default_factory=list)
    authentication: list[str] = Field(default_factory=list)
    assertion_method: list[str] = Field(default_factory=list)
    service: list[ServiceEndpoint] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def validate_did_format(cls, value: str) -> str:
        parse_did(value)
        return value

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_verification_method(self, method_id: str) -> VerificationMethod | None:
        """Return the verification method with *method_id* (relative ids allowed)."""
        target = _absolute(method_id, self.id)
        for vm in self.verification_method:
            if vm.id == target:
                return vm
        return None

    def assertion_methods(self) -> list[VerificationMethod]:
        """Return the methods authorized for assertions.

        Falls back to every verification method when the document does not
        declare ``assertionMethod``.
        """
        if not self.assertion_method:
            return list(self.verification_method)
        found = (self.get_verification_method(ref) for ref in self.assertion_method)
        return [vm for vm in found if vm is not None]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        """Serialize following W3C DID Core JSON conventions."""
        data: dict[str, object] = {
            "@context": list(self.context),
            "id": self.id,
        }
        if self.controller is not None:
            data["controller"] = self.controller
        data["verificationMethod"] = [vm.to_dict() for vm in self.verification_method]
        data["authentication"] = list(self.authentication)
        data["assertionMethod"] = list(self.assertion_method)
        if self.service:
            data["service"] = [s.to_dict() for s in self.service]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DIDDocument":
        """Parse a W3C DID document.

        Embedded verification methods inside ``authentication`` and
        ``assertionMethod`` are lifted into :attr:`verification_method`
        and replaced by their ids.

        Raises
        ------
        ValueError
            If the document is structurally invalid.
        """
        if not isinstance(data, dict):
            raise ValueError("DID document must be a JSON object.")
        did = data.get("id")
        if not isinstance(did, str):
            raise ValueError("DID document has no string 'id'.")

        methods = [
            VerificationMethod.from_dict(item, did)
            for item in data.get("verificationMethod", []) or []
            if isinstance(item, dict)
        ]
        known = {vm.id for vm in methods}

        def relationship(name: str) -> list[str]:
            refs: list[str] = []
            for item in data.get(name, []) or []:
                if isinstance(item, str):
                    refs.append(_absolute(item, did))
                elif isinstance(item, dict):
                    vm = VerificationMethod.from_dict(item, did)
                    if vm.id not in known:
                        methods.append(vm)
                        known.add(vm.id)
                    refs.append(vm.id)
            return refs

        authentication = relationship("authentication")
        assertion_method = relationship("assertionMethod")

        context = data.get("@context", [DID_CONTEXT])
        if isinstance(context, str):
            context = [context]

        return cls(
            context=[c for c in context if isinstance(c, str)] or [DID_CONTEXT],
            id=did,
            controller=data.get("controller"),
            verification_method=methods,
            authentication=authentication,
            assertion_method=assertion_method,
            service=[
                ServiceEndpoint.from_dict(s, did)
                for s in data.get("service", []) or []
                if isinstance(s, dict)
            ],
        )


def _absolute(ref: str, base_did: str) -> str:
    """Resolve a relative DID URL (``#key-1``) against *base_did*."""
    if ref.startswith("#"):
        return f"{base_did}{ref}"
    return ref


__all__ = [
    "DID_CONTEXT",
    "DIDDocument",
    "ServiceEndpoint",
    "VerificationMethod",
    "parse_did",
]
