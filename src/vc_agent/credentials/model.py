"""Verifiable Credentials data model.

Implements the parts of the W3C Verifiable Credentials Data Model 1.1
(https://www.w3.org/TR/vc-data-model/) the agent issues and verifies.

Credentials are immutable. Issuance assembles an unsigned body, signs it,
and returns a *new* instance carrying the proof; nothing ever mutates a
credential in place.

Dates
-----
``issuanceDate`` and ``expirationDate`` are kept as the exact ISO-8601
strings that were signed. Parsing them into ``datetime`` objects and back
would change their text (fractional seconds, ``Z`` versus ``+00:00``) and
invalidate the signature, so they are parsed only to answer
:meth:`VerifiableCredential.is_expired`.
"""
from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

CREDENTIALS_V1_CONTEXT: str = "https://www.w3.org/2018/credentials/v1"
VERIFIABLE_CREDENTIAL: str = "VerifiableCredential"

_KNOWN_MEMBERS = frozenset(
    {
        "@context",
        "id",
        "type",
        "issuer",
        "issuanceDate",
        "expirationDate",
        "credentialSubject",
        "credentialStatus",
        "proof",
    }
)


def utc_timestamp(moment: datetime | None = None) -> str:
    """Format *moment* (default: now) as ``2024-05-01T12:00:00.000Z``."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises
    ------
    ValueError
        If *value* is not ISO-8601.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ------------------------------------------------------------------
# CredentialStatusEntry
# ------------------------------------------------------------------


@dataclass(frozen=True)
class CredentialStatusEntry:
    """Where and how to look up a credential's revocation state.

    Parameters
    ----------
    type:
        Status method name, e.g. ``"CredentialStatusList2017"``.
    id:
        Endpoint URL of the status document.
    """

    type: str
    id: str

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("CredentialStatusEntry.type must not be empty.")
        if not self.id:
            raise ValueError("CredentialStatusEntry.id must not be empty.")

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "type": self.type}

    @classmethod
    def from_dict(cls, data: Any) -> "CredentialStatusEntry":
        if not isinstance(data, dict):
            raise ValueError("credentialStatus must be a JSON object.")
        return cls(type=str(data.get("type", "")), id=str(data.get("id", "")))


# ------------------------------------------------------------------
# Proof
# ------------------------------------------------------------------


@dataclass(frozen=True)
class Proof:
    """A cryptographic proof attached to a credential.

    Parameters
    ----------
    type:
        Proof format name, e.g. ``"EthereumEip712Signature2021"``.
    created:
        Timestamp the proof was produced (signed as part of the options).
    proof_purpose:
        Always ``"assertionMethod"`` for issued credentials.
    verification_method:
        DID URL of the key that signed.
    proof_value:
        Hex signature (EIP-712 proofs).
    jws:
        Detached compact JWS (JsonWebSignature2020 proofs).
    eip712:
        ``domain``, ``types`` and ``primaryType`` of an EIP-712 proof.
    """

    type: str
    created: str
    proof_purpose: str
    verification_method: str
    proof_value: str | None = None
    jws: str | None = None
    eip712: dict[str, Any] | None = field(default=None, hash=False)

    def options(self) -> dict[str, str]:
        """The signed subset of the proof (everything except the signature)."""
        return {
            "type": self.type,
            "created": self.created,
            "proofPurpose": self.proof_purpose,
            "verificationMethod": self.verification_method,
        }

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = self.options()
        if self.proof_value is not None:
            data["proofValue"] = self.proof_value
        if self.jws is not None:
            data["jws"] = self.jws
        if self.eip712 is not None:
            data["eip712"] = self.eip712
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Proof":
        if not isinstance(data, dict):
            raise ValueError("proof must be a JSON object.")
        missing = [k for k in ("type", "created", "proofPurpose", "verificationMethod") if not data.get(k)]
        if missing:
            raise ValueError(f"proof is missing {', '.join(missing)}.")
        eip712 = data.get("eip712")
        return cls(
            type=str(data["type"]),
            created=str(data["created"]),
            proof_purpose=str(data["proofPurpose"]),
            verification_method=str(data["verificationMethod"]),
            proof_value=data.get("proofValue"),
            jws=data.get("jws"),
            eip712=eip712 if isinstance(eip712, dict) else None,
        )


# ------------------------------------------------------------------
# VerifiableCredential (Pydantic v2)
# ------------------------------------------------------------------


class VerifiableCredential(BaseModel):
    """A W3C Verifiable Credential.

    Parameters
    ----------
    context:
        JSON-LD context URIs.
    id:
        Optional credential identifier.
    type:
        Credential type list. Always includes ``"VerifiableCredential"``.
    issuer:
        Issuer DID, either bare or as ``{"id": did, ...}``.
    issuance_date:
        ISO-8601 issuance timestamp, exactly as signed.
    expiration_date:
        Optional ISO-8601 expiry timestamp, exactly as signed.
    credential_subject:
        The subject's claims; ``id`` names the subject.
    credential_status:
        Optional pointer to the revocation status document.
    extra:
        Any other top-level members. They are part of the signed body.
    proof:
        The attached proof, if the credential has been issued.
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    context: list[str] = Field(default_factory=lambda: [CREDENTIALS_V1_CONTEXT])
    id: str | None = None
    type: list[str] = Field(default_factory=lambda: [VERIFIABLE_CREDENTIAL])
    issuer: str | dict[str, Any]
    issuance_date: str
    expiration_date: str | None = None
    credential_subject: dict[str, Any]
    credential_status: CredentialStatusEntry | None = None
    extra: dict[str, Any] = Field(default_factory=dict)
    proof: Proof | None = None

    @field_validator("type")
    @classmethod
    def validate_type_includes_base(cls, value: list[str]) -> list[str]:
        if VERIFIABLE_CREDENTIAL not in value:
            raise ValueError(f"type list must include {VERIFIABLE_CREDENTIAL!r}.")
        return value

    @field_validator("issuer")
    @classmethod
    def validate_issuer(cls, value: str | dict[str, Any]) -> str | dict[str, Any]:
        did = value.get("id") if isinstance(value, dict) else value
        if not isinstance(did, str) or not did:
            raise ValueError("issuer must be a DID or an object with an 'id'.")
        return value

    @field_validator("issuance_date", "expiration_date")
    @classmethod
    def validate_timestamp(cls, value: str | None) -> str | None:
        if value is not None:
            parse_timestamp(value)
        return value

    @field_validator("extra")
    @classmethod
    def validate_extra(cls, value: dict[str, Any]) -> dict[str, Any]:
        clashes = sorted(_KNOWN_MEMBERS.intersection(value))
        if clashes:
            raise ValueError(f"extra members clash with standard ones: {clashes}")
        return value

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def issuer_did(self) -> str:
        """The issuer DID regardless of which form ``issuer`` takes."""
        if isinstance(self.issuer, dict):
            return str(self.issuer["id"])
        return self.issuer

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once ``expirationDate`` has passed.

        A credential with no ``expirationDate`` never expires.
        """
        if self.expiration_date is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now > parse_timestamp(self.expiration_date)

    def with_proof(self, proof: Proof) -> "VerifiableCredential":
        """Return a copy of this credential carrying *proof*."""
        return self.model_copy(update={"proof": proof})

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def body(self) -> dict[str, Any]:
        """A fresh copy of the JSON form without ``proof``, i.e. what a proof signs."""
        data: dict[str, Any] = {"@context": list(self.context)}
        if self.id is not None:
            data["id"] = self.id
        data["type"] = list(self.type)
        data["issuer"] = self.issuer
        data["issuanceDate"] = self.issuance_date
        if self.expiration_date is not None:
            data["expirationDate"] = self.expiration_date
        data["credentialSubject"] = self.credential_subject
        if self.credential_status is not None:
            data["credentialStatus"] = self.credential_status.to_dict()
        data.update(self.extra)
        return copy.deepcopy(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize following W3C VC Data Model JSON conventions."""
        data = self.body()
        if self.proof is not None:
            data["proof"] = copy.deepcopy(self.proof.to_dict())
        return data

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> "VerifiableCredential":
        """Parse a credential in its JSON form.

        Raises
        ------
        ValueError
            If a required member is missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValueError("A credential must be a JSON object.")
        missing = [
            k for k in ("@context", "type", "issuer", "issuanceDate", "credentialSubject")
            if k not in data
        ]
        if missing:
            raise ValueError(f"Credential is missing {', '.join(missing)}.")

        context = data["@context"]
        types = data["type"]
        subject = data["credentialSubject"]
        if not isinstance(subject, dict):
            raise ValueError("credentialSubject must be a JSON object.")

        status = data.get("credentialStatus")
        proof = data.get("proof")
        return cls(
            context=[context] if isinstance(context, str) else list(context),
            id=data.get("id"),
            type=[types] if isinstance(types, str) else list(types),
            issuer=data["issuer"],
            issuance_date=data["issuanceDate"],
            expiration_date=data.get("expirationDate"),
            credential_subject=subject,
            credential_status=CredentialStatusEntry.from_dict(status) if status is not None else None,
            extra={k: v for k, v in data.items() if k not in _KNOWN_MEMBERS},
            proof=Proof.from_dict(proof) if proof is not None else None,
        )

    @classmethod
    def from_json(cls, json_str: str) -> "VerifiableCredential":
        """Deserialize a credential from a JSON string (raises ``ValueError``)."""
        return cls.from_dict(json.loads(json_str))


__all__ = [
    "CREDENTIALS_V1_CONTEXT",
    "CredentialStatusEntry",
    "Proof",
    "VERIFIABLE_CREDENTIAL",
    "VerifiableCredential",
    "parse_timestamp",
    "utc_timestamp",
]
