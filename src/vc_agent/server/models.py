"""Pydantic request/response models for the vc-agent HTTP server."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from vc_agent import __version__
from vc_agent.did.identifier import Identifier


class CreateIdentifierRequest(BaseModel):
    """Request body for POST /identifiers."""

    alias: Optional[str] = None
    provider: Optional[str] = None


class IdentifierResponse(BaseModel):
    """A managed identifier."""

    did: str
    alias: Optional[str] = None
    provider: str
    controller_key_id: str
    services: list[dict[str, str]] = Field(default_factory=list)
    created_at: str

    @classmethod
    def from_identifier(cls, identifier: Identifier) -> "IdentifierResponse":
        return cls(
            did=identifier.did,
            alias=identifier.alias,
            provider=identifier.provider,
            controller_key_id=identifier.controller_key_id,
            services=[s.to_dict() for s in identifier.services],
            created_at=identifier.created_at.isoformat(),
        )


class CredentialStatusModel(BaseModel):
    """A ``credentialStatus`` entry."""

    type: str
    id: str


class IssueCredentialRequest(BaseModel):
    """Request body for POST /credentials/issue."""

    credential_subject: dict[str, Any]
    issuer_alias: str = "default"
    proof_format: str = "EthereumEip712Signature2021"
    credential_status: Optional[CredentialStatusModel] = None
    types: list[str] = Field(default_factory=list)
    expiration_date: Optional[str] = None


class CredentialRequest(BaseModel):
    """Request body for POST /credentials/verify and /credentials/status."""

    credential: dict[str, Any]


class StatusResponse(BaseModel):
    """Revocation state; also the body of GET /credentialStatus."""

    revoked: bool


class VerificationResponse(BaseModel):
    """Response body for POST /credentials/verify."""

    verified: bool
    signature_valid: bool
    revoked: Optional[bool] = None
    expired: bool
    error: Optional[str] = None
    status_error: Optional[str] = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "ok"
    service: str = "vc-agent"
    version: str = __version__
    identifier_count: int = 0


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str = ""


__all__ = [
    "CreateIdentifierRequest",
    "CredentialRequest",
    "CredentialStatusModel",
    "ErrorResponse",
    "HealthResponse",
    "IdentifierResponse",
    "IssueCredentialRequest",
    "StatusResponse",
    "VerificationResponse",
]
