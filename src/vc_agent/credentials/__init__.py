"""Verifiable credentials: model, proof formats, issuance and verification."""
from __future__ import annotations

from vc_agent.credentials.issuer import CredentialIssuer
from vc_agent.credentials.model import (
    CredentialStatusEntry,
    Proof,
    VerifiableCredential,
)
from vc_agent.credentials.proofs import (
    Eip712ProofFormat,
    JsonWebSignatureProofFormat,
    ProofFormat,
    ProofFormatRegistry,
    default_proof_formats,
)
from vc_agent.credentials.verifier import CredentialVerifier, VerificationResult

__all__ = [
    "CredentialIssuer",
    "CredentialStatusEntry",
    "CredentialVerifier",
    "Eip712ProofFormat",
    "JsonWebSignatureProofFormat",
    "Proof",
    "ProofFormat",
    "ProofFormatRegistry",
    "VerifiableCredential",
    "VerificationResult",
    "default_proof_formats",
]
