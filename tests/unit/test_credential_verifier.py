"""Tests for vc_agent.credentials.verifier."""
from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone

import pytest
import respx

from vc_agent.credentials.issuer import CredentialIssuer
from vc_agent.credentials.model import CredentialStatusEntry, VerifiableCredential
from vc_agent.credentials.proofs import default_proof_formats
from vc_agent.credentials.verifier import CredentialVerifier, VerificationResult
from vc_agent.did.manager import DIDManager
from vc_agent.did.providers import default_providers
from vc_agent.errors import ResolutionFailed, StatusFetchError, UnsupportedMethod
from vc_agent.keys.manager import KeyManager
from vc_agent.resolver import EthrDIDResolver, KeyDIDResolver, MethodResolver, RetryPolicy
from vc_agent.status.checker import StatusChecker, StatusMethod, StatusResult
from vc_agent.store.database import Database
from vc_agent.store.did_store import DIDStore

from conftest import SEPOLIA_RPC_URL

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
SUBJECT = {"id": "did:web:example.com", "you": "Rock"}
STATUS = CredentialStatusEntry(type="TestStatus", id="urn:status:1")


class _FixedStatus(StatusMethod):
    def __init__(self, revoked: bool | None) -> None:
        self.revoked = revoked
        self.calls = 0

    def check(self, entry: CredentialStatusEntry) -> StatusResult:
        self.calls += 1
        if self.revoked is None:
            raise StatusFetchError("status endpoint unreachable")
        return StatusResult(revoked=self.revoked)


@pytest.fixture()
def did_manager(database: Database, key_manager: KeyManager) -> DIDManager:
    manager = DIDManager(DIDStore(database), key_manager, default_providers(), "did:ethr:sepolia")
    manager.create(alias="default")
    manager.create(alias="keyed", provider="did:key")
    return manager


@pytest.fixture()
def issuer(did_manager: DIDManager, key_manager: KeyManager) -> CredentialIssuer:
    return CredentialIssuer(did_manager, key_manager, default_proof_formats(), clock=lambda: NOW)


@pytest.fixture()
def resolver(sepolia_rpc: respx.Route) -> Iterator[MethodResolver]:
    composite = MethodResolver()
    composite.register("key", KeyDIDResolver())
    composite.register(
        "ethr",
        EthrDIDResolver({"sepolia": SEPOLIA_RPC_URL}, retry=RetryPolicy(attempts=1)),
    )
    yield composite
    composite.close()


def _verifier(resolver: MethodResolver, status: StatusMethod | None = None) -> CredentialVerifier:
    checker = StatusChecker()
    if status is not None:
        checker.register(STATUS.type, status)
    return CredentialVerifier(resolver, default_proof_formats(), checker, clock=lambda: NOW)


class TestVerificationResult:
    def test_verified_needs_known_not_revoked(self) -> None:
        assert VerificationResult(True, False, False).verified
        assert not VerificationResult(True, None, False).verified
        assert not VerificationResult(True, True, False).verified
        assert not VerificationResult(True, False, True).verified
        assert not VerificationResult(False, False, False).verified

    def test_to_dict(self) -> None:
        assert VerificationResult(True, None, False, status_error="down").to_dict() == {
            "verified": False,
            "signature_valid": True,
            "revoked": None,
            "expired": False,
            "error": None,
            "status_error": "down",
        }


class TestSignature:
    @pytest.mark.parametrize(
        ("alias", "proof_format"),
        [
            ("default", "EthereumEip712Signature2021"),
            ("default", "JsonWebSignature2020"),
            ("keyed", "JsonWebSignature2020"),
        ],
    )
    def test_issued_credential_verifies(
        self, issuer: CredentialIssuer, resolver: MethodResolver, alias: str, proof_format: str
    ) -> None:
        credential = issuer.issue(SUBJECT, alias, proof_format)
        result = _verifier(resolver).verify(credential)
        assert result.signature_valid
        assert result.revoked is False
        assert result.verified

    def test_survives_json_round_trip(self, issuer: CredentialIssuer, resolver: MethodResolver) -> None:
        credential = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021")
        parsed = VerifiableCredential.from_json(credential.to_json())
        assert _verifier(resolver).verify(parsed).verified

    @pytest.mark.parametrize("proof_format", ["EthereumEip712Signature2021", "JsonWebSignature2020"])
    def test_changed_claim_is_detected(
        self, issuer: CredentialIssuer, resolver: MethodResolver, proof_format: str
    ) -> None:
        credential = issuer.issue(SUBJECT, "default", proof_format)
        data = credential.to_dict()
        data["credentialSubject"]["you"] = "Scissors"
        result = _verifier(resolver).verify(VerifiableCredential.from_dict(data))
        assert not result.signature_valid
        assert not result.verified
        assert result.error

    def test_missing_proof(self, issuer: CredentialIssuer, resolver: MethodResolver) -> None:
        credential = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021")
        result = _verifier(resolver).verify(credential.model_copy(update={"proof": None}))
        assert not result.signature_valid
        assert result.error == "credential has no proof"

    def test_unknown_proof_type(self, issuer: CredentialIssuer, resolver: MethodResolver) -> None:
        data = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021").to_dict()
        data["proof"]["type"] = "Ed25519Signature2018"
        result = _verifier(resolver).verify(VerifiableCredential.from_dict(data))
        assert not result.signature_valid

    def test_foreign_verification_method(
        self, issuer: CredentialIssuer, resolver: MethodResolver, did_manager: DIDManager
    ) -> None:
        data = issuer.issue(SUBJECT, "keyed", "JsonWebSignature2020").to_dict()
        data["issuer"] = {"id": did_manager.find_by_alias("default").did}
        result = _verifier(resolver).verify(VerifiableCredential.from_dict(data))
        assert not result.signature_valid
        assert "not controlled by" in result.error

    def test_unresolvable_issuer_raises(self, issuer: CredentialIssuer) -> None:
        credential = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021")
        with pytest.raises(UnsupportedMethod):
            _verifier(MethodResolver()).verify(credential)

    def test_resolution_failure_propagates(
        self, issuer: CredentialIssuer, mock_http: respx.MockRouter
    ) -> None:
        credential = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021")
        composite = MethodResolver()
        composite.register("ethr", EthrDIDResolver({}))
        with pytest.raises(ResolutionFailed):
            _verifier(composite).verify(credential)
        composite.close()


class TestStatusAndExpiry:
    def test_revoked_credential(self, issuer: CredentialIssuer, resolver: MethodResolver) -> None:
        credential = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021", credential_status=STATUS)
        result = _verifier(resolver, _FixedStatus(True)).verify(credential)
        assert result.signature_valid
        assert result.revoked is True
        assert not result.verified

    def test_status_failure_is_unknown_not_valid(
        self, issuer: CredentialIssuer, resolver: MethodResolver
    ) -> None:
        credential = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021", credential_status=STATUS)
        result = _verifier(resolver, _FixedStatus(None)).verify(credential)
        assert result.signature_valid
        assert result.revoked is None
        assert result.status_error == "status endpoint unreachable"
        assert not result.verified

    def test_unregistered_status_type_is_unknown(
        self, issuer: CredentialIssuer, resolver: MethodResolver
    ) -> None:
        credential = issuer.issue(SUBJECT, "default", "EthereumEip712Signature2021", credential_status=STATUS)
        result = _verifier(resolver).verify(credential)
        assert result.revoked is None
        assert "TestStatus" in result.status_error

    def test_status_checked_even_when_signature_fails(
        self, issuer: CredentialIssuer, resolver: MethodResolver
    ) -> None:
        data = issuer.issue(
            SUBJECT, "default", "EthereumEip712Signature2021", credential_status=STATUS
        ).to_dict()
        data["credentialSubject"]["you"] = "Paper"
        status = _FixedStatus(False)
        result = _verifier(resolver, status).verify(VerifiableCredential.from_dict(data))
        assert not result.signature_valid
        assert status.calls == 1

    def test_expired_credential(self, issuer: CredentialIssuer, resolver: MethodResolver) -> None:
        credential = issuer.issue(
            SUBJECT, "default", "EthereumEip712Signature2021", expiration_date="2024-05-01T11:00:00.000Z"
        )
        result = _verifier(resolver).verify(credential)
        assert result.signature_valid
        assert result.expired
        assert not result.verified
