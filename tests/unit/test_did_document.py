"""Tests for vc_agent.did.document."""
from __future__ import annotations

import pytest

from vc_agent.did.document import DIDDocument, ServiceEndpoint, VerificationMethod, parse_did

DID = "did:web:example.com"


def _document_dict() -> dict[str, object]:
    return {
        "@context": "https://www.w3.org/ns/did/v1",
        "id": DID,
        "verificationMethod": [
            {
                "id": "#key-1",
                "type": "Ed25519VerificationKey2020",
                "controller": DID,
                "publicKeyMultibase": "z6MkExample",
            }
        ],
        "authentication": ["#key-1"],
        "assertionMethod": [
            "#key-1",
            {
                "id": f"{DID}#eth",
                "type": "EcdsaSecp256k1RecoveryMethod2020",
                "controller": DID,
                "blockchainAccountId": "eip155:1:0x" + "ab" * 20,
            },
        ],
        "service": [
            {"id": "#home", "type": "LinkedDomains", "serviceEndpoint": "https://example.com"}
        ],
    }


class TestParseDid:
    def test_method_and_identifier(self) -> None:
        assert parse_did("did:ethr:sepolia:0xabc") == ("ethr", "sepolia:0xabc")

    def test_fragment_is_stripped(self) -> None:
        assert parse_did("did:key:z6Mk#z6Mk") == ("key", "z6Mk")

    @pytest.mark.parametrize("value", ["", "did:", "did:ethr", "urn:uuid:123", "did:ETHR:x"])
    def test_malformed(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_did(value)


class TestFromDict:
    def test_relative_ids_are_made_absolute(self) -> None:
        document = DIDDocument.from_dict(_document_dict())
        assert document.verification_method[0].id == f"{DID}#key-1"
        assert document.authentication == [f"{DID}#key-1"]
        assert document.service[0].id == f"{DID}#home"

    def test_embedded_methods_are_lifted(self) -> None:
        document = DIDDocument.from_dict(_document_dict())
        assert [vm.id for vm in document.verification_method] == [f"{DID}#key-1", f"{DID}#eth"]
        assert document.assertion_method == [f"{DID}#key-1", f"{DID}#eth"]

    def test_string_context_becomes_list(self) -> None:
        assert DIDDocument.from_dict(_document_dict()).context == ["https://www.w3.org/ns/did/v1"]

    def test_missing_id(self) -> None:
        with pytest.raises(ValueError):
            DIDDocument.from_dict({"verificationMethod": []})

    def test_not_an_object(self) -> None:
        with pytest.raises(ValueError):
            DIDDocument.from_dict(["did:web:example.com"])  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("member", "value"),
        [
            ("publicKeyMultibase", 42),
            ("publicKeyHex", ["ab"]),
            ("blockchainAccountId", None),
            ("publicKeyJwk", "not-a-jwk"),
        ],
    )
    def test_key_material_of_wrong_type(self, member: str, value: object) -> None:
        data = _document_dict()
        data["verificationMethod"][0][member] = value  # type: ignore[index]
        with pytest.raises(ValueError, match=member):
            DIDDocument.from_dict(data)


class TestLookup:
    def test_get_verification_method_accepts_relative_id(self) -> None:
        document = DIDDocument.from_dict(_document_dict())
        vm = document.get_verification_method("#eth")
        assert vm is not None
        assert vm.ethereum_address == "0x" + "ab" * 20

    def test_unknown_method(self) -> None:
        assert DIDDocument.from_dict(_document_dict()).get_verification_method("#nope") is None

    def test_assertion_methods_fall_back_to_all_methods(self) -> None:
        vm = VerificationMethod(id=f"{DID}#a", type="JsonWebKey2020", controller=DID)
        document = DIDDocument(id=DID, verification_method=[vm])
        assert document.assertion_methods() == [vm]

    def test_assertion_methods_respect_declaration(self) -> None:
        a = VerificationMethod(id=f"{DID}#a", type="JsonWebKey2020", controller=DID)
        b = VerificationMethod(id=f"{DID}#b", type="JsonWebKey2020", controller=DID)
        document = DIDDocument(id=DID, verification_method=[a, b], assertion_method=[f"{DID}#b"])
        assert document.assertion_methods() == [b]


class TestToDict:
    def test_keys_follow_did_core_names(self) -> None:
        data = DIDDocument.from_dict(_document_dict()).to_dict()
        assert data["@context"] == ["https://www.w3.org/ns/did/v1"]
        assert data["verificationMethod"][0]["publicKeyMultibase"] == "z6MkExample"
        assert data["verificationMethod"][1]["blockchainAccountId"].startswith("eip155:1:")
        assert data["service"] == [
            {"id": f"{DID}#home", "type": "LinkedDomains", "serviceEndpoint": "https://example.com"}
        ]

    def test_service_is_omitted_when_empty(self) -> None:
        assert "service" not in DIDDocument(id=DID).to_dict()

    def test_empty_service_endpoint_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            ServiceEndpoint(id=f"{DID}#x", type="LinkedDomains", endpoint="")
