"""Tests for vc_agent.credentials.canonical."""
from __future__ import annotations

import pytest
from eth_account.messages import encode_typed_data

from vc_agent.credentials.canonical import (
    DOMAIN_TYPE,
    PRIMARY_TYPE,
    canonical_json,
    eip712_domain,
    typed_data,
)
from vc_agent.errors import UnsupportedFormat


def _body() -> dict[str, object]:
    return {
        "@context": ["https://www.w3.org/2018/credentials/v1"],
        "type": ["VerifiableCredential"],
        "issuer": {"id": "did:ethr:sepolia:0x" + "ab" * 20},
        "issuanceDate": "2024-05-01T12:00:00.000Z",
        "credentialSubject": {"id": "did:web:example.com", "you": "Rock"},
    }


class TestCanonicalJson:
    def test_key_order_does_not_matter(self) -> None:
        assert canonical_json({"b": 1, "a": {"d": 2, "c": 3}}) == canonical_json(
            {"a": {"c": 3, "d": 2}, "b": 1}
        )

    def test_compact_form(self) -> None:
        assert canonical_json({"b": [1, 2], "a": "x"}) == b'{"a":"x","b":[1,2]}'

    def test_non_ascii_stays_utf8(self) -> None:
        assert canonical_json({"name": "Zoë"}) == '{"name":"Zoë"}'.encode("utf-8")


class TestTypedData:
    def test_document_shape(self) -> None:
        document = typed_data(_body(), eip712_domain(11155111))
        assert document["primaryType"] == PRIMARY_TYPE
        assert document["domain"] == {
            "name": "VerifiableCredential",
            "version": "1",
            "chainId": 11155111,
        }
        assert document["types"]["EIP712Domain"] == DOMAIN_TYPE

    def test_fields_sorted_and_at_sign_dropped(self) -> None:
        types = typed_data(_body(), eip712_domain(1))["types"]
        assert types["VerifiableCredential"] == [
            {"name": "context", "type": "string[]"},
            {"name": "credentialSubject", "type": "CredentialSubject"},
            {"name": "issuanceDate", "type": "string"},
            {"name": "issuer", "type": "Issuer"},
            {"name": "type", "type": "string[]"},
        ]
        assert types["CredentialSubject"] == [
            {"name": "id", "type": "string"},
            {"name": "you", "type": "string"},
        ]

    def test_message_uses_field_names(self) -> None:
        message = typed_data(_body(), eip712_domain(1))["message"]
        assert "context" in message
        assert "@context" not in message

    def test_scalar_types(self) -> None:
        body = {"flag": True, "count": -3, "tags": [], "levels": [1, 2]}
        types = typed_data(body, eip712_domain(1))["types"]["VerifiableCredential"]
        assert {f["name"]: f["type"] for f in types} == {
            "count": "int256",
            "flag": "bool",
            "levels": "int256[]",
            "tags": "string[]",
        }

    def test_list_of_objects(self) -> None:
        body = {"degrees": [{"name": "BSc"}, {"name": "MSc"}]}
        document = typed_data(body, eip712_domain(1))
        assert document["types"]["VerifiableCredential"] == [
            {"name": "degrees", "type": "Degrees[]"}
        ]
        assert document["types"]["Degrees"] == [{"name": "name", "type": "string"}]

    def test_is_accepted_by_eth_account(self) -> None:
        encode_typed_data(full_message=typed_data(_body(), eip712_domain(1)))

    def test_deterministic(self) -> None:
        assert typed_data(_body(), eip712_domain(1)) == typed_data(_body(), eip712_domain(1))

    @pytest.mark.parametrize(
        "body",
        [
            {"value": None},
            {"value": 1.5},
            {"value": [1, "a"]},
            {"value": {}},
            {"bad-name": "x"},
            {"value": 2**300},
            {"items": [{"a": "x"}, {"b": "y"}]},
        ],
    )
    def test_inexpressible_bodies(self, body: dict[str, object]) -> None:
        with pytest.raises(UnsupportedFormat):
            typed_data(body, eip712_domain(1))

    def test_colliding_field_names(self) -> None:
        with pytest.raises(UnsupportedFormat, match="collide"):
            typed_data({"@id": "a", "id": "b"}, eip712_domain(1))
