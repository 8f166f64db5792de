"""Tests for the did:key and base58btc codec in vc_agent.did.did_key."""
from __future__ import annotations

import pytest

from vc_agent.did.did_key import (
    base58btc_decode,
    base58btc_encode,
    did_key_to_public_key,
    ed25519_from_multibase,
    ed25519_multibase,
    public_key_to_did_key,
)


# ---------------------------------------------------------------------------
# base58btc
# ---------------------------------------------------------------------------


class TestBase58btc:
    def test_known_vector(self) -> None:
        assert base58btc_encode(b"hello world") == "StV1DL6CwTryKyV"
        assert base58btc_decode("StV1DL6CwTryKyV") == b"hello world"

    def test_leading_zero_bytes_become_ones(self) -> None:
        assert base58btc_encode(b"\x00\x00\x01") == "112"
        assert base58btc_decode("112") == b"\x00\x00\x01"

    def test_empty_input(self) -> None:
        assert base58btc_encode(b"") == ""
        assert base58btc_decode("") == b""

    def test_invalid_character(self) -> None:
        # 0, O, I and l are excluded from the alphabet
        with pytest.raises(ValueError, match="Invalid base58btc"):
            base58btc_decode("abc0")


# ---------------------------------------------------------------------------
# did:key
# ---------------------------------------------------------------------------


class TestDidKey:
    def test_ed25519_did_key_prefix(self) -> None:
        # 0xed01 multicodec always encodes to "z6Mk"
        assert public_key_to_did_key(b"\x01" * 32).startswith("did:key:z6Mk")

    def test_public_key_survives_encoding(self) -> None:
        public_key = bytes(range(32))
        assert did_key_to_public_key(public_key_to_did_key(public_key)) == public_key

    def test_fragment_is_ignored(self) -> None:
        public_key = bytes(range(32))
        did = public_key_to_did_key(public_key)
        assert did_key_to_public_key(f"{did}#{did[8:]}") == public_key

    def test_multibase_matches_did_suffix(self) -> None:
        public_key = b"\x42" * 32
        assert public_key_to_did_key(public_key) == "did:key:" + ed25519_multibase(public_key)

    @pytest.mark.parametrize("did", ["did:key:", "did:key:z", "did:web:example.com", "did:key:abc"])
    def test_malformed_did_key(self, did: str) -> None:
        with pytest.raises(ValueError):
            did_key_to_public_key(did)

    def test_non_ed25519_multicodec(self) -> None:
        # secp256k1-pub multicodec is 0xe701
        value = "z" + base58btc_encode(b"\xe7\x01" + b"\x02" * 33)
        with pytest.raises(ValueError, match="multicodec"):
            ed25519_from_multibase(value)

    def test_wrong_key_length(self) -> None:
        value = "z" + base58btc_encode(b"\xed\x01" + b"\x01" * 31)
        with pytest.raises(ValueError, match="32 bytes"):
            ed25519_from_multibase(value)
