"""Tests for vc_agent.resolver.composite and vc_agent.resolver.key."""
from __future__ import annotations

import logging

import pytest

from vc_agent.did.did_key import public_key_to_did_key
from vc_agent.did.document import DIDDocument
from vc_agent.errors import ResolutionFailed, UnsupportedMethod
from vc_agent.resolver import DIDResolverPlugin, KeyDIDResolver, MethodResolver


class _FixedResolver:
    def __init__(self, label: str) -> None:
        self.label = label
        self.calls: list[str] = []
        self.closed = False

    def resolve(self, did: str) -> DIDDocument:
        self.calls.append(did)
        return DIDDocument(id=did.split("#", 1)[0], controller=self.label)

    def close(self) -> None:
        self.closed = True


class TestMethodResolver:
    def test_dispatches_on_method(self) -> None:
        resolver = MethodResolver()
        web, ethr = _FixedResolver("web"), _FixedResolver("ethr")
        resolver.register("web", web)
        resolver.register("ethr", ethr)
        assert resolver.resolve("did:web:example.com").controller == "web"
        assert web.calls == ["did:web:example.com"]
        assert ethr.calls == []

    def test_unregistered_method(self) -> None:
        resolver = MethodResolver()
        resolver.register("web", _FixedResolver("web"))
        with pytest.raises(UnsupportedMethod) as excinfo:
            resolver.resolve("did:peer:2abc")
        assert excinfo.value.method == "peer"

    def test_malformed_did(self) -> None:
        with pytest.raises(UnsupportedMethod):
            MethodResolver().resolve("not-a-did")

    def test_last_registration_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        resolver = MethodResolver()
        resolver.register("web", _FixedResolver("first"))
        with caplog.at_level(logging.WARNING, logger="vc_agent.resolver.composite"):
            resolver.register("web", _FixedResolver("second"))
        assert resolver.resolve("did:web:example.com").controller == "second"
        assert "Replacing resolver" in caplog.text

    def test_methods_are_sorted(self) -> None:
        resolver = MethodResolver()
        resolver.register("web", _FixedResolver("web"))
        resolver.register("key", KeyDIDResolver())
        assert resolver.methods == ["key", "web"]

    def test_close_reaches_plugins(self) -> None:
        resolver = MethodResolver()
        plugin = _FixedResolver("web")
        resolver.register("web", plugin)
        resolver.register("key", KeyDIDResolver())
        resolver.close()
        assert plugin.closed

    def test_plugins_satisfy_protocol(self) -> None:
        assert isinstance(KeyDIDResolver(), DIDResolverPlugin)
        assert isinstance(_FixedResolver("x"), DIDResolverPlugin)


class TestKeyDIDResolver:
    def test_document_shape(self) -> None:
        did = public_key_to_did_key(b"\x07" * 32)
        document = KeyDIDResolver().resolve(did)
        multibase = did[len("did:key:"):]
        vm_id = f"{did}#{multibase}"
        assert document.id == did
        assert [vm.id for vm in document.verification_method] == [vm_id]
        assert document.verification_method[0].public_key_multibase == multibase
        assert document.verification_method[0].type == "Ed25519VerificationKey2020"
        assert document.authentication == [vm_id]
        assert document.assertion_method == [vm_id]

    def test_fragment_resolves_base_document(self) -> None:
        did = public_key_to_did_key(b"\x07" * 32)
        assert KeyDIDResolver().resolve(f"{did}#whatever").id == did

    def test_garbage_did_key(self) -> None:
        with pytest.raises(ResolutionFailed):
            KeyDIDResolver().resolve("did:key:zNotBase58l0")
