"""Offline resolver for ``did:key`` (Ed25519)."""
from __future__ import annotations

from vc_agent.did.did_key import did_key_to_public_key, ed25519_multibase
from vc_agent.did.document import DID_CONTEXT, DIDDocument, VerificationMethod
from vc_agent.errors import ResolutionFailed

ED25519_2020_CONTEXT = "https://w3id.org/security/suites/ed25519-2020/v1"


class KeyDIDResolver:
    """Expand a ``did:key`` into its single-key DID document.

    The verification method id is ``<did>#<multibase key>``, and the key
    is listed under both ``authentication`` and ``assertionMethod``.
    """

    def resolve(self, did: str) -> DIDDocument:
        base = did.split("#", 1)[0]
        try:
            public_key = did_key_to_public_key(base)
        except ValueError as exc:
            raise ResolutionFailed(did, str(exc)) from exc

        multibase = ed25519_multibase(public_key)
        method = VerificationMethod(
            id=f"{base}#{multibase}",
            type="Ed25519VerificationKey2020",
            controller=base,
            public_key_multibase=multibase,
        )
        return DIDDocument(
            context=[DID_CONTEXT, ED25519_2020_CONTEXT],
            id=base,
            verification_method=[method],
            authentication=[method.id],
            assertion_method=[method.id],
        )


__all__ = ["KeyDIDResolver"]
