"""CredentialIssuer: assemble, sign and return verifiable credentials."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from vc_agent.credentials.model import (
    CREDENTIALS_V1_CONTEXT,
    VERIFIABLE_CREDENTIAL,
    CredentialStatusEntry,
    VerifiableCredential,
    utc_timestamp,
)
from vc_agent.credentials.proofs import ProofFormatRegistry, ProofOptions
from vc_agent.did.did_key import ed25519_multibase
from vc_agent.did.ethr import chain_id_for
from vc_agent.did.identifier import Identifier
from vc_agent.did.manager import DIDManager
from vc_agent.keys.key import Key
from vc_agent.keys.manager import KeyManager
from vc_agent.kms.local import SigningAlgorithm

logger = logging.getLogger(__name__)


def verification_method_id(identifier: Identifier, key: Key) -> str:
    """Return the DID URL under which *key* is published for *identifier*.

    ``did:ethr`` documents expose the owner as ``#controller``; ``did:key``
    documents name the key by its multibase form; anything else uses the
    key id as fragment.
    """
    if identifier.method == "ethr":
        return f"{identifier.did}#controller"
    if identifier.method == "key":
        return f"{identifier.did}#{ed25519_multibase(key.public_key)}"
    return f"{identifier.did}#{key.key_id}"


class CredentialIssuer:
    """Issue credentials signed by a managed identifier.

    Parameters
    ----------
    did_manager:
        Resolves the issuer alias to a managed identifier.
    key_manager:
        Signs with the identifier's controller key.
    formats:
        Available proof formats.
    clock:
        Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        did_manager: DIDManager,
        key_manager: KeyManager,
        formats: ProofFormatRegistry,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._dids = did_manager
        self._keys = key_manager
        self._formats = formats
        self._clock = clock

    def issue(
        self,
        credential_subject: dict[str, Any],
        issuer_alias: str,
        proof_format: str,
        credential_status: CredentialStatusEntry | None = None,
        types: list[str] | None = None,
        expiration_date: str | datetime | None = None,
        context: list[str] | None = None,
    ) -> VerifiableCredential:
        """Create and sign a credential.

        Parameters
        ----------
        credential_subject:
            Claims about the subject; ``id`` names the subject.
        issuer_alias:
            Alias of the managed identifier that signs.
        proof_format:
            Name of a registered proof format.
        credential_status:
            Optional revocation status pointer.
        types:
            Extra credential types; ``VerifiableCredential`` is always first.
        expiration_date:
            Optional expiry, as a datetime or an ISO-8601 string.
        context:
            Extra JSON-LD contexts appended after the VC v1 context.

        Returns
        -------
        VerifiableCredential
            A new credential carrying the proof.

        Raises
        ------
        IdentifierNotFound
            If no identifier has *issuer_alias*.
        UnsupportedFormat
            If the format is unknown, does not fit the issuer's key type, or
            cannot express the body.
        """
        proof_type = self._formats.get(proof_format)
        identifier = self._dids.find_by_alias(issuer_alias)
        key = self._keys.get(identifier.controller_key_id)
        proof_type.algorithm_for(key.type)

        if isinstance(expiration_date, datetime):
            expiration_date = utc_timestamp(expiration_date)
        now = utc_timestamp(self._clock() if self._clock else None)

        credential = VerifiableCredential(
            context=[CREDENTIALS_V1_CONTEXT, *(c for c in context or [] if c != CREDENTIALS_V1_CONTEXT)],
            type=[VERIFIABLE_CREDENTIAL, *(t for t in types or [] if t != VERIFIABLE_CREDENTIAL)],
            issuer={"id": identifier.did},
            issuance_date=now,
            expiration_date=expiration_date,
            credential_subject=dict(credential_subject),
            credential_status=credential_status,
        )

        options = ProofOptions(
            verification_method=verification_method_id(identifier, key),
            created=now,
            chain_id=chain_id_for(identifier.did),
        )

        def signer(payload: bytes, algorithm: SigningAlgorithm) -> bytes:
            return self._keys.sign(key.key_id, payload, algorithm)

        proof = proof_type.create_proof(credential.body(), options, key.type, signer)
        logger.info(
            "Issued %s credential from %s (subject=%s)",
            proof_type.name,
            identifier.did,
            credential_subject.get("id"),
        )
        return credential.with_proof(proof)


__all__ = ["CredentialIssuer", "verification_method_id"]
