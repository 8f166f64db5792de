"""Proof formats: how a credential body is turned into signed bytes and back.

A :class:`ProofFormat` never holds keys. Signing goes through a *signer*
callable (in practice :meth:`KeyManager.sign` bound to one key id), and
verification works from the issuer's resolved DID document alone.

Formats
-------
``EthereumEip712Signature2021``
    The body plus the proof options is encoded as EIP-712 typed data
    (types derived from the body) and signed with ``eth_signTypedData``.
    Verification recovers the signer's address and compares it with the
    verification method's account.
``JsonWebSignature2020``
    A detached JWS (RFC 7797, ``b64: false``) whose payload is the SHA-256
    digest of the canonical JSON of the body plus proof options. Signed
    with ``ES256K-R`` (secp256k1) or ``EdDSA`` (Ed25519).
"""
from __future__ import annotations

import base64
import hashlib
import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from vc_agent.credentials.canonical import canonical_json, eip712_domain, typed_data
from vc_agent.credentials.model import Proof
from vc_agent.did.did_key import ed25519_from_multibase
from vc_agent.did.document import DIDDocument, VerificationMethod
from vc_agent.errors import UnsupportedFormat
from vc_agent.keys.key import KeyType
from vc_agent.kms.local import (
    SigningAlgorithm,
    compress_secp256k1,
    recover_es256k,
    recover_typed_data_signer,
    secp256k1_address,
    verify_ed25519,
)

logger = logging.getLogger(__name__)

Signer = Callable[[bytes, SigningAlgorithm], bytes]


@dataclass(frozen=True)
class ProofOptions:
    """Everything about a proof that is fixed before signing.

    Parameters
    ----------
    verification_method:
        DID URL of the signing key.
    created:
        ISO-8601 timestamp recorded in the proof.
    chain_id:
        EIP-155 chain id used in the EIP-712 domain.
    proof_purpose:
        Verification relationship the key is used under.
    """

    verification_method: str
    created: str
    chain_id: int = 1
    proof_purpose: str = "assertionMethod"

    def to_dict(self, proof_type: str) -> dict[str, str]:
        return {
            "type": proof_type,
            "created": self.created,
            "proofPurpose": self.proof_purpose,
            "verificationMethod": self.verification_method,
        }


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _assertion_method(document: DIDDocument, method_id: str) -> VerificationMethod | None:
    """Return *method_id* only if the document authorizes it for assertions."""
    vm = document.get_verification_method(method_id)
    if vm is None or vm not in document.assertion_methods():
        return None
    return vm


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class ProofFormat(ABC):
    """A way of attaching a signature to a credential body."""

    name: str

    @abstractmethod
    def algorithm_for(self, key_type: KeyType) -> SigningAlgorithm:
        """Return the signing algorithm this format uses for *key_type*.

        Raises
        ------
        UnsupportedFormat
            If the format cannot be produced with that key type.
        """

    @abstractmethod
    def create_proof(
        self,
        body: dict[str, Any],
        options: ProofOptions,
        key_type: KeyType,
        signer: Signer,
    ) -> Proof:
        """Sign *body* and return the proof to attach."""

    @abstractmethod
    def verify_proof(self, body: dict[str, Any], proof: Proof, document: DIDDocument) -> bool:
        """Return ``True`` if *proof* is a valid signature of *body* by *document*.

        Malformed proofs return ``False``; they never raise.
        """


# ---------------------------------------------------------------------------
# EthereumEip712Signature2021
# ---------------------------------------------------------------------------


class Eip712ProofFormat(ProofFormat):
    """``EthereumEip712Signature2021`` over derived EIP-712 types.

    EIP-712 has no float or null type, so a body holding a float, a
    ``null``, an empty object or a mixed-type list cannot be signed in this
    format and raises :class:`~vc_agent.errors.UnsupportedFormat` at issue
    time. ``JsonWebSignature2020`` signs any JSON body.
    """

    name = "EthereumEip712Signature2021"

    def algorithm_for(self, key_type: KeyType) -> SigningAlgorithm:
        if key_type is not KeyType.SECP256K1:
            raise UnsupportedFormat(f"{self.name} requires a Secp256k1 key, not {key_type.value}.")
        return SigningAlgorithm.ETH_SIGN_TYPED_DATA

    def create_proof(
        self,
        body: dict[str, Any],
        options: ProofOptions,
        key_type: KeyType,
        signer: Signer,
    ) -> Proof:
        algorithm = self.algorithm_for(key_type)
        message = {**body, "proof": options.to_dict(self.name)}
        document = typed_data(message, eip712_domain(options.chain_id))
        signature = signer(json.dumps(document).encode("utf-8"), algorithm)
        return Proof(
            type=self.name,
            created=options.created,
            proof_purpose=options.proof_purpose,
            verification_method=options.verification_method,
            proof_value="0x" + signature.hex(),
            eip712={
                "domain": document["domain"],
                "types": document["types"],
                "primaryType": document["primaryType"],
            },
        )

    def verify_proof(self, body: dict[str, Any], proof: Proof, document: DIDDocument) -> bool:
        if proof.type != self.name or not proof.proof_value or not proof.eip712:
            return False
        domain = proof.eip712.get("domain")
        if not isinstance(domain, dict):
            return False
        try:
            signature = bytes.fromhex(proof.proof_value.removeprefix("0x"))
            message = typed_data({**body, "proof": proof.options()}, domain)
        except (ValueError, UnsupportedFormat):
            return False

        vm = _assertion_method(document, proof.verification_method)
        if vm is None:
            return False
        expected = _ethereum_address(vm)
        recovered = recover_typed_data_signer(message, signature)
        return bool(expected and recovered and recovered.lower() == expected.lower())


def _ethereum_address(vm: VerificationMethod) -> str | None:
    if vm.ethereum_address:
        return vm.ethereum_address
    if vm.public_key_hex:
        try:
            return secp256k1_address(bytes.fromhex(vm.public_key_hex.removeprefix("0x")))
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# JsonWebSignature2020
# ---------------------------------------------------------------------------


class JsonWebSignatureProofFormat(ProofFormat):
    """``JsonWebSignature2020`` with a detached, unencoded-payload JWS."""

    name = "JsonWebSignature2020"

    _ALGORITHMS = {
        KeyType.SECP256K1: SigningAlgorithm.ES256K_R,
        KeyType.ED25519: SigningAlgorithm.EDDSA,
    }

    def algorithm_for(self, key_type: KeyType) -> SigningAlgorithm:
        try:
            return self._ALGORITHMS[key_type]
        except KeyError:
            raise UnsupportedFormat(f"{self.name} cannot sign with {key_type!r} keys.") from None

    @staticmethod
    def signing_input(header_b64: str, body: dict[str, Any], options: dict[str, str]) -> bytes:
        digest = hashlib.sha256(canonical_json({**body, "proof": options})).digest()
        return header_b64.encode("ascii") + b"." + digest

    def create_proof(
        self,
        body: dict[str, Any],
        options: ProofOptions,
        key_type: KeyType,
        signer: Signer,
    ) -> Proof:
        algorithm = self.algorithm_for(key_type)
        header = {"alg": algorithm.value, "b64": False, "crit": ["b64"]}
        header_b64 = _b64url(canonical_json(header))
        signature = signer(
            self.signing_input(header_b64, body, options.to_dict(self.name)), algorithm
        )
        return Proof(
            type=self.name,
            created=options.created,
            proof_purpose=options.proof_purpose,
            verification_method=options.verification_method,
            jws=f"{header_b64}..{_b64url(signature)}",
        )

    def verify_proof(self, body: dict[str, Any], proof: Proof, document: DIDDocument) -> bool:
        if proof.type != self.name or not proof.jws:
            return False
        parts = proof.jws.split(".")
        if len(parts) != 3 or parts[1]:
            return False
        header_b64, _, signature_b64 = parts
        try:
            header = json.loads(_b64url_decode(header_b64))
            signature = _b64url_decode(signature_b64)
        except (ValueError, UnicodeDecodeError):
            return False
        if not isinstance(header, dict) or header.get("b64") is not False:
            return False

        vm = _assertion_method(document, proof.verification_method)
        if vm is None:
            return False
        data = self.signing_input(header_b64, body, proof.options())

        alg = header.get("alg")
        if alg == SigningAlgorithm.EDDSA.value:
            public_key = _ed25519_key(vm)
            return public_key is not None and verify_ed25519(public_key, signature, data)
        if alg == SigningAlgorithm.ES256K_R.value:
            recovered = recover_es256k(signature, data)
            return recovered is not None and _matches_secp256k1(vm, recovered)
        logger.debug("Unsupported JWS alg %r in proof by %s", alg, proof.verification_method)
        return False


def _ed25519_key(vm: VerificationMethod) -> bytes | None:
    try:
        if vm.public_key_multibase:
            return ed25519_from_multibase(vm.public_key_multibase)
        if vm.public_key_hex:
            return bytes.fromhex(vm.public_key_hex.removeprefix("0x"))
        if vm.public_key_jwk and vm.public_key_jwk.get("crv") == "Ed25519":
            return _b64url_decode(str(vm.public_key_jwk.get("x", "")))
    except ValueError:
        return None
    return None


def _matches_secp256k1(vm: VerificationMethod, recovered: bytes) -> bool:
    if vm.public_key_hex:
        try:
            expected = compress_secp256k1(bytes.fromhex(vm.public_key_hex.removeprefix("0x")))
        except ValueError:
            return False
        return expected == recovered
    if vm.ethereum_address:
        return secp256k1_address(recovered).lower() == vm.ethereum_address.lower()
    return False


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ProofFormatRegistry:
    """Proof formats by name; new formats plug in without touching callers."""

    def __init__(self, formats: list[ProofFormat] | None = None) -> None:
        self._formats: dict[str, ProofFormat] = {}
        self._lock = threading.Lock()
        for proof_format in formats or []:
            self.register(proof_format)

    def register(self, proof_format: ProofFormat) -> None:
        """Add *proof_format*.

        Raises
        ------
        ValueError
            If a format with the same name is already registered.
        """
        with self._lock:
            if proof_format.name in self._formats:
                raise ValueError(f"Proof format {proof_format.name!r} is already registered.")
            self._formats[proof_format.name] = proof_format

    def get(self, name: str) -> ProofFormat:
        """Return the format called *name* (raises ``UnsupportedFormat``)."""
        with self._lock:
            proof_format = self._formats.get(name)
        if proof_format is None:
            raise UnsupportedFormat(f"Unknown proof format {name!r}.")
        return proof_format

    @property
    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._formats)


def default_proof_formats() -> ProofFormatRegistry:
    return ProofFormatRegistry([Eip712ProofFormat(), JsonWebSignatureProofFormat()])


__all__ = [
    "Eip712ProofFormat",
    "JsonWebSignatureProofFormat",
    "ProofFormat",
    "ProofFormatRegistry",
    "ProofOptions",
    "Signer",
    "default_proof_formats",
]
