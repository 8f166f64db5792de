"""CredentialVerifier: signature, expiry and revocation in one result.

The three checks are independent. A bad signature does not skip the
status lookup, and a status lookup that fails leaves ``revoked`` as
``None`` (unknown) instead of guessing ``False``.

Failure modes
-------------
- Missing proof, unknown proof format, a verification method that does
  not belong to the issuer, or a signature mismatch: a negative result
  with ``signature_valid=False`` and an ``error`` message.
- Issuer DID cannot be resolved: :class:`~vc_agent.errors.ResolutionFailed`
  (or ``UnsupportedMethod``) propagates. An unresolvable issuer is never
  reported as anything but a failure of the call.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from vc_agent.credentials.model import VerifiableCredential
from vc_agent.credentials.proofs import ProofFormatRegistry
from vc_agent.errors import StatusError, UnsupportedFormat
from vc_agent.resolver.composite import MethodResolver

if TYPE_CHECKING:
    from vc_agent.status.checker import StatusChecker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of :meth:`CredentialVerifier.verify`.

    Parameters
    ----------
    signature_valid:
        Whether the proof is a valid signature by the issuer.
    revoked:
        ``True``/``False`` from the status lookup, ``None`` when the lookup
        failed.
    expired:
        Whether ``expirationDate`` has passed.
    error:
        Why the signature was rejected, if it was.
    status_error:
        Why the status lookup failed, if it did.
    """

    signature_valid: bool
    revoked: bool | None
    expired: bool
    error: str | None = None
    status_error: str | None = None

    @property
    def verified(self) -> bool:
        """``True`` only for a valid, unexpired credential known not to be revoked."""
        return self.signature_valid and self.revoked is False and not self.expired

    def to_dict(self) -> dict[str, object]:
        return {
            "verified": self.verified,
            "signature_valid": self.signature_valid,
            "revoked": self.revoked,
            "expired": self.expired,
            "error": self.error,
            "status_error": self.status_error,
        }


class CredentialVerifier:
    """Verify credentials against their issuers' resolved DID documents.

    Parameters
    ----------
    resolver:
        Resolves the issuer DID.
    formats:
        Proof formats that can be verified.
    status_checker:
        Looks up revocation state.
    clock:
        Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        resolver: MethodResolver,
        formats: ProofFormatRegistry,
        status_checker: StatusChecker,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._resolver = resolver
        self._formats = formats
        self._status = status_checker
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def verify(self, credential: VerifiableCredential) -> VerificationResult:
        """Check *credential* and report every aspect separately.

        Raises
        ------
        ResolutionFailed
            If the issuer DID cannot be resolved.
        UnsupportedMethod
            If the issuer's DID method has no resolver.
        """
        signature_valid, error = self._check_signature(credential)

        revoked: bool | None
        status_error: str | None = None
        try:
            revoked = self._status.check(credential).revoked
        except StatusError as exc:
            revoked = None
            status_error = str(exc)
            logger.warning("Status of credential from %s unknown: %s", credential.issuer_did, exc)

        result = VerificationResult(
            signature_valid=signature_valid,
            revoked=revoked,
            expired=credential.is_expired(self._clock()),
            error=error,
            status_error=status_error,
        )
        logger.info(
            "Verified credential from %s: verified=%s signature_valid=%s revoked=%s",
            credential.issuer_did,
            result.verified,
            result.signature_valid,
            result.revoked,
        )
        return result

    def _check_signature(self, credential: VerifiableCredential) -> tuple[bool, str | None]:
        proof = credential.proof
        if proof is None:
            return False, "credential has no proof"
        try:
            proof_format = self._formats.get(proof.type)
        except UnsupportedFormat as exc:
            return False, str(exc)

        issuer = credential.issuer_did
        if proof.verification_method.split("#", 1)[0] != issuer:
            return False, f"verification method {proof.verification_method} is not controlled by {issuer}"

        document = self._resolver.resolve(issuer)
        if not proof_format.verify_proof(credential.body(), proof, document):
            return False, "signature does not match the issuer's keys"
        return True, None


__all__ = ["CredentialVerifier", "VerificationResult"]
