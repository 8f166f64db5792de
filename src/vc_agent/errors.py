"""Error taxonomy shared by every vc-agent component.

All errors derive from :class:`AgentError` so callers (the HTTP layer, the
CLI) can catch the whole family in one place and still map each kind to a
distinct response.

Propagation rules
-----------------
- :class:`StorageError` and :class:`DecryptionFailed` are fatal to the
  enclosing operation and are never retried.
- :class:`ResolutionFailed` is fatal to verification: an issuer identity
  that cannot be resolved is never treated as valid.
- :class:`StatusError` subclasses are reported by the verifier as an
  *unknown* revocation state rather than as "not revoked".
- A signature mismatch is not an exception; it is reported as
  ``signature_valid=False`` on the verification result.
"""
from __future__ import annotations


class AgentError(Exception):
    """Base class for all vc-agent errors."""


class StorageError(AgentError):
    """Raised when the persistent store is unavailable or corrupt."""


class KeyNotFound(AgentError):
    """Raised when a key id is not present in the key store."""

    def __init__(self, key_id: str) -> None:
        super().__init__(f"Key {key_id!r} is not present in the key store.")
        self.key_id = key_id


class DecryptionFailed(AgentError):
    """Raised when private key material cannot be decrypted.

    Either the KMS secret is wrong or missing, or the stored blob has been
    tampered with. No partially decrypted bytes are ever returned.
    """


class UnsupportedKeyType(AgentError):
    """Raised when a key type has no registered generator."""

    def __init__(self, key_type: object) -> None:
        super().__init__(f"Unsupported key type {key_type!r}.")
        self.key_type = key_type


class AliasAlreadyExists(AgentError):
    """Raised when an identifier alias is already bound in the store."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"An identifier with alias {alias!r} already exists.")
        self.alias = alias


class IdentifierNotFound(AgentError):
    """Raised when no identifier matches the requested alias or DID."""


class UnsupportedMethod(AgentError):
    """Raised when a DID method has no registered resolver or provider."""

    def __init__(self, method: str) -> None:
        super().__init__(f"DID method {method!r} is not supported.")
        self.method = method


class ResolutionFailed(AgentError):
    """Raised when a DID document cannot be obtained or is malformed."""

    def __init__(self, did: str, reason: str) -> None:
        super().__init__(f"Failed to resolve {did!r}: {reason}")
        self.did = did
        self.reason = reason


class UnsupportedFormat(AgentError):
    """Raised for unknown proof formats or signing algorithms."""


class StatusError(AgentError):
    """Base class for credential status lookup failures."""


class UnknownStatusType(StatusError):
    """Raised when a credential's status type has no registered method."""

    def __init__(self, status_type: str) -> None:
        super().__init__(f"No status method registered for type {status_type!r}.")
        self.status_type = status_type


class StatusFetchError(StatusError):
    """Raised when a status endpoint cannot be read or answers nonsense."""


class StatusMethodAlreadyRegistered(AgentError):
    """Raised when a status type is registered twice."""

    def __init__(self, status_type: str) -> None:
        super().__init__(
            f"A status method for type {status_type!r} is already registered."
        )
        self.status_type = status_type


__all__ = [
    "AgentError",
    "AliasAlreadyExists",
    "DecryptionFailed",
    "IdentifierNotFound",
    "KeyNotFound",
    "ResolutionFailed",
    "StatusError",
    "StatusFetchError",
    "StatusMethodAlreadyRegistered",
    "StorageError",
    "UnknownStatusType",
    "UnsupportedFormat",
    "UnsupportedKeyType",
    "UnsupportedMethod",
]
