"""StatusChecker: revocation lookups dispatched by ``credentialStatus.type``.

Lookups are read-only: a status method fetches a status document and
interprets it, and never writes anywhere. A credential without
``credentialStatus`` is reported as not revoked without any network call.

CredentialStatusList2017
------------------------
The status document is fetched with a plain HTTP GET of the entry's
``id``. Two answers are understood::

    {"revoked": true}
    true

Anything else (non-2xx, transport error, non-JSON, another shape) is a
:class:`~vc_agent.errors.StatusFetchError`; it is never read as "not
revoked".
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from vc_agent.credentials.model import CredentialStatusEntry, VerifiableCredential
from vc_agent.errors import StatusFetchError, StatusMethodAlreadyRegistered, UnknownStatusType

logger = logging.getLogger(__name__)

STATUS_LIST_2017: str = "CredentialStatusList2017"


@dataclass(frozen=True)
class StatusResult:
    """Outcome of a status lookup."""

    revoked: bool

    def to_dict(self) -> dict[str, bool]:
        return {"revoked": self.revoked}


class StatusMethod(ABC):
    """Interprets one kind of ``credentialStatus`` entry."""

    @abstractmethod
    def check(self, entry: CredentialStatusEntry) -> StatusResult:
        """Return the revocation state behind *entry*.

        Raises
        ------
        StatusFetchError
            If the status document cannot be read or understood.
        """

    def close(self) -> None:
        """Release network resources, if any."""


class StatusList2017Method(StatusMethod):
    """HTTP lookup of a ``CredentialStatusList2017`` document.

    Parameters
    ----------
    timeout:
        Request timeout in seconds. There is no retry.
    client:
        Optional pre-built ``httpx.Client`` (not closed by this method).
    """

    def __init__(self, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def check(self, entry: CredentialStatusEntry) -> StatusResult:
        try:
            response = self._client.get(entry.id, headers={"Accept": "application/json"})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise StatusFetchError(
                f"HTTP {exc.response.status_code} from status endpoint {entry.id}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StatusFetchError(f"Network error fetching status {entry.id}: {exc}") from exc
        except ValueError as exc:
            raise StatusFetchError(f"Status endpoint {entry.id} returned invalid JSON") from exc

        if isinstance(data, bool):
            revoked = data
        elif isinstance(data, dict) and isinstance(data.get("revoked"), bool):
            revoked = data["revoked"]
        else:
            raise StatusFetchError(
                f"Status endpoint {entry.id} returned an unrecognized document"
            )
        logger.debug("Status %s: revoked=%s", entry.id, revoked)
        return StatusResult(revoked=revoked)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class StatusChecker:
    """Registry of status methods keyed by ``credentialStatus.type``.

    Example
    -------
    ::

        checker = StatusChecker()
        checker.register(STATUS_LIST_2017, StatusList2017Method())
        result = checker.check(credential)
    """

    def __init__(self) -> None:
        self._methods: dict[str, StatusMethod] = {}
        self._lock = threading.Lock()

    def register(self, status_type: str, method: StatusMethod) -> None:
        """Register *method* for *status_type*.

        Raises
        ------
        StatusMethodAlreadyRegistered
            If *status_type* already has a method.
        """
        with self._lock:
            if status_type in self._methods:
                raise StatusMethodAlreadyRegistered(status_type)
            self._methods[status_type] = method

    @property
    def types(self) -> list[str]:
        with self._lock:
            return sorted(self._methods)

    def check(self, credential: VerifiableCredential) -> StatusResult:
        """Return the revocation state of *credential*.

        Raises
        ------
        UnknownStatusType
            If the status type has no registered method.
        StatusFetchError
            Propagated from the status method.
        """
        entry = credential.credential_status
        if entry is None:
            return StatusResult(revoked=False)
        with self._lock:
            method = self._methods.get(entry.type)
        if method is None:
            raise UnknownStatusType(entry.type)
        return method.check(entry)

    def close(self) -> None:
        with self._lock:
            methods = list(self._methods.values())
        for method in methods:
            method.close()


def default_status_checker(timeout: float = 10.0) -> StatusChecker:
    checker = StatusChecker()
    checker.register(STATUS_LIST_2017, StatusList2017Method(timeout=timeout))
    return checker


__all__ = [
    "STATUS_LIST_2017",
    "StatusChecker",
    "StatusList2017Method",
    "StatusMethod",
    "StatusResult",
    "default_status_checker",
]
