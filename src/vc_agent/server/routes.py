"""Route handler functions for the vc-agent HTTP server.

Each function accepts parsed request data and returns a tuple of
(status_code, response_dict). The HTTP handler in app.py calls these
functions and serializes the results to JSON.

The handlers share one :class:`~vc_agent.agent.Agent`, installed with
:func:`configure` at startup and released with :func:`reset_state`.
"""
from __future__ import annotations

import logging

from pydantic import ValidationError

from vc_agent.agent import DEFAULT_PROOF_FORMAT, Agent
from vc_agent.credentials.model import CredentialStatusEntry, VerifiableCredential
from vc_agent.errors import (
    AgentError,
    AliasAlreadyExists,
    DecryptionFailed,
    IdentifierNotFound,
    KeyNotFound,
    ResolutionFailed,
    StatusFetchError,
    StorageError,
    UnknownStatusType,
    UnsupportedFormat,
    UnsupportedKeyType,
    UnsupportedMethod,
)
from vc_agent.server.models import (
    CreateIdentifierRequest,
    CredentialRequest,
    ErrorResponse,
    HealthResponse,
    IdentifierResponse,
    IssueCredentialRequest,
    StatusResponse,
    VerificationResponse,
)
from vc_agent.status.checker import STATUS_LIST_2017

logger = logging.getLogger(__name__)

SAMPLE_SUBJECT: dict[str, str] = {"id": "did:web:example.com", "you": "Rock"}

# Most specific first; the first isinstance match wins.
_ERROR_STATUS: list[tuple[type[AgentError], int, str]] = [
    (AliasAlreadyExists, 409, "alias_exists"),
    (IdentifierNotFound, 404, "identifier_not_found"),
    (KeyNotFound, 404, "key_not_found"),
    (UnsupportedMethod, 422, "unsupported_method"),
    (UnsupportedFormat, 422, "unsupported_format"),
    (UnsupportedKeyType, 422, "unsupported_key_type"),
    (UnknownStatusType, 422, "unknown_status_type"),
    (ResolutionFailed, 502, "resolution_failed"),
    (StatusFetchError, 502, "status_fetch_failed"),
    (DecryptionFailed, 500, "decryption_failed"),
    (StorageError, 503, "storage_unavailable"),
]

# Module-level shared state
_agent: Agent | None = None
_status_endpoint_url: str = "http://localhost:4000/credentialStatus"


def configure(agent: Agent, status_endpoint_url: str | None = None) -> None:
    """Install the agent the handlers operate on."""
    global _agent, _status_endpoint_url
    _agent = agent
    if status_endpoint_url is not None:
        _status_endpoint_url = status_endpoint_url


def reset_state() -> None:
    """Close and forget the configured agent; used in tests and on shutdown."""
    global _agent
    if _agent is not None:
        _agent.close()
    _agent = None


def _require_agent() -> Agent:
    if _agent is None:
        raise StorageError("The agent has not been configured.")
    return _agent


def error_response(exc: AgentError) -> tuple[int, dict[str, object]]:
    """Map an agent error to its HTTP status and error body."""
    for error_type, status, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            break
    else:
        status, code = 500, "agent_error"
    if status >= 500:
        logger.error("Request failed with %s: %s", code, exc)
    return status, ErrorResponse(error=code, detail=str(exc)).model_dump()


def _validation_error(exc: Exception) -> tuple[int, dict[str, object]]:
    return 422, ErrorResponse(error="validation_error", detail=str(exc)).model_dump()


def _parse_credential(body: dict[str, object]) -> VerifiableCredential:
    request = CredentialRequest.model_validate(body)
    return VerifiableCredential.from_dict(request.credential)


# ------------------------------------------------------------------
# Sample flow
# ------------------------------------------------------------------


def handle_index() -> tuple[int, dict[str, object]]:
    """Handle GET /.

    Ensures the default identifier exists, issues a sample EIP-712
    credential pointing at this server's status endpoint, checks its status
    and verifies it, then returns the first managed identifier.
    """
    try:
        agent = _require_agent()
        identifier = agent.ensure_default_identifier()
        credential = agent.issue_credential(
            dict(SAMPLE_SUBJECT),
            issuer_alias=identifier.alias or "default",
            proof_format=DEFAULT_PROOF_FORMAT,
            credential_status=CredentialStatusEntry(type=STATUS_LIST_2017, id=_status_endpoint_url),
        )
        logger.info("Sample credential: %s", credential.to_json(indent=None))
        status = agent.check_status(credential)
        logger.info("Sample credential status: revoked=%s", status.revoked)
        result = agent.verify_credential(credential)
        logger.info("Credential verified %s", result.verified)
        first = agent.find_identifiers()[0]
    except AgentError as exc:
        return error_response(exc)
    return 200, IdentifierResponse.from_identifier(first).model_dump()


def handle_credential_status() -> tuple[int, dict[str, object]]:
    """Handle GET /credentialStatus.

    The status document the sample credential points at. Nothing is ever
    revoked here; publishing revocations is out of scope for this agent.
    """
    return 200, StatusResponse(revoked=False).model_dump()


# ------------------------------------------------------------------
# Identifiers
# ------------------------------------------------------------------


def handle_list_identifiers() -> tuple[int, dict[str, object]]:
    """Handle GET /identifiers."""
    try:
        identifiers = _require_agent().find_identifiers()
    except AgentError as exc:
        return error_response(exc)
    return 200, {
        "identifiers": [IdentifierResponse.from_identifier(i).model_dump() for i in identifiers]
    }


def handle_create_identifier(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /identifiers.

    Parameters
    ----------
    body:
        Parsed JSON request body.

    Returns
    -------
    tuple[int, dict[str, object]]
        HTTP status code and response dictionary.
    """
    try:
        request = CreateIdentifierRequest.model_validate(body)
    except ValidationError as exc:
        return _validation_error(exc)

    try:
        identifier = _require_agent().create_identifier(
            alias=request.alias, provider=request.provider
        )
    except AgentError as exc:
        return error_response(exc)
    except ValueError as exc:
        return _validation_error(exc)
    return 201, IdentifierResponse.from_identifier(identifier).model_dump()


def handle_resolve_did(did: str) -> tuple[int, dict[str, object]]:
    """Handle GET /resolve/{did}."""
    try:
        document = _require_agent().resolve_did(did)
    except AgentError as exc:
        return error_response(exc)
    return 200, document.to_dict()


# ------------------------------------------------------------------
# Credentials
# ------------------------------------------------------------------


def handle_issue_credential(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /credentials/issue."""
    try:
        request = IssueCredentialRequest.model_validate(body)
    except ValidationError as exc:
        return _validation_error(exc)

    try:
        status: CredentialStatusEntry | None = None
        if request.credential_status is not None:
            status = CredentialStatusEntry(
                type=request.credential_status.type, id=request.credential_status.id
            )
        credential = _require_agent().issue_credential(
            request.credential_subject,
            issuer_alias=request.issuer_alias,
            proof_format=request.proof_format,
            credential_status=status,
            types=request.types,
            expiration_date=request.expiration_date,
        )
    except AgentError as exc:
        return error_response(exc)
    except ValueError as exc:
        return _validation_error(exc)
    return 201, credential.to_dict()


def handle_verify_credential(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /credentials/verify.

    A credential that fails verification is still a 200 with
    ``verified: false``; only an unresolvable issuer is an error.
    """
    try:
        credential = _parse_credential(body)
    except ValueError as exc:
        return _validation_error(exc)

    try:
        result = _require_agent().verify_credential(credential)
    except AgentError as exc:
        return error_response(exc)
    return 200, VerificationResponse(**result.to_dict()).model_dump()


def handle_check_status(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /credentials/status."""
    try:
        credential = _parse_credential(body)
    except ValueError as exc:
        return _validation_error(exc)

    try:
        result = _require_agent().check_status(credential)
    except AgentError as exc:
        return error_response(exc)
    return 200, StatusResponse(revoked=result.revoked).model_dump()


def handle_health() -> tuple[int, dict[str, object]]:
    """Handle GET /health."""
    count = len(_agent.find_identifiers()) if _agent is not None else 0
    response = HealthResponse(
        status="ok" if _agent is not None else "unconfigured",
        identifier_count=count,
    )
    return 200, response.model_dump()


__all__ = [
    "configure",
    "error_response",
    "handle_check_status",
    "handle_create_identifier",
    "handle_credential_status",
    "handle_health",
    "handle_index",
    "handle_issue_credential",
    "handle_list_identifiers",
    "handle_resolve_did",
    "handle_verify_credential",
    "reset_state",
]
