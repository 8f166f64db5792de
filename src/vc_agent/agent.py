"""Agent: the facade every entry point (HTTP server, CLI) talks to.

:func:`create_agent` is the only place components are wired together.
Startup is explicit and ordered: open the database, apply migrations,
build the resolver, proof-format and status registries once, then hand
references to the managers. Nothing is discovered lazily afterwards.

Example
-------
::

    from vc_agent import AgentSettings, create_agent

    with create_agent(AgentSettings()) as agent:
        identifier = agent.ensure_default_identifier()
        credential = agent.issue_credential(
            {"id": "did:web:example.com", "you": "Rock"},
            issuer_alias=identifier.alias,
        )
        assert agent.verify_credential(credential).verified
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from vc_agent.config import AgentSettings
from vc_agent.credentials.issuer import CredentialIssuer
from vc_agent.credentials.model import CredentialStatusEntry, VerifiableCredential
from vc_agent.credentials.proofs import Eip712ProofFormat, ProofFormatRegistry, default_proof_formats
from vc_agent.credentials.verifier import CredentialVerifier, VerificationResult
from vc_agent.did.document import DIDDocument, ServiceEndpoint
from vc_agent.did.identifier import Identifier
from vc_agent.did.manager import DIDManager
from vc_agent.did.providers import default_providers
from vc_agent.errors import AliasAlreadyExists
from vc_agent.keys.key import Key
from vc_agent.keys.manager import KeyManager
from vc_agent.kms.secret_box import SecretBox
from vc_agent.resolver._http import RetryPolicy
from vc_agent.resolver.composite import MethodResolver
from vc_agent.resolver.ethr import EthrDIDResolver
from vc_agent.resolver.key import KeyDIDResolver
from vc_agent.resolver.web import WebDIDResolver
from vc_agent.status.checker import StatusChecker, StatusResult, default_status_checker
from vc_agent.store.database import Database
from vc_agent.store.did_store import DIDStore
from vc_agent.store.key_store import KeyStore, PrivateKeyStore

logger = logging.getLogger(__name__)

DEFAULT_ALIAS: str = "default"
DEFAULT_PROOF_FORMAT: str = Eip712ProofFormat.name


class Agent:
    """Identity and credential operations over one set of components.

    Build instances with :func:`create_agent`; the constructor only stores
    references.
    """

    def __init__(
        self,
        database: Database,
        key_manager: KeyManager,
        did_manager: DIDManager,
        resolver: MethodResolver,
        issuer: CredentialIssuer,
        status_checker: StatusChecker,
        verifier: CredentialVerifier,
    ) -> None:
        self.database = database
        self.key_manager = key_manager
        self.did_manager = did_manager
        self.resolver = resolver
        self.issuer = issuer
        self.status_checker = status_checker
        self.verifier = verifier

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def create_identifier(self, alias: str | None = None, provider: str | None = None) -> Identifier:
        """Create a managed identifier (see :meth:`DIDManager.create`)."""
        return self.did_manager.create(alias=alias, provider=provider)

    def find_identifiers(self) -> list[Identifier]:
        return self.did_manager.find()

    def get_identifier(self, did: str) -> Identifier:
        return self.did_manager.get(did)

    def add_service(self, did: str, service: ServiceEndpoint) -> Identifier:
        return self.did_manager.add_service(did, service)

    def list_keys(self) -> list[Key]:
        return self.key_manager.list_keys()

    def ensure_default_identifier(self) -> Identifier:
        """Return the ``"default"`` identifier, creating it in an empty store.

        A store that already holds identifiers is never written to: the
        identifier aliased ``"default"`` is returned, or
        ``IdentifierNotFound`` is raised if there is none. When two callers
        race on an empty store, the loser re-reads the winner's identifier.
        """
        if not self.did_manager.find():
            try:
                return self.did_manager.create(alias=DEFAULT_ALIAS)
            except AliasAlreadyExists:
                logger.debug("Default identifier created concurrently; re-reading")
        return self.did_manager.find_by_alias(DEFAULT_ALIAS)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def issue_credential(
        self,
        credential_subject: dict[str, Any],
        issuer_alias: str = DEFAULT_ALIAS,
        proof_format: str = DEFAULT_PROOF_FORMAT,
        credential_status: CredentialStatusEntry | None = None,
        types: list[str] | None = None,
        expiration_date: str | datetime | None = None,
    ) -> VerifiableCredential:
        """Issue a credential signed by the identifier aliased *issuer_alias*."""
        return self.issuer.issue(
            credential_subject,
            issuer_alias,
            proof_format,
            credential_status=credential_status,
            types=types,
            expiration_date=expiration_date,
        )

    def check_status(self, credential: VerifiableCredential) -> StatusResult:
        return self.status_checker.check(credential)

    def verify_credential(self, credential: VerifiableCredential) -> VerificationResult:
        return self.verifier.verify(credential)

    def resolve_did(self, did: str) -> DIDDocument:
        return self.resolver.resolve(did)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release HTTP clients and the database connection."""
        self.resolver.close()
        self.status_checker.close()
        self.database.close()

    def __enter__(self) -> "Agent":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_resolver(settings: AgentSettings) -> MethodResolver:
    """Register the resolver plugins *settings* allows.

    ``did:ethr`` is only resolvable when an Infura project id is set.
    """
    retry = RetryPolicy(attempts=settings.resolver_retries, base_delay=settings.resolver_backoff)
    resolver = MethodResolver()
    resolver.register("key", KeyDIDResolver())
    resolver.register("web", WebDIDResolver(timeout=settings.resolver_timeout, retry=retry))
    if settings.infura_project_id is not None:
        resolver.register(
            "ethr",
            EthrDIDResolver.for_infura(
                settings.infura_project_id.get_secret_value(),
                timeout=settings.resolver_timeout,
                retry=retry,
            ),
        )
    else:
        logger.warning("INFURA_PROJECT_ID is not set; did:ethr identifiers cannot be resolved")
    return resolver


def create_agent(
    settings: AgentSettings,
    resolver: MethodResolver | None = None,
    status_checker: StatusChecker | None = None,
    formats: ProofFormatRegistry | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Agent:
    """Open storage, migrate it and wire every component.

    Parameters
    ----------
    settings:
        Loaded configuration.
    resolver, status_checker, formats:
        Replace the default registries.
    clock:
        Time source for issuance and expiry checks.
    """
    database = Database(settings.database_file)
    try:
        applied = database.migrate()
        secret_box = SecretBox(settings.kms_secret_key.get_secret_value())
        key_manager = KeyManager(KeyStore(database), PrivateKeyStore(database), secret_box)
        did_manager = DIDManager(
            DIDStore(database), key_manager, default_providers(), settings.default_provider
        )
    except Exception:
        database.close()
        raise
    if applied:
        logger.info("Applied %d migration(s) to %s", applied, settings.database_file)

    resolver = resolver or build_resolver(settings)
    status_checker = status_checker or default_status_checker(timeout=settings.status_timeout)
    formats = formats or default_proof_formats()

    return Agent(
        database=database,
        key_manager=key_manager,
        did_manager=did_manager,
        resolver=resolver,
        issuer=CredentialIssuer(did_manager, key_manager, formats, clock=clock),
        status_checker=status_checker,
        verifier=CredentialVerifier(resolver, formats, status_checker, clock=clock),
    )


__all__ = ["Agent", "DEFAULT_ALIAS", "DEFAULT_PROOF_FORMAT", "build_resolver", "create_agent"]
