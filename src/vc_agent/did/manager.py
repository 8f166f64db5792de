"""DIDManager: identifier lifecycle and alias lookup.

The manager performs no implicit "create if missing": deciding when a
default identifier should come into existence belongs to the
:class:`~vc_agent.agent.Agent`.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

from vc_agent.did.document import ServiceEndpoint
from vc_agent.did.identifier import Identifier
from vc_agent.did.providers import DIDProvider, WebDIDProvider
from vc_agent.errors import AliasAlreadyExists, IdentifierNotFound, UnsupportedMethod
from vc_agent.keys.manager import KeyManager
from vc_agent.store.did_store import DIDStore

logger = logging.getLogger(__name__)


class DIDManager:
    """Create, list and look up managed identifiers.

    Parameters
    ----------
    store:
        Identifier persistence.
    key_manager:
        Allocates the controller key for each new identifier.
    providers:
        Mapping of provider name (``"did:ethr:sepolia"``) to provider.
    default_provider:
        Provider used when :meth:`create` is called without one.

    Example
    -------
    ::

        manager = DIDManager(DIDStore(db), key_manager, default_providers(), "did:key")
        identifier = manager.create(alias="signer")
        assert manager.find_by_alias("signer") == identifier
    """

    def __init__(
        self,
        store: DIDStore,
        key_manager: KeyManager,
        providers: Mapping[str, DIDProvider],
        default_provider: str,
    ) -> None:
        if default_provider not in providers:
            raise UnsupportedMethod(default_provider)
        self._store = store
        self._keys = key_manager
        self._providers = dict(providers)
        self.default_provider = default_provider

    @property
    def providers(self) -> list[str]:
        """Sorted names of the registered providers."""
        return sorted(self._providers)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def find(self) -> list[Identifier]:
        """Return every managed identifier in insertion order."""
        return self._store.find()

    def find_by_alias(self, alias: str) -> Identifier:
        """Return the identifier bound to *alias*.

        Raises
        ------
        IdentifierNotFound
            If no identifier carries that alias.
        """
        return self._store.get_by_alias(alias)

    def get(self, did: str) -> Identifier:
        """Return the managed identifier for *did* (raises ``IdentifierNotFound``)."""
        return self._store.get(did)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self, alias: str | None = None, provider: str | None = None) -> Identifier:
        """Create and persist a new identifier.

        Parameters
        ----------
        alias:
            Optional label; must be unused. ``did:web`` requires one (it
            names the host).
        provider:
            Provider name; defaults to :attr:`default_provider`.

        Raises
        ------
        UnsupportedMethod
            If *provider* is not registered.
        AliasAlreadyExists
            If *alias* is already bound, including when a concurrent
            writer wins the race.
        ValueError
            If the provider cannot build a DID for these inputs.
        """
        provider_name = provider or self.default_provider
        method = self._providers.get(provider_name)
        if method is None:
            raise UnsupportedMethod(provider_name)
        if isinstance(method, WebDIDProvider) and not alias:
            raise ValueError("did:web identifiers need an alias naming the host.")

        if alias is not None and self._alias_taken(alias):
            raise AliasAlreadyExists(alias)

        key = self._keys.create_key(method.key_type)
        identifier = Identifier(
            did=method.build_did(key, alias),
            provider=provider_name,
            controller_key_id=key.key_id,
            alias=alias,
        )
        self._store.save(identifier)
        logger.info(
            "Created identifier %s (alias=%r, provider=%s)",
            identifier.did,
            alias,
            provider_name,
        )
        return identifier

    def add_service(self, did: str, service: ServiceEndpoint) -> Identifier:
        """Append *service* to a managed identifier and return the updated record.

        The change is local; nothing is anchored for ledger-based methods.

        Raises
        ------
        IdentifierNotFound
            If *did* is not managed here.
        """
        self._store.add_service(did, service)
        return self._store.get(did)

    def _alias_taken(self, alias: str) -> bool:
        try:
            self._store.get_by_alias(alias)
        except IdentifierNotFound:
            return False
        return True


__all__ = ["DIDManager"]
