"""MethodResolver: dispatch DID resolution by method name.

Plugins are plain objects with a ``resolve(did) -> DIDDocument`` method.
The composite owns no network state of its own; it only picks the plugin
whose method matches the DID's second segment.
"""
from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable

from vc_agent.did.document import DIDDocument, parse_did
from vc_agent.errors import UnsupportedMethod

logger = logging.getLogger(__name__)


@runtime_checkable
class DIDResolverPlugin(Protocol):
    """A resolver for one DID method."""

    def resolve(self, did: str) -> DIDDocument:
        """Return the current DID document for *did*.

        Raises
        ------
        ResolutionFailed
            If the document cannot be obtained or is malformed.
        """
        ...


class MethodResolver:
    """Resolve any DID whose method has a registered plugin.

    Registering a method twice replaces the earlier plugin and logs a
    warning; the last registration wins.

    Example
    -------
    ::

        resolver = MethodResolver()
        resolver.register("key", KeyDIDResolver())
        document = resolver.resolve("did:key:z6Mk...")
    """

    def __init__(self) -> None:
        self._plugins: dict[str, DIDResolverPlugin] = {}
        self._lock = threading.Lock()

    def register(self, method: str, plugin: DIDResolverPlugin) -> None:
        """Register *plugin* for DID method *method* (``"ethr"``, ``"web"``)."""
        with self._lock:
            if method in self._plugins:
                logger.warning("Replacing resolver for DID method %r", method)
            self._plugins[method] = plugin

    @property
    def methods(self) -> list[str]:
        """Sorted names of the methods that can be resolved."""
        with self._lock:
            return sorted(self._plugins)

    def resolve(self, did: str) -> DIDDocument:
        """Resolve *did* with the plugin registered for its method.

        Raises
        ------
        UnsupportedMethod
            If *did* is malformed or its method has no plugin.
        ResolutionFailed
            Propagated from the plugin.
        """
        try:
            method, _ = parse_did(did)
        except ValueError as exc:
            raise UnsupportedMethod(did) from exc

        with self._lock:
            plugin = self._plugins.get(method)
        if plugin is None:
            raise UnsupportedMethod(method)

        logger.debug("Resolving %s with %s", did, type(plugin).__name__)
        return plugin.resolve(did)

    def close(self) -> None:
        """Close every plugin that holds network resources."""
        with self._lock:
            plugins = list(self._plugins.values())
        for plugin in plugins:
            close = getattr(plugin, "close", None)
            if callable(close):
                close()


__all__ = ["DIDResolverPlugin", "MethodResolver"]
