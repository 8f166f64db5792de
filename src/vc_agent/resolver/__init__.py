"""DID resolution: a method-dispatching composite and its plugins."""
from __future__ import annotations

from vc_agent.resolver._http import RetryPolicy
from vc_agent.resolver.composite import DIDResolverPlugin, MethodResolver
from vc_agent.resolver.ethr import EthrDIDResolver
from vc_agent.resolver.key import KeyDIDResolver
from vc_agent.resolver.web import WebDIDResolver, did_web_to_url

__all__ = [
    "DIDResolverPlugin",
    "EthrDIDResolver",
    "KeyDIDResolver",
    "MethodResolver",
    "RetryPolicy",
    "WebDIDResolver",
    "did_web_to_url",
]
