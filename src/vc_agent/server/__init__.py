"""HTTP server mode for vc-agent.

Provides a lightweight stdlib-based HTTP API over the agent without
requiring any additional web framework dependencies.
"""
from __future__ import annotations

from vc_agent.server.app import VCAgentHandler, create_server, run_server

__all__ = ["VCAgentHandler", "create_server", "run_server"]
