"""HTTP server for vc-agent using stdlib http.server.

Routes:
    GET    /                    sample flow: default identifier, issue, status, verify
    GET    /credentialStatus    status document for the sample credential
    GET    /health              health check
    GET    /identifiers         list managed identifiers
    POST   /identifiers         create an identifier
    GET    /resolve/{did}       resolve a DID document
    POST   /credentials/issue   issue a credential
    POST   /credentials/verify  verify a credential
    POST   /credentials/status  check a credential's revocation state

The server is threaded: ``GET /`` fetches ``/credentialStatus`` from this
same process while it is still handling the request.

Usage:
    python -m vc_agent.server.app --port 4000
"""
from __future__ import annotations

import argparse
import json
import logging
import re
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from vc_agent.agent import create_agent
from vc_agent.config import AgentSettings
from vc_agent.server import routes

logger = logging.getLogger(__name__)

# URL pattern for /resolve/{did}
_RESOLVE_PATTERN = re.compile(r"^/resolve/(.+)$")

_GET_ROUTES = {
    "": routes.handle_index,
    "/credentialStatus": routes.handle_credential_status,
    "/health": routes.handle_health,
    "/identifiers": routes.handle_list_identifiers,
}

_POST_ROUTES = {
    "/identifiers": routes.handle_create_identifier,
    "/credentials/issue": routes.handle_issue_credential,
    "/credentials/verify": routes.handle_verify_credential,
    "/credentials/status": routes.handle_check_status,
}


class VCAgentHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the vc-agent server.

    All request bodies and responses use JSON.
    """

    def log_message(self, format: str, *args: object) -> None:
        """Route access logs through the Python logging system."""
        logger.debug(format, *args)

    # ── GET ───────────────────────────────────────────────────────────────────

    def do_GET(self) -> None:
        """Handle all GET requests by routing on the URL path."""
        path = urllib.parse.urlparse(self.path).path.rstrip("/")

        handler = _GET_ROUTES.get(path)
        if handler is not None:
            self._send_json(*handler())
            return

        match = _RESOLVE_PATTERN.match(path)
        if match:
            did = urllib.parse.unquote(match.group(1))
            self._send_json(*routes.handle_resolve_did(did))
            return

        self._send_json(404, {"error": "not_found", "detail": f"No route for GET {path or '/'}"})

    # ── POST ──────────────────────────────────────────────────────────────────

    def do_POST(self) -> None:
        """Handle all POST requests by routing on the URL path."""
        path = urllib.parse.urlparse(self.path).path.rstrip("/")

        handler = _POST_ROUTES.get(path)
        if handler is None:
            self._send_json(404, {"error": "not_found", "detail": f"No route for POST {path}"})
            return

        body = self._read_json_body()
        if body is None:
            return
        self._send_json(*handler(body))

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _send_json(self, status: int, data: dict[str, object]) -> None:
        """Serialize *data* to JSON and send an HTTP response with *status*."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json_body(self) -> dict[str, object] | None:
        """Read and parse the JSON request body.

        Returns None (and sends a 400 error response) if the body is not a
        JSON object.
        """
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length == 0:
            return {}

        raw = self.rfile.read(content_length)
        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._send_json(400, {"error": "invalid_json", "detail": str(exc)})
            return None
        if not isinstance(parsed, dict):
            self._send_json(400, {"error": "invalid_json", "detail": "Body must be a JSON object."})
            return None
        return parsed


def create_server(settings: AgentSettings) -> ThreadingHTTPServer:
    """Build the agent from *settings* and bind (but do not start) the server.

    Returns
    -------
    ThreadingHTTPServer
        A configured server instance ready to call ``serve_forever()`` on.
    """
    routes.configure(create_agent(settings), status_endpoint_url=settings.status_endpoint_url)
    try:
        server = ThreadingHTTPServer((settings.host, settings.port), VCAgentHandler)
    except OSError:
        routes.reset_state()
        raise
    server.daemon_threads = True
    logger.info("vc-agent server created at http://%s:%d", settings.host, settings.port)
    return server


def run_server(settings: AgentSettings) -> None:
    """Create and run the vc-agent HTTP server (blocking)."""
    server = create_server(settings)
    logger.info("Serving vc-agent on http://%s:%d, press Ctrl-C to stop", settings.host, settings.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down vc-agent server.")
    finally:
        server.server_close()
        routes.reset_state()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="vc-agent HTTP server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default=None, help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, default=None, help="TCP port (overrides PORT)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


if __name__ == "__main__":
    args = _build_arg_parser().parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level))
    overrides = {k: v for k, v in (("host", args.host), ("port", args.port)) if v is not None}
    run_server(AgentSettings(**overrides))
