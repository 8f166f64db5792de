"""Shared fixtures: temporary SQLite stores, settings, agents and HTTP mocks.

No test touches the network. Every outbound request goes through respx;
an unrouted request fails the test.
"""
from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest
import respx

from vc_agent.agent import Agent, create_agent
from vc_agent.config import AgentSettings
from vc_agent.keys.manager import KeyManager
from vc_agent.kms.secret_box import SecretBox
from vc_agent.store.database import Database
from vc_agent.store.key_store import KeyStore, PrivateKeyStore

KMS_SECRET = "5c" * 32
OTHER_KMS_SECRET = "a7" * 32
INFURA_PROJECT_ID = "test-project"
SEPOLIA_RPC_URL = f"https://sepolia.infura.io/v3/{INFURA_PROJECT_ID}"
MAINNET_RPC_URL = f"https://mainnet.infura.io/v3/{INFURA_PROJECT_ID}"
STATUS_URL = "http://localhost:4000/credentialStatus"


# ---------------------------------------------------------------------------
# Storage and keys
# ---------------------------------------------------------------------------


@pytest.fixture()
def database(tmp_path: Path) -> Iterator[Database]:
    db = Database(tmp_path / "test.sqlite")
    db.migrate()
    yield db
    db.close()


@pytest.fixture()
def key_manager(database: Database) -> KeyManager:
    return KeyManager(KeyStore(database), PrivateKeyStore(database), SecretBox(KMS_SECRET))


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings(tmp_path: Path) -> AgentSettings:
    return AgentSettings(
        _env_file=None,
        kms_secret_key=KMS_SECRET,
        infura_project_id=INFURA_PROJECT_ID,
        database_file=tmp_path / "agent.sqlite",
        resolver_retries=2,
        resolver_backoff=0.0,
        status_endpoint_url=STATUS_URL,
    )


@pytest.fixture()
def agent(settings: AgentSettings) -> Iterator[Agent]:
    instance = create_agent(settings)
    yield instance
    instance.close()


# ---------------------------------------------------------------------------
# HTTP mocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http() -> Iterator[respx.MockRouter]:
    with respx.mock(assert_all_called=False) as router:
        yield router


def rpc_answer(
    changed_block: int = 0,
    logs: dict[int, list[object]] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Build a JSON-RPC responder for the ERC-1056 registry.

    ``eth_call`` answers *changed_block*; ``eth_getLogs`` answers the logs
    listed for the requested block.
    """
    logs = logs or {}

    def answer(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if payload["method"] == "eth_call":
            result: object = "0x" + format(changed_block, "064x")
        elif payload["method"] == "eth_getLogs":
            block = int(payload["params"][0]["fromBlock"], 16)
            result = logs.get(block, [])
        else:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": payload["id"], "error": {"code": -32601, "message": "method not found"}},
            )
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    return answer


@pytest.fixture()
def sepolia_rpc(mock_http: respx.MockRouter) -> respx.Route:
    """A sepolia node on which no identity has ever changed."""
    return mock_http.post(SEPOLIA_RPC_URL).mock(side_effect=rpc_answer())


@pytest.fixture()
def status_endpoint(mock_http: respx.MockRouter) -> respx.Route:
    """The sample status endpoint, answering "not revoked"."""
    return mock_http.get(STATUS_URL).mock(return_value=httpx.Response(200, json={"revoked": False}))
