"""Tests for vc_agent.cli.main via the Click test runner."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
import respx
from click.testing import CliRunner

from vc_agent.cli.main import cli

from conftest import INFURA_PROJECT_ID, KMS_SECRET, STATUS_URL

SUBJECT = '{"id": "did:web:example.com", "you": "Rock"}'


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a scratch directory; returns the database path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("KMS_SECRET_KEY", KMS_SECRET)
    monkeypatch.setenv("INFURA_PROJECT_ID", INFURA_PROJECT_ID)
    monkeypatch.setenv("RESOLVER_BACKOFF", "0")
    database = tmp_path / "cli.sqlite"
    monkeypatch.setenv("DATABASE_FILE", str(database))
    return database


def _issue(runner: CliRunner, tmp_path: Path, *args: str) -> Path:
    output = tmp_path / "credential.json"
    result = runner.invoke(cli, ["credential", "issue", "--subject", SUBJECT, "-o", str(output), *args])
    assert result.exit_code == 0, result.output
    return output


# ---------------------------------------------------------------------------
# Root CLI
# ---------------------------------------------------------------------------


class TestRootCLI:
    def test_help_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for group in ("identifier", "credential", "did", "serve"):
            assert group in result.output

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "vc-agent" in result.output

    def test_missing_secret_is_configuration_error(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("KMS_SECRET_KEY", raising=False)
        result = runner.invoke(cli, ["identifier", "list"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output


# ---------------------------------------------------------------------------
# identifier
# ---------------------------------------------------------------------------


class TestIdentifierCommands:
    def test_create_and_list(self, runner: CliRunner, environment: Path) -> None:
        result = runner.invoke(cli, ["identifier", "create", "alice", "--provider", "did:key"])
        assert result.exit_code == 0, result.output
        assert "Created" in result.output
        assert "did:key:z6Mk" in result.output

        listing = runner.invoke(cli, ["identifier", "list"])
        assert listing.exit_code == 0
        assert "alice" in listing.output
        assert "Total: 1 identifier(s)" in listing.output

    def test_list_empty(self, runner: CliRunner, environment: Path) -> None:
        result = runner.invoke(cli, ["identifier", "list"])
        assert result.exit_code == 0
        assert "No identifiers yet" in result.output

    def test_duplicate_alias_fails(self, runner: CliRunner, environment: Path) -> None:
        runner.invoke(cli, ["identifier", "create", "alice"])
        result = runner.invoke(cli, ["identifier", "create", "alice"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_did_web_without_alias_fails(self, runner: CliRunner, environment: Path) -> None:
        result = runner.invoke(cli, ["identifier", "create", "-p", "did:web"])
        assert result.exit_code == 1
        assert "alias" in result.output

    def test_default_is_stable(self, runner: CliRunner, environment: Path) -> None:
        first = runner.invoke(cli, ["identifier", "default"])
        second = runner.invoke(cli, ["identifier", "default"])
        assert first.exit_code == 0, first.output
        assert "did:ethr:sepolia:0x" in first.output
        assert first.output == second.output

    def test_database_file_option(self, runner: CliRunner, environment: Path, tmp_path: Path) -> None:
        other = tmp_path / "other.sqlite"
        result = runner.invoke(cli, ["--database-file", str(other), "identifier", "create", "bob"])
        assert result.exit_code == 0, result.output
        assert other.exists()
        assert "No identifiers yet" in runner.invoke(cli, ["identifier", "list"]).output


# ---------------------------------------------------------------------------
# credential
# ---------------------------------------------------------------------------


class TestCredentialCommands:
    def test_issue_to_stdout(self, runner: CliRunner, environment: Path) -> None:
        runner.invoke(cli, ["identifier", "create", "keyed", "-p", "did:key"])
        result = runner.invoke(
            cli,
            ["credential", "issue", "-s", SUBJECT, "-i", "keyed", "-f", "JsonWebSignature2020"],
        )
        assert result.exit_code == 0, result.output
        credential = json.loads(result.output)
        assert credential["proof"]["type"] == "JsonWebSignature2020"
        assert credential["credentialSubject"]["you"] == "Rock"

    def test_issue_and_verify(
        self, runner: CliRunner, environment: Path, tmp_path: Path, sepolia_rpc: respx.Route
    ) -> None:
        runner.invoke(cli, ["identifier", "default"])
        path = _issue(runner, tmp_path, "--type", "ExampleCredential")
        data = json.loads(path.read_text())
        assert data["type"] == ["VerifiableCredential", "ExampleCredential"]

        result = runner.invoke(cli, ["credential", "verify", str(path)])
        assert result.exit_code == 0, result.output
        assert "Credential verified" in result.output

    def test_tampered_credential_fails(
        self, runner: CliRunner, environment: Path, tmp_path: Path, sepolia_rpc: respx.Route
    ) -> None:
        runner.invoke(cli, ["identifier", "default"])
        path = _issue(runner, tmp_path)
        data = json.loads(path.read_text())
        data["credentialSubject"]["you"] = "Paper"
        path.write_text(json.dumps(data))

        result = runner.invoke(cli, ["credential", "verify", str(path)])
        assert result.exit_code == 1
        assert "NOT verified" in result.output

    def test_status(
        self, runner: CliRunner, environment: Path, tmp_path: Path, status_endpoint: respx.Route
    ) -> None:
        runner.invoke(cli, ["identifier", "default"])
        path = _issue(runner, tmp_path, "--status-url", STATUS_URL)
        result = runner.invoke(cli, ["credential", "status", str(path)])
        assert result.exit_code == 0, result.output
        assert "Not revoked" in result.output
        assert status_endpoint.call_count == 1

    def test_subject_must_be_json_object(self, runner: CliRunner, environment: Path) -> None:
        for subject in ("{not json", '["a"]'):
            result = runner.invoke(cli, ["credential", "issue", "-s", subject])
            assert result.exit_code == 1

    def test_unknown_issuer(self, runner: CliRunner, environment: Path) -> None:
        result = runner.invoke(cli, ["credential", "issue", "-s", SUBJECT, "-i", "nobody"])
        assert result.exit_code == 1
        assert "nobody" in result.output

    def test_verify_rejects_non_credential(
        self, runner: CliRunner, environment: Path, tmp_path: Path
    ) -> None:
        path = tmp_path / "junk.json"
        path.write_text('{"hello": "world"}')
        result = runner.invoke(cli, ["credential", "verify", str(path)])
        assert result.exit_code == 1
        assert "not a valid credential" in result.output


# ---------------------------------------------------------------------------
# did
# ---------------------------------------------------------------------------


class TestDidCommands:
    def test_resolve_did_key(self, runner: CliRunner, environment: Path) -> None:
        created = runner.invoke(cli, ["identifier", "create", "keyed", "-p", "did:key"])
        did = next(
            line.split()[-1] for line in created.output.splitlines() if line.strip().startswith("DID:")
        )
        result = runner.invoke(cli, ["did", "resolve", did])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["id"] == did

    def test_resolve_unsupported_method(self, runner: CliRunner, environment: Path) -> None:
        result = runner.invoke(cli, ["did", "resolve", "did:peer:2abc"])
        assert result.exit_code == 1
        assert "not supported" in result.output
