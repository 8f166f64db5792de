#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the minimal setup for vc-agent: create a did:key identifier,
issue a JsonWebSignature2020 credential from it and verify the result.
Everything runs locally; no Ethereum node is needed.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install vc-agent
"""
from __future__ import annotations

import secrets
import tempfile
from pathlib import Path

import vc_agent
from vc_agent.agent import create_agent
from vc_agent.config import AgentSettings


def main() -> None:
    print(f"vc-agent version: {vc_agent.__version__}")

    with tempfile.TemporaryDirectory() as workdir:
        settings = AgentSettings(
            _env_file=None,
            kms_secret_key=secrets.token_hex(32),
            database_file=Path(workdir) / "quickstart.sqlite",
        )
        with create_agent(settings) as agent:
            # Step 1: Create an identifier backed by an Ed25519 key
            identifier = agent.create_identifier(alias="quickstart", provider="did:key")
            print(f"Identifier created: {identifier.did}")

            # Step 2: Issue a credential about someone
            credential = agent.issue_credential(
                {"id": "did:web:example.com", "you": "Rock"},
                issuer_alias="quickstart",
                proof_format="JsonWebSignature2020",
            )
            print(credential.to_json())

            # Step 3: Verify it
            result = agent.verify_credential(credential)
            print(f"Credential verified: {result.verified}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
