"""Process-wide configuration loaded once at startup.

Values come from the environment (and an optional ``.env`` file). The two
secrets, the KMS key and the Infura project id, are held as
:class:`~pydantic.SecretStr` so they never show up in reprs or logs, and are
passed explicitly into the components that need them.
"""
from __future__ import annotations

import re
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_HEX_32_BYTES = re.compile(r"^[0-9a-fA-F]{64}$")

DEFAULT_PROVIDER: str = "did:ethr:sepolia"
DEFAULT_STATUS_ENDPOINT: str = "http://localhost:4000/credentialStatus"


class AgentSettings(BaseSettings):
    """Runtime settings for the agent, its HTTP server and its CLI.

    Parameters
    ----------
    kms_secret_key:
        32-byte symmetric key, hex encoded, used to encrypt private keys at
        rest. Read from ``KMS_SECRET_KEY``.
    infura_project_id:
        RPC-provider credential for the ``did:ethr`` resolver. Read from
        ``INFURA_PROJECT_ID``. Without it, ``did:ethr`` resolution is not
        registered.
    database_file:
        SQLite file holding keys and identifiers.
    default_provider:
        DID provider used for the ``"default"`` identifier.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    kms_secret_key: SecretStr
    infura_project_id: SecretStr | None = None
    database_file: Path = Path("database.sqlite")
    default_provider: str = DEFAULT_PROVIDER

    resolver_timeout: float = Field(default=10.0, gt=0)
    resolver_retries: int = Field(default=3, ge=1)
    resolver_backoff: float = Field(default=0.5, ge=0)
    status_timeout: float = Field(default=10.0, gt=0)
    status_endpoint_url: str = DEFAULT_STATUS_ENDPOINT

    host: str = "0.0.0.0"
    port: int = 4000

    @field_validator("kms_secret_key")
    @classmethod
    def validate_kms_secret(cls, value: SecretStr) -> SecretStr:
        if not _HEX_32_BYTES.match(value.get_secret_value()):
            raise ValueError("kms_secret_key must be 64 hexadecimal characters (32 bytes).")
        return value


__all__ = ["AgentSettings", "DEFAULT_PROVIDER", "DEFAULT_STATUS_ENDPOINT"]
