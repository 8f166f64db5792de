"""Local key management: keypair generation, signing and key encryption."""
from __future__ import annotations

from vc_agent.kms.local import LocalKeyManagementSystem, SigningAlgorithm
from vc_agent.kms.secret_box import SecretBox

__all__ = ["LocalKeyManagementSystem", "SecretBox", "SigningAlgorithm"]
