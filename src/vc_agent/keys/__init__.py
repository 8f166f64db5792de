"""Key records and the KeyManager that owns them."""
from __future__ import annotations

from vc_agent.keys.key import Key, KeyType
from vc_agent.keys.manager import KeyManager

__all__ = ["Key", "KeyManager", "KeyType"]
