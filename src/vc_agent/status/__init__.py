"""Credential revocation status lookups."""
from __future__ import annotations

from vc_agent.status.checker import (
    STATUS_LIST_2017,
    StatusChecker,
    StatusList2017Method,
    StatusMethod,
    StatusResult,
    default_status_checker,
)

__all__ = [
    "STATUS_LIST_2017",
    "StatusChecker",
    "StatusList2017Method",
    "StatusMethod",
    "StatusResult",
    "default_status_checker",
]
