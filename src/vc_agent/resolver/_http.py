"""Bounded retry with exponential backoff for resolver HTTP calls.

Only transport failures (including timeouts) and 5xx answers are retried.
A 4xx answer is the remote saying "no", so it fails at once. Exhausting
the attempts raises :class:`~vc_agent.errors.ResolutionFailed`; nothing
here ever blocks longer than ``attempts * (timeout + max_delay)``.
"""
from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from vc_agent.errors import ResolutionFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait between tries.

    Parameters
    ----------
    attempts:
        Total number of attempts, including the first.
    base_delay:
        Delay before the second attempt; doubles on every retry.
    max_delay:
        Cap on a single delay.
    """

    attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0

    def delay(self, attempt: int) -> float:
        """Return the sleep before retry number *attempt* (0-indexed), with jitter."""
        capped = min(self.base_delay * (2**attempt), self.max_delay)
        return capped + random.uniform(0, self.base_delay / 2)


def request_json(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    did: str,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> Any:
    """Send a request and decode the JSON answer, retrying transient failures.

    Raises
    ------
    ResolutionFailed
        On a 4xx answer, an undecodable body, or when every attempt failed.
    """
    last_error = "no attempt made"
    for attempt in range(policy.attempts):
        try:
            response = client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            last_error = f"network error: {exc}"
        else:
            if response.status_code >= 500:
                last_error = f"HTTP {response.status_code}"
            elif response.is_error:
                raise ResolutionFailed(did, f"HTTP {response.status_code} from {url}")
            else:
                try:
                    return response.json()
                except ValueError as exc:
                    raise ResolutionFailed(did, f"invalid JSON from {url}") from exc

        if attempt + 1 < policy.attempts:
            delay = policy.delay(attempt)
            logger.warning(
                "Resolving %s: %s (attempt %d/%d), retrying in %.2fs",
                did,
                last_error,
                attempt + 1,
                policy.attempts,
                delay,
            )
            sleep(delay)

    raise ResolutionFailed(did, f"{last_error} after {policy.attempts} attempt(s)")


__all__ = ["RetryPolicy", "request_json"]
