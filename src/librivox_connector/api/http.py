"""Resilient JSON fetch over httpx.

Every upstream call goes through ``fetch_json``. A request is retried
immediately (no backoff) up to ``max_retries`` times; a bad status, a
transport error and an undecodable body all count as one failed attempt.
Once attempts run out the caller's policy decides between raising
FetchError and returning None.
"""

from dataclasses import dataclass
from typing import Any, Callable

import httpx
from loguru import logger

from ..errors import FetchError

log = logger.bind(stage="fetch")


@dataclass(frozen=True)
class FetchPolicy:
    throw_on_failure: bool = True
    max_retries: int = 3
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    @property
    def attempts(self) -> int:
        return self.max_retries + 1


# (url, policy) -> parsed body or None; injectable for tests
Fetcher = Callable[[str, FetchPolicy], Any]


def fetch_json(url: str, policy: FetchPolicy = FetchPolicy()) -> Any:
    """GET ``url`` and return the decoded JSON body.

    Returns None only when every attempt failed and
    ``policy.throw_on_failure`` is False.
    """
    last_error = ""
    for attempt in range(1, policy.attempts + 1):
        try:
            resp = httpx.get(url, timeout=policy.timeout)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            last_error = f"status {e.response.status_code}"
        except httpx.HTTPError as e:
            last_error = str(e) or type(e).__name__
        except ValueError as e:
            last_error = f"invalid JSON: {e}"

        if attempt < policy.attempts:
            log.warning(
                f"Request to {url} failed ({last_error}), retrying... "
                f"({attempt}/{policy.max_retries})"
            )

    log.error(f"Request failed after {policy.attempts} attempts: {url} ({last_error})")
    if policy.throw_on_failure:
        raise FetchError(url, policy.attempts, last_error)
    return None
