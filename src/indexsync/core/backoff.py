"""Request backoff — Retry policy around a single search-service request.

Failure classification:
  - connection failure, timeout, 5xx  → transient, retried after a backoff delay
  - 3xx, 4xx (unless tolerated)       → ``ClientRequestError``, raised immediately

Delays grow exponentially, ``min(max_delay, base_delay * 2**attempt)``, plus
random jitter in ``[0, delay / 2)`` so that many clients recovering from the
same outage do not retry in lockstep.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from indexsync.adapters.base.adapter import RequestDescriptor, RequestExecutor, TransportResponse
from indexsync.adapters.base.exceptions import ClientRequestError, TransientTransportError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff parameters.

    Attributes:
        base_delay: Delay before the first retry, in seconds.
        max_delay: Upper bound of the un-jittered delay.
        max_attempts: Total attempts allowed per request; ``None`` retries
            transient failures forever.
    """

    base_delay: float = 0.1
    max_delay: float = 30.0
    max_attempts: int | None = 10

    def __post_init__(self) -> None:
        if self.base_delay <= 0 or self.max_delay <= 0:
            raise ValueError("base_delay and max_delay must be positive")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 (or None for no ceiling)")

    def base(self, attempt: int) -> float:
        """Un-jittered delay after the given 0-based failed attempt."""
        # exponent capped so unbounded retry loops never overflow
        return min(self.max_delay, self.base_delay * 2 ** min(attempt, 64))

    def delay(self, attempt: int, rng: random.Random | None = None) -> float:
        """Delay after the given 0-based failed attempt, with jitter."""
        base = self.base(attempt)
        return base + (rng or random).uniform(0, base / 2)

    def allows(self, attempts_made: int) -> bool:
        """True if another attempt is allowed after ``attempts_made`` attempts."""
        return self.max_attempts is None or attempts_made < self.max_attempts


class RequestBackoff:
    """Executes one logical request, retrying transient failures.

    Safe only for idempotent requests (replace-by-id, delete-by-id, search),
    which is all the sync core issues.

    Args:
        executor: Transport used for each attempt.
        policy: Backoff parameters.
        sleep: Awaitable sleep function (injectable for tests).
        rng: Random source for jitter.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        policy: BackoffPolicy | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.executor = executor
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def execute(self, request: RequestDescriptor) -> TransportResponse:
        """Send ``request`` until it succeeds or fails permanently.

        Returns:
            The successful (2xx or tolerated) response.

        Raises:
            ClientRequestError: On a non-tolerated response below 500 (4xx, or an
                unfollowed 3xx).
            TransientTransportError: When the attempt ceiling is reached.
        """
        attempt = 0
        while True:
            try:
                response = await self.executor.send(request)
            except TransientTransportError as e:
                failure = e
            else:
                if response.is_success or response.status_code in request.tolerated_statuses:
                    return response
                if response.status_code < 500:
                    raise ClientRequestError(
                        f"{request.method} {request.url} rejected with HTTP {response.status_code}",
                        status_code=response.status_code,
                        body=response.body,
                    )
                failure = TransientTransportError(
                    f"{request.method} {request.url} failed with HTTP {response.status_code}",
                    status_code=response.status_code,
                )

            attempt += 1
            failure.attempts = attempt
            if not self.policy.allows(attempt):
                logger.error(
                    "Giving up on %s %s after %d attempt(s): %s",
                    request.method,
                    request.url,
                    attempt,
                    failure,
                )
                raise failure

            delay = self.policy.delay(attempt - 1, self._rng)
            logger.warning(
                "Transient failure on %s %s (attempt %d), retrying in %.2fs: %s",
                request.method,
                request.url,
                attempt,
                delay,
                failure,
            )
            await self._sleep(delay)
