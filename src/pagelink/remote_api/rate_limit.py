"""Token-bucket pacing for the pagelink transports.

Each :class:`~pagelink.remote_api.transport.AsyncRemoteTransport` owns one
:class:`AsyncTokenBucket`, so calls to the credential backend and to the
provider proxy are paced independently.  The proxy bucket is the one that
matters: every fetch-page-blocks and fetch-page call ends up at the
provider, which throttles per integration.  Tokens replenish at
``PageLinkConfig.rate_limit_rps`` up to a *burst* ceiling; a caller asking
for more tokens than are available awaits for the computed deficit.
"""

from __future__ import annotations

import asyncio
import time


class AsyncTokenBucket:
    """Async-safe token bucket.

    Parameters
    ----------
    rate_rps:
        Sustained token-refill rate in tokens per second.
    burst:
        Maximum number of tokens the bucket can hold.
    """

    __slots__ = ("_lock", "burst", "last_refill", "rate", "tokens")

    def __init__(self, rate_rps: float, burst: int = 10) -> None:
        if rate_rps <= 0:
            raise ValueError(f"rate_rps must be > 0, got {rate_rps}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")

        self.rate: float = rate_rps
        self.burst: int = burst
        self.tokens: float = float(burst)
        self.last_refill: float = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self, tokens: int = 1) -> float:
        """Acquire *tokens*, awaiting if necessary.

        Returns the number of seconds the caller had to wait.
        """
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.last_refill
            self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
            self.last_refill = now

            if self.tokens >= tokens:
                self.tokens -= tokens
                return 0.0

            deficit = tokens - self.tokens
            wait = deficit / self.rate
            self.tokens = 0.0
            self.last_refill = now

        # Sleep outside the lock so other coroutines can proceed.
        await asyncio.sleep(wait)
        return wait
