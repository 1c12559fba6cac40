# backend/app/core/limiter.py

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

KeyFunc = Callable[[Request], str]

RATE_LIMIT_MESSAGE = "Too many requests, please try again later"


def wall_clock_ms() -> float:
    return time.time() * 1000


def default_key_func(request: Request) -> str:
    """Network origin of the caller."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float  # epoch ms


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    One limiting rule: at most `max_requests` per caller every `window_ms`.
    The scope namespaces the caller keys so independently configured
    endpoint groups never share counters.
    """
    scope: str
    window_ms: int
    max_requests: int
    key_func: Optional[KeyFunc] = None

    def __post_init__(self):
        if not isinstance(self.scope, str) or not self.scope:
            raise ValueError("Rate limit scope must be a non-empty string")
        # bool is an int subclass; True would silently mean "1"
        for name in ("window_ms", "max_requests"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Rate limit '{self.scope}': {name} must be an integer, got {value!r}")
        if self.window_ms <= 0:
            raise ValueError(f"Rate limit '{self.scope}': window_ms must be positive, got {self.window_ms}")
        if self.max_requests <= 0:
            raise ValueError(f"Rate limit '{self.scope}': max_requests must be positive, got {self.max_requests}")

    def caller_key(self, request: Request) -> str:
        key_func = self.key_func or default_key_func
        return key_func(request) or "unknown"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_time: float
    retry_after: Optional[int] = None

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset_time / 1000, tz=timezone.utc)

    def headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers

    def to_response(self) -> JSONResponse:
        """429 payload relayed to the caller when the decision is a rejection."""
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": RATE_LIMIT_MESSAGE, "retryAfter": self.retry_after},
            headers=self.headers(),
        )


class InMemoryRateLimiter:
    """
    Fixed-window request counter shared by every policy of one process.

    - Counters live in a plain dict keyed by "<scope>:<caller>".
    - Expired windows are replaced lazily on the next hit and removed eagerly
      by a periodic sweep so one-off callers do not accumulate.
    - Sync endpoints run on the threadpool, so every read-check-increment
      happens under a single lock.

    NOTE: Counters are not shared across workers or instances.
    """

    def __init__(
        self,
        sweep_interval_seconds: float = 5 * 60,
        clock: Callable[[], float] = wall_clock_ms,
    ):
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be positive")

        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, RateLimitEntry] = {}
        self._policies: Dict[str, RateLimitPolicy] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    # ----------------------------------------
    # Configuration
    # ----------------------------------------
    def create_rate_limit(
        self,
        scope: str,
        window_ms: int,
        max_requests: int,
        key_func: Optional[KeyFunc] = None,
    ) -> RateLimitPolicy:
        """Builds, validates and registers a policy. Raises ValueError on bad config."""
        policy = RateLimitPolicy(scope, window_ms, max_requests, key_func)
        if scope in self._policies:
            raise ValueError(f"Rate limit scope '{scope}' is already registered")
        self._policies[scope] = policy
        logger.debug(f"Registered rate limit '{scope}': {max_requests} per {window_ms}ms")
        return policy

    def get_policy(self, scope: str) -> RateLimitPolicy:
        return self._policies[scope]

    # ----------------------------------------
    # Request path
    # ----------------------------------------
    def hit(self, policy: RateLimitPolicy, caller_key: str) -> RateLimitDecision:
        key = f"{policy.scope}:{caller_key}"

        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            # New caller or the previous window has elapsed
            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + policy.window_ms)
                self._entries[key] = entry
                return RateLimitDecision(
                    allowed=True,
                    limit=policy.max_requests,
                    remaining=policy.max_requests - 1,
                    reset_time=entry.reset_time,
                )

            if entry.count >= policy.max_requests:
                # A Retry-After of 0 would be rejected again until now > reset_time
                retry_after = max(1, math.ceil((entry.reset_time - now) / 1000))
                logger.debug(f"Rate limit '{policy.scope}' exceeded for {caller_key}, retry in {retry_after}s")
                return RateLimitDecision(
                    allowed=False,
                    limit=policy.max_requests,
                    remaining=0,
                    reset_time=entry.reset_time,
                    retry_after=retry_after,
                )

            entry.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=policy.max_requests,
                remaining=policy.max_requests - entry.count,
                reset_time=entry.reset_time,
            )

    def check(self, policy: Union[RateLimitPolicy, str], request: Request) -> RateLimitDecision:
        if isinstance(policy, str):
            policy = self.get_policy(policy)
        return self.hit(policy, policy.caller_key(request))

    # ----------------------------------------
    # Maintenance
    # ----------------------------------------
    def sweep(self) -> int:
        """Drops every entry whose window has already elapsed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in list(self._entries.items()) if now > entry.reset_time]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"Rate limiter sweep removed {len(expired)} expired entries")
        return len(expired)

    async def _sweep_forever(self):
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Rate limiter sweep failed: {e}", exc_info=True)

    def start(self):
        """Starts the periodic sweep on the running event loop."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_forever())
        logger.info(f"Rate limiter sweep started (every {self.sweep_interval_seconds}s)")

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def destroy(self):
        """Cancels the sweep task and forgets every counter."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            self._sweep_task = None
        with self._lock:
            self._entries.clear()

    def get_entry(self, policy: RateLimitPolicy, caller_key: str) -> Optional[RateLimitEntry]:
        with self._lock:
            return self._entries.get(f"{policy.scope}:{caller_key}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
