from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import redis


logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 100
DEFAULT_WINDOW_SECONDS = 15 * 60


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    wait_seconds: int = 0


# Sliding-window limiter for /register and /login, keyed by client address
class RedisAuthRateLimiter:
    def __init__(
        self,
        redis_url: Optional[str] = None,
        *,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        client=None,
    ):
        self.max_requests = int(max_requests)
        self.window_seconds = int(window_seconds)
        self._client = client if client is not None else redis.from_url(redis_url, decode_responses=True)

    @staticmethod
    def _key(client_id: str) -> str:
        return f"auth_rate:{client_id}"

    # Seconds until the oldest attempt in the window expires
    def _retry_after(self, oldest: list, now_ts: float) -> int:
        if not oldest:
            return self.window_seconds
        _, oldest_ts = oldest[0]
        return max(0, int(float(oldest_ts) + self.window_seconds - now_ts))

    # Records the attempt and returns how many attempts the window now holds
    def _record_attempt(self, key: str, member: str, now_ts: float) -> int:
        with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, "-inf", now_ts - self.window_seconds)
            pipe.zadd(key, {member: now_ts})
            pipe.zcard(key)
            pipe.expire(key, self.window_seconds + 5)
            _, _, attempts, _ = pipe.execute()
        return int(attempts)

    def check(self, client_id: str) -> RateLimitDecision:
        key = self._key(client_id)
        now_ts = datetime.now(timezone.utc).timestamp()
        member = str(now_ts)

        try:
            if self._record_attempt(key, member, now_ts) <= self.max_requests:
                return RateLimitDecision(allowed=True)

            # Rejected attempts are not kept, so they never extend the lockout
            self._client.zrem(key, member)
            oldest = self._client.zrange(key, 0, 0, withscores=True)
            wait_seconds = self._retry_after(oldest, now_ts)
            logger.warning(f"Auth rate limit hit for {client_id}, retry in {wait_seconds}s")
            return RateLimitDecision(allowed=False, wait_seconds=wait_seconds)
        # Redis outages must not lock users out
        except redis.RedisError as e:
            logger.warning(f"Auth rate limiter unavailable, allowing request: {e}")
            return RateLimitDecision(allowed=True)


_singleton: Optional[RedisAuthRateLimiter] = None


# Returns None (limiting disabled) when no Redis URL is configured
def get_auth_rate_limiter() -> Optional[RedisAuthRateLimiter]:
    global _singleton
    if _singleton is not None:
        return _singleton

    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        return None
    _singleton = RedisAuthRateLimiter(
        redis_url=redis_url,
        max_requests=int(os.getenv("AUTH_RATE_LIMIT_MAX", str(DEFAULT_MAX_REQUESTS))),
        window_seconds=int(os.getenv("AUTH_RATE_LIMIT_WINDOW_SECONDS", str(DEFAULT_WINDOW_SECONDS))),
    )
    return _singleton
