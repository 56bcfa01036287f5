import functools
import time
from typing import Dict, Tuple

from fastapi import HTTPException, Request

from ytmerge.config.settings import config, LimitConfig
from ytmerge.i18n import i18n
from ytmerge.infra.redis import get_redis
from ytmerge.utils.locale import get_locale

LUA_FIXED_WINDOW = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])

local current = redis.call('INCR', key)
if current == 1 then
    redis.call('EXPIRE', key, window)
end

if current > limit then
    local ttl = redis.call('TTL', key)
    return {0, ttl}
end

return {1, 0}
"""


class FixedWindowRateLimiter:
    """
    Fixed-window limiter keyed by client address.
    Counts in Redis when connected, otherwise in a process-local table.
    """

    def __init__(self, name: str, limit: LimitConfig, message_key: str = "error.rate_limit"):
        self.name = name
        self.limit = limit
        self.message_key = message_key
        self.clock = time.monotonic
        # key -> (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_sweep = None

    def reset(self) -> None:
        self._windows.clear()
        self._last_sweep = None

    def _sweep(self, now: float) -> None:
        """Drop expired windows, at most once per window length"""
        window = self.limit.window_seconds
        if self._last_sweep is not None and now - self._last_sweep < window:
            return
        self._last_sweep = now
        expired = [key for key, (start, _) in self._windows.items() if now - start >= window]
        for key in expired:
            del self._windows[key]

    def _key(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"rate:{self.name}:{client_ip}"

    async def _hit_redis(self, redis, key: str) -> Tuple[bool, int]:
        allowed, ttl = await redis.eval(
            LUA_FIXED_WINDOW,
            1,
            key,
            self.limit.max_requests,
            self.limit.window_seconds
        )
        return bool(allowed), int(ttl)

    def _hit_memory(self, key: str) -> Tuple[bool, int]:
        now = self.clock()
        window = self.limit.window_seconds
        self._sweep(now)
        start, count = self._windows.get(key, (now, 0))
        if now - start >= window:
            start, count = now, 0

        count += 1
        self._windows[key] = (start, count)

        if count > self.limit.max_requests:
            return False, max(1, int(start + window - now))
        return True, 0

    async def __call__(self, request: Request):
        if not config.rate_limit.enabled:
            return True

        key = self._key(request)
        redis = get_redis()

        if redis:
            try:
                allowed, ttl = await self._hit_redis(redis, key)
            except Exception:
                # Redis hiccup: count locally for this request
                allowed, ttl = self._hit_memory(key)
        else:
            allowed, ttl = self._hit_memory(key)

        if not allowed:
            locale = get_locale(request.headers.get("accept-language"))
            _ = functools.partial(i18n.get, locale=locale)
            raise HTTPException(
                status_code=429,
                detail=_(self.message_key, seconds=ttl),
                headers={"Retry-After": str(ttl)}
            )

        return True


global_limiter = FixedWindowRateLimiter("global", config.rate_limit.global_limit)
info_limiter = FixedWindowRateLimiter("info", config.rate_limit.info_limit)
download_limiter = FixedWindowRateLimiter(
    "download", config.rate_limit.download_limit, message_key="error.download_rate_limit"
)

ALL_LIMITERS = (global_limiter, info_limiter, download_limiter)
