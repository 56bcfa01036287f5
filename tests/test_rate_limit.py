import pytest
from fastapi import HTTPException
from starlette.requests import Request

from ytmerge.config.settings import LimitConfig
from ytmerge.infra.rate_limit import FixedWindowRateLimiter


def make_request(host="10.0.0.1"):
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/download",
        "headers": [],
        "client": (host, 5000),
    })


@pytest.mark.asyncio
async def test_rejects_after_limit():
    limiter = FixedWindowRateLimiter("test", LimitConfig(max_requests=2, window_seconds=60))

    assert await limiter(make_request())
    assert await limiter(make_request())
    with pytest.raises(HTTPException) as exc_info:
        await limiter(make_request())

    assert exc_info.value.status_code == 429
    assert 1 <= int(exc_info.value.headers["Retry-After"]) <= 60


@pytest.mark.asyncio
async def test_clients_are_counted_separately():
    limiter = FixedWindowRateLimiter("test", LimitConfig(max_requests=1, window_seconds=60))

    assert await limiter(make_request("10.0.0.1"))
    assert await limiter(make_request("10.0.0.2"))


@pytest.mark.asyncio
async def test_window_resets():
    now = [1000.0]
    limiter = FixedWindowRateLimiter("test", LimitConfig(max_requests=1, window_seconds=60))
    limiter.clock = lambda: now[0]

    assert await limiter(make_request())
    with pytest.raises(HTTPException):
        await limiter(make_request())

    now[0] += 60
    assert await limiter(make_request())


@pytest.mark.asyncio
async def test_disabled_limiter_allows_everything(monkeypatch):
    from ytmerge.config.settings import config
    monkeypatch.setattr(config.rate_limit, "enabled", False)
    limiter = FixedWindowRateLimiter("test", LimitConfig(max_requests=1, window_seconds=60))

    for _ in range(5):
        assert await limiter(make_request())


@pytest.mark.asyncio
async def test_expired_windows_are_dropped():
    now = [1000.0]
    limiter = FixedWindowRateLimiter("test", LimitConfig(max_requests=5, window_seconds=60))
    limiter.clock = lambda: now[0]

    for i in range(500):
        assert await limiter(make_request(f"10.0.{i // 250}.{i % 250}"))
    assert len(limiter._windows) == 500

    now[0] += 3600
    assert await limiter(make_request("192.168.1.1"))
    assert list(limiter._windows) == ["rate:test:192.168.1.1"]


@pytest.mark.asyncio
async def test_sweep_keeps_live_windows():
    now = [1000.0]
    limiter = FixedWindowRateLimiter("test", LimitConfig(max_requests=1, window_seconds=60))
    limiter.clock = lambda: now[0]

    assert await limiter(make_request("10.0.0.1"))
    now[0] += 30
    assert await limiter(make_request("10.0.0.2"))
    now[0] += 40
    assert await limiter(make_request("10.0.0.3"))

    # 10.0.0.1 expired, 10.0.0.2 is still inside its window
    assert sorted(limiter._windows) == ["rate:test:10.0.0.2", "rate:test:10.0.0.3"]
    with pytest.raises(HTTPException):
        await limiter(make_request("10.0.0.2"))
