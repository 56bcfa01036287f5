from typing import Optional
import redis.asyncio as aioredis
from rich.console import Console
from ytmerge.config.settings import config
from ytmerge.core.state import state

console = Console()

async def init_redis() -> Optional[aioredis.Redis]:
    """Connect to Redis; limiters and caches fall back to process memory without it"""
    if not config.redis.enabled:
        console.print("[dim]Redis disabled, using in-process limiter state[/dim]")
        return None

    try:
        redis_client = aioredis.from_url(
            config.redis.url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=config.redis.socket_timeout
        )
        await redis_client.ping()
        console.print("[green]✓ Redis connected[/green]")
        return redis_client
    except Exception as e:
        console.print(f"[yellow]⚠ Redis connection failed: {str(e)}[/yellow]")
        return None

def get_redis() -> Optional[aioredis.Redis]:
    """Get Redis client from state"""
    return state.redis

async def close_redis() -> None:
    """Close Redis connection"""
    if state.redis:
        await state.redis.aclose()
        state.redis = None
        console.print("[dim]✓ Redis connection closed[/dim]")
