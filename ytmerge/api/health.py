from fastapi import APIRouter

from ytmerge.config.settings import config
from ytmerge.core.state import state
from ytmerge.i18n import i18n

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "status": i18n.get("response.status_running"),
        "service": config.api.title,
        "version": config.api.version,
        "ytdlp_version": state.ytdlp_version,
        "ffmpeg_version": state.ffmpeg_version,
        "redis_enabled": state.redis is not None
    }


@router.get("/health")
async def health_check():
    """Lightweight health check"""
    redis_status = i18n.get("response.redis_disabled")
    if state.redis:
        try:
            await state.redis.ping()
            redis_status = i18n.get("response.redis_connected")
        except Exception:
            redis_status = i18n.get("response.redis_disconnected")

    return {
        "status": i18n.get("health.status"),
        "redis": redis_status
    }
