import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from ytmerge.config.settings import config
from ytmerge.core.errors import UpstreamFetchFailure
from ytmerge.infra.redis import get_redis
from ytmerge.models.internal import FormatDescriptor, ResolvedMedia
from ytmerge.services.ytdlp import YTDLPCommandBuilder, SubprocessExecutor
from ytmerge.utils.hash import cache_key

logger = logging.getLogger(__name__)

INFO_CACHE_TTL = 300

NO_CODEC = (None, "none")


def _pick_thumbnail(info: Dict[str, Any]) -> Optional[str]:
    thumbnails = info.get("thumbnails") or []
    for thumb in reversed(thumbnails):
        if thumb.get("url"):
            return thumb["url"]
    return info.get("thumbnail")


def _to_descriptor(fmt: Dict[str, Any]) -> Optional[FormatDescriptor]:
    format_id = fmt.get("format_id")
    if format_id is None:
        return None
    return FormatDescriptor(
        identifier=str(format_id),
        has_video=fmt.get("vcodec") not in NO_CODEC,
        has_audio=fmt.get("acodec") not in NO_CODEC,
        ext=fmt.get("ext"),
        abr=fmt.get("abr") or fmt.get("tbr"),
    )


def best_audio_selector(formats: List[FormatDescriptor]) -> str:
    """
    Highest-bitrate audio-only format, or the configured generic
    selector when the listing has none.
    """
    audio_only = [f for f in formats if f.has_audio and not f.has_video]
    if not audio_only:
        return config.ytdlp.best_audio_format
    return max(audio_only, key=lambda f: f.abr or 0).identifier


def parse_info(url: str, info: Dict[str, Any]) -> ResolvedMedia:
    """Map yt-dlp's --dump-json document onto ResolvedMedia"""
    formats = [d for d in (_to_descriptor(f) for f in info.get("formats") or []) if d]

    return ResolvedMedia(
        url=url,
        title=info.get("title") or "Unknown",
        thumbnail=_pick_thumbnail(info),
        channel=info.get("channel") or info.get("uploader"),
        duration=int(info.get("duration") or 0),
        formats=formats,
        best_audio=best_audio_selector(formats),
    )


class ContentResolver:
    """Video metadata lookup through yt-dlp, cached in Redis"""

    @staticmethod
    async def resolve(url: str) -> ResolvedMedia:
        key = cache_key("info", url)
        redis = get_redis()

        if redis:
            try:
                cached = await redis.get(key)
                if cached:
                    return ResolvedMedia(**json.loads(cached))
            except Exception as e:
                logger.debug(f"Info cache read failed: {e}")

        cmd = YTDLPCommandBuilder.build_info_command(url)
        try:
            result = await SubprocessExecutor.run(cmd, timeout=config.download.info_timeout)
        except asyncio.TimeoutError:
            raise UpstreamFetchFailure("yt-dlp metadata lookup timed out")
        except OSError as e:
            raise UpstreamFetchFailure(f"yt-dlp could not be started: {e}")

        if result.returncode != 0:
            error_msg = result.stderr.decode(errors="ignore").strip()
            raise UpstreamFetchFailure(f"yt-dlp failed: {error_msg[:200]}")

        try:
            media = parse_info(url, json.loads(result.stdout.decode()))
        except ValueError as e:
            raise UpstreamFetchFailure(f"Unparseable yt-dlp output: {e}")

        if redis:
            try:
                await redis.setex(key, INFO_CACHE_TTL, media.model_dump_json())
            except Exception as e:
                logger.debug(f"Info cache write failed: {e}")

        return media
