from typing import Optional

from fastapi import APIRouter, Request, Depends, Query

from ytmerge.core.errors import DeliveryError, UpstreamFetchFailure
from ytmerge.core.logging import log_info, log_error
from ytmerge.infra.rate_limit import info_limiter
from ytmerge.models.request import parse_source_url
from ytmerge.models.response import VideoInfo, format_duration
from ytmerge.services.resolver import ContentResolver
from ytmerge.utils.locale import safe_url_for_log
from ytmerge.i18n import i18n

router = APIRouter()

@router.get("/info", response_model=VideoInfo, dependencies=[Depends(info_limiter)])
async def get_video_info(request: Request, url: Optional[str] = Query(None, description="Video URL")):
    """Title, thumbnail, channel and duration for a video URL"""
    source_url = parse_source_url(url)
    log_info(request, i18n.get("log.fetching_info", url=safe_url_for_log(source_url)))

    try:
        media = await ContentResolver.resolve(source_url)
    except DeliveryError:
        raise
    except Exception as e:
        log_error(request, f"Video info error: {str(e)}")
        raise UpstreamFetchFailure(str(e))

    log_info(request, i18n.get("log.info_retrieved", title=media.title))
    return VideoInfo(
        title=media.title,
        thumbnail=media.thumbnail,
        channel=media.channel,
        duration=format_duration(media.duration),
    )
