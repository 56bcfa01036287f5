from typing import Optional

from fastapi import APIRouter, Request, Depends, Query
from fastapi.responses import StreamingResponse

from ytmerge.core.errors import DeliveryError, UpstreamFetchFailure
from ytmerge.core.logging import log_info, log_error
from ytmerge.infra.rate_limit import download_limiter
from ytmerge.i18n import i18n
from ytmerge.models.internal import DeliveryType, DownloadIntent, StrategyKind
from ytmerge.models.request import to_intent
from ytmerge.services.format import FormatSelector
from ytmerge.services.merge import MergeDelivery
from ytmerge.services.resolver import ContentResolver
from ytmerge.services.stream import MediaStream, StreamDelivery
from ytmerge.utils.filename import content_disposition
from ytmerge.utils.locale import safe_url_for_log

router = APIRouter()


async def deliver(request: Request, intent: DownloadIntent) -> StreamingResponse:
    media = await ContentResolver.resolve(intent.url)
    plan = FormatSelector.select(media.formats, intent.quality, intent.delivery_type, media.best_audio)
    metadata = FormatSelector.get_metadata(intent.delivery_type)

    headers = {
        "Content-Disposition": content_disposition(media.title, metadata.ext),
        "X-Content-Type-Options": "nosniff",
        "Cache-Control": "no-cache",
    }

    if plan.strategy == StrategyKind.MERGE_STREAMS:
        return await MergeDelivery.respond(request, media, plan, headers)

    log_info(request, i18n.get("log.direct_stream", selector=plan.primary))
    try:
        stream = await MediaStream.open(intent.url, plan.primary)
    except UpstreamFetchFailure as e:
        raise UpstreamFetchFailure(e.reason, message_key="error.download_failed")

    return StreamDelivery.respond(
        request,
        stream.iter_chunks(),
        media_type=metadata.media_type,
        headers=headers,
        on_close=stream.aclose,
    )


@router.get("/download", dependencies=[Depends(download_limiter)])
async def download_video(
    request: Request,
    url: Optional[str] = Query(None, description="Video URL"),
    quality: Optional[str] = Query(None, description="Format identifier (itag)"),
    delivery_type: DeliveryType = Query(DeliveryType.VIDEO, alias="type", description="video or audio"),
):
    """Stream the requested format, merging separate tracks when needed"""
    intent = to_intent(url, quality, delivery_type)
    log_info(request, i18n.get(
        "log.starting_download",
        url=safe_url_for_log(intent.url),
        quality=intent.quality,
        type=intent.delivery_type.value,
    ))

    try:
        return await deliver(request, intent)
    except DeliveryError:
        raise
    except Exception as e:
        log_error(request, f"Download error: {str(e)}")
        raise UpstreamFetchFailure(str(e), message_key="error.server_error")
