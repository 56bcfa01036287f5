import asyncio
import os
from typing import AsyncIterator, Dict

import aiofiles
from fastapi import Request
from fastapi.responses import StreamingResponse

from ytmerge.config.settings import config
from ytmerge.core.errors import StreamingFailure, TranscodeFailure, UpstreamFetchFailure
from ytmerge.core.logging import log_info, log_error
from ytmerge.i18n import i18n
from ytmerge.models.internal import DeliveryPlan, ResolvedMedia
from ytmerge.services.stream import MediaStream, StreamDelivery
from ytmerge.services.transcoder import FFmpegTranscoder
from ytmerge.utils.filename import sanitize_title
from ytmerge.utils.tempfiles import WorkItem, allocate, release


class MergeDelivery:
    """
    Download video and audio tracks side by side, merge them with ffmpeg,
    then stream the result. Work files never outlive the request.
    """

    @staticmethod
    async def download_to(url: str, selector: str, path: str) -> None:
        """Write one remote stream to `path`"""
        try:
            stream = await MediaStream.open(url, selector)
        except UpstreamFetchFailure as e:
            raise UpstreamFetchFailure(e.reason, message_key="error.download_failed")

        try:
            async with aiofiles.open(path, "wb") as f:
                async for chunk in stream.iter_chunks():
                    await f.write(chunk)
        except (StreamingFailure, OSError) as e:
            raise UpstreamFetchFailure(f"{selector}: {e}", message_key="error.download_failed")
        finally:
            await stream.aclose()

    @staticmethod
    async def fetch_tracks(url: str, plan: DeliveryPlan, item: WorkItem) -> None:
        """
        Both downloads run together and both must finish. The first failure
        cancels the sibling so nothing is still writing when files are released.
        """
        tasks = [
            asyncio.create_task(MergeDelivery.download_to(url, plan.primary, item.video_path)),
            asyncio.create_task(MergeDelivery.download_to(url, plan.audio, item.audio_path)),
        ]
        try:
            await asyncio.gather(*tasks)
        except (Exception, asyncio.CancelledError):
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    @staticmethod
    async def prepare(request: Request, media: ResolvedMedia, plan: DeliveryPlan) -> WorkItem:
        """Produce the merged file; on any failure the work item is released before re-raising"""
        item = allocate(config.download.temp_dir, sanitize_title(media.title))
        log_info(request, i18n.get("log.merge_start", video=plan.primary, audio=plan.audio))

        try:
            await MergeDelivery.fetch_tracks(media.url, plan, item)
            log_info(request, i18n.get("log.merge_downloaded"))
            await FFmpegTranscoder.merge(item.video_path, item.audio_path, item.output_path)
        except (Exception, asyncio.CancelledError) as e:
            log_error(request, f"Merge failed: {str(e)}")
            release(item)
            raise

        return item

    @staticmethod
    async def read_file(path: str) -> AsyncIterator[bytes]:
        async with aiofiles.open(path, "rb") as f:
            while True:
                chunk = await f.read(config.download.chunk_size)
                if not chunk:
                    break
                yield chunk

    @staticmethod
    async def respond(request: Request, media: ResolvedMedia, plan: DeliveryPlan,
                      headers: Dict[str, str]) -> StreamingResponse:
        item = await MergeDelivery.prepare(request, media, plan)

        # Content-Length only exists once the merged file does
        try:
            file_size = os.path.getsize(item.output_path)
        except OSError as e:
            release(item)
            raise TranscodeFailure(f"merged output unavailable: {e}")

        log_info(request, i18n.get("log.merge_done", size=file_size / 1024 / 1024))

        async def cleanup():
            release(item)

        return StreamDelivery.respond(
            request,
            MergeDelivery.read_file(item.output_path),
            media_type="video/mp4",
            headers={**headers, "Content-Length": str(file_size)},
            on_close=cleanup,
        )
