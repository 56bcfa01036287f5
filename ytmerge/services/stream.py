import asyncio
from collections import deque
from contextlib import suppress
from typing import AsyncIterator, Awaitable, Callable, Dict

from fastapi import Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ytmerge.config.settings import config
from ytmerge.core.errors import StreamingFailure, UpstreamFetchFailure
from ytmerge.core.logging import log_error, log_info
from ytmerge.services.ytdlp import SubprocessExecutor, YTDLPCommandBuilder

STDERR_MAX_LINES = 50
STDERR_DRAIN_TIMEOUT = 1.0


class MediaStream:
    """
    Raw bytes of one format, read from yt-dlp's stdout.
    `open` waits for the first chunk so failures that happen before any
    byte is produced surface as UpstreamFetchFailure.
    """

    def __init__(self, process: asyncio.subprocess.Process, first_chunk: bytes, stderr_task: asyncio.Task,
                 stderr_lines: deque, chunk_size: int):
        self.process = process
        self.first_chunk = first_chunk
        self.stderr_task = stderr_task
        self.stderr_lines = stderr_lines
        self.chunk_size = chunk_size

    @classmethod
    async def open(cls, url: str, selector: str) -> "MediaStream":
        cmd = YTDLPCommandBuilder.build_stream_command(url, selector)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            raise UpstreamFetchFailure(f"yt-dlp could not be started: {e}")

        stderr_lines: deque = deque(maxlen=STDERR_MAX_LINES)

        async def drain_stderr():
            """Drain stderr to prevent buffer deadlock"""
            while True:
                data = await process.stderr.read(4096)
                if not data:
                    break
                stderr_lines.extend(
                    line.strip() for line in data.decode(errors="ignore").splitlines() if line.strip()
                )

        stderr_task = asyncio.create_task(drain_stderr())
        stream = cls(process, b"", stderr_task, stderr_lines, config.download.chunk_size)

        try:
            first_chunk = await process.stdout.read(stream.chunk_size)
        except (Exception, asyncio.CancelledError):
            await stream.aclose()
            raise

        if not first_chunk:
            returncode = await process.wait()
            await stream._stop_stderr(STDERR_DRAIN_TIMEOUT)
            raise UpstreamFetchFailure(
                f"yt-dlp produced no data for {selector} (exit {returncode}): {stream.error_summary()}"
            )

        stream.first_chunk = first_chunk
        return stream

    def error_summary(self) -> str:
        return "\n".join(self.stderr_lines)[:200]

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield every chunk; a non-zero exit after the data ends is a StreamingFailure"""
        yield self.first_chunk
        while True:
            chunk = await self.process.stdout.read(self.chunk_size)
            if not chunk:
                break
            yield chunk

        returncode = await self.process.wait()
        await self._stop_stderr(STDERR_DRAIN_TIMEOUT)
        if returncode != 0:
            raise StreamingFailure(f"yt-dlp exited with {returncode}: {self.error_summary()}")

    async def _stop_stderr(self, timeout: float = 0) -> None:
        """Let the drain reach EOF within `timeout`, then cancel it"""
        if timeout and not self.stderr_task.done():
            await asyncio.wait({self.stderr_task}, timeout=timeout)
        self.stderr_task.cancel()
        with suppress(asyncio.CancelledError):
            await self.stderr_task

    async def aclose(self) -> None:
        await SubprocessExecutor.kill(self.process)
        await self._stop_stderr()


class StreamDelivery:
    """Copy an async byte source to the client response"""

    @staticmethod
    def respond(request: Request, chunks: AsyncIterator[bytes], media_type: str,
                headers: Dict[str, str], on_close: Callable[[], Awaitable[None]]) -> StreamingResponse:
        """
        Headers are fixed here, before the first byte goes out. Anything
        that fails afterwards can only be logged; `on_close` always runs.
        """
        async def generate():
            sent = 0
            try:
                async for chunk in chunks:
                    sent += len(chunk)
                    yield chunk
                log_info(request, f"Delivery finished ({sent} bytes)", delivery_status="complete")
            except asyncio.CancelledError:
                log_error(request, f"Client went away after {sent} bytes", delivery_status="partial")
                raise
            except Exception as e:
                log_error(request, f"Stream error after {sent} bytes: {str(e)}", delivery_status="partial")
            finally:
                await on_close()

        return StreamingResponse(
            generate(),
            media_type=media_type,
            headers=headers,
            background=BackgroundTask(on_close),
        )
