import asyncio
import os

import pytest
from starlette.requests import Request

from ytmerge.config.settings import config
from ytmerge.core.errors import StreamingFailure, TranscodeFailure, UpstreamFetchFailure
from ytmerge.core.state import state
from ytmerge.infra.rate_limit import ALL_LIMITERS
from ytmerge.models.internal import FormatDescriptor, ResolvedMedia
from ytmerge.services.resolver import ContentResolver
from ytmerge.services.stream import MediaStream
from ytmerge.services.transcoder import FFmpegTranscoder

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def make_media(url: str = VIDEO_URL) -> ResolvedMedia:
    return ResolvedMedia(
        url=url,
        title="My: Video / Test?",
        thumbnail="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        channel="Test Channel",
        duration=187,
        formats=[
            FormatDescriptor(identifier="360", has_video=True, has_audio=True, ext="mp4"),
            FormatDescriptor(identifier="1080", has_video=True, has_audio=False, ext="mp4"),
            FormatDescriptor(identifier="140", has_video=False, has_audio=True, ext="m4a", abr=129.5),
        ],
        best_audio="140",
    )


def make_request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/download", "headers": []})


class FakeStream:
    def __init__(self, chunks, fail_after=None, hang=False):
        self.chunks = chunks
        self.fail_after = fail_after
        self.hang = hang
        self.closed = False

    async def iter_chunks(self):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise StreamingFailure("connection reset")
            yield chunk
            if self.hang:
                await asyncio.Event().wait()

    async def aclose(self):
        self.closed = True


class Upstream:
    """Stands in for yt-dlp and ffmpeg and records how they were called"""

    def __init__(self):
        self.resolve_calls = []
        self.open_calls = []
        self.merge_calls = []
        self.streams = []
        self.payloads = {
            "360": [b"direct-", b"video"],
            "1080": [b"video-", b"track"],
            "140": [b"audio-", b"track"],
        }
        self.failing = set()
        self.broken = set()
        self.hanging = set()
        self.transcode_error = None

    async def resolve(self, url):
        self.resolve_calls.append(url)
        return make_media(url)

    async def open(self, url, selector):
        self.open_calls.append((url, selector))
        await asyncio.sleep(0)
        if selector in self.failing:
            raise UpstreamFetchFailure(f"format {selector} unavailable")
        stream = FakeStream(
            self.payloads.get(selector, [b"data"]),
            fail_after=1 if selector in self.broken else None,
            hang=selector in self.hanging,
        )
        self.streams.append(stream)
        return stream

    async def merge(self, video_path, audio_path, output_path):
        self.merge_calls.append((video_path, audio_path, output_path))
        if self.transcode_error:
            raise TranscodeFailure(self.transcode_error)
        with open(video_path, "rb") as v, open(audio_path, "rb") as a, open(output_path, "wb") as out:
            out.write(v.read() + b"|" + a.read())
        return output_path


@pytest.fixture(autouse=True)
def work_dir(tmp_path, monkeypatch):
    path = tmp_path / "work"
    monkeypatch.setattr(config.download, "temp_dir", str(path))
    monkeypatch.setattr(state, "redis", None)
    for limiter in ALL_LIMITERS:
        limiter.reset()
    return path


@pytest.fixture
def upstream(monkeypatch):
    fake = Upstream()
    monkeypatch.setattr(ContentResolver, "resolve", fake.resolve)
    monkeypatch.setattr(MediaStream, "open", fake.open)
    monkeypatch.setattr(FFmpegTranscoder, "merge", fake.merge)
    return fake


def leftover_files(path) -> list:
    return os.listdir(path) if os.path.isdir(path) else []
