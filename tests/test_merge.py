import asyncio
import os

import pytest

from conftest import leftover_files, make_media, make_request
from ytmerge.core.errors import TranscodeFailure, UpstreamFetchFailure
from ytmerge.models.internal import DeliveryPlan, DeliveryType, StrategyKind
from ytmerge.services.merge import MergeDelivery
from ytmerge.utils.tempfiles import release

PLAN = DeliveryPlan(
    strategy=StrategyKind.MERGE_STREAMS,
    delivery_type=DeliveryType.VIDEO,
    primary="1080",
    audio="140",
)


@pytest.mark.asyncio
async def test_prepare_downloads_both_tracks_then_transcodes(upstream, work_dir):
    item = await MergeDelivery.prepare(make_request(), make_media(), PLAN)

    assert sorted(sel for _, sel in upstream.open_calls) == ["1080", "140"]
    assert upstream.merge_calls == [item.paths]
    with open(item.video_path, "rb") as f:
        assert f.read() == b"video-track"
    with open(item.audio_path, "rb") as f:
        assert f.read() == b"audio-track"
    with open(item.output_path, "rb") as f:
        assert f.read() == b"video-track|audio-track"

    release(item)
    assert leftover_files(work_dir) == []


@pytest.mark.asyncio
async def test_concurrent_merges_use_distinct_paths(upstream, work_dir):
    requests = 8
    items = await asyncio.gather(*[
        MergeDelivery.prepare(make_request(), make_media(), PLAN) for _ in range(requests)
    ])

    path_sets = {item.paths for item in items}
    all_paths = {p for item in items for p in item.paths}
    assert len(path_sets) == requests
    assert len(all_paths) == requests * 3

    for item in items:
        release(item)
    assert leftover_files(work_dir) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("failing", ["1080", "140"])
async def test_failed_download_cleans_up_and_skips_transcode(upstream, work_dir, failing):
    upstream.failing.add(failing)

    with pytest.raises(UpstreamFetchFailure) as exc_info:
        await MergeDelivery.prepare(make_request(), make_media(), PLAN)

    assert exc_info.value.message_key == "error.download_failed"
    assert upstream.merge_calls == []
    assert leftover_files(work_dir) == []


@pytest.mark.asyncio
async def test_broken_download_mid_stream_cleans_up(upstream, work_dir):
    upstream.broken.add("140")

    with pytest.raises(UpstreamFetchFailure):
        await MergeDelivery.prepare(make_request(), make_media(), PLAN)

    assert upstream.merge_calls == []
    assert leftover_files(work_dir) == []
    assert all(stream.closed for stream in upstream.streams)


@pytest.mark.asyncio
async def test_failed_download_cancels_the_other_one(upstream, work_dir):
    upstream.hanging.add("1080")
    upstream.failing.add("140")

    with pytest.raises(UpstreamFetchFailure):
        await asyncio.wait_for(
            MergeDelivery.prepare(make_request(), make_media(), PLAN),
            timeout=5,
        )

    video_stream = upstream.streams[0]
    assert video_stream.closed
    assert leftover_files(work_dir) == []


@pytest.mark.asyncio
async def test_transcode_failure_cleans_up(upstream, work_dir):
    upstream.transcode_error = "Invalid data found when processing input"

    with pytest.raises(TranscodeFailure):
        await MergeDelivery.prepare(make_request(), make_media(), PLAN)

    assert len(upstream.merge_calls) == 1
    assert leftover_files(work_dir) == []


@pytest.mark.asyncio
async def test_respond_sets_length_and_releases_after_streaming(upstream, work_dir):
    response = await MergeDelivery.respond(
        make_request(), make_media(), PLAN, {"Content-Disposition": 'attachment; filename="x.mp4"'}
    )

    assert response.headers["content-length"] == str(len(b"video-track|audio-track"))
    assert response.media_type == "video/mp4"
    assert len(leftover_files(work_dir)) == 3

    body = b"".join([chunk async for chunk in response.body_iterator])

    assert body == b"video-track|audio-track"
    assert leftover_files(work_dir) == []
    assert not os.path.exists(upstream.merge_calls[0][2])
