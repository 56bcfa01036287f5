import pytest

from conftest import make_media
from ytmerge.core.errors import UnsupportedFormat
from ytmerge.models.internal import DeliveryType, StrategyKind
from ytmerge.services.format import FormatSelector

FORMATS = make_media().formats


@pytest.mark.parametrize("quality", [None, "360", "1080", "does-not-exist"])
def test_audio_ignores_quality(quality):
    plan = FormatSelector.select(FORMATS, quality, DeliveryType.AUDIO, best_audio="140")
    assert plan.strategy == StrategyKind.DIRECT_STREAM
    assert plan.primary == "140"
    assert plan.audio is None


def test_audio_works_without_formats():
    plan = FormatSelector.select([], None, DeliveryType.AUDIO, best_audio="bestaudio")
    assert plan.strategy == StrategyKind.DIRECT_STREAM
    assert plan.primary == "bestaudio"


def test_format_with_both_tracks_streams_directly():
    plan = FormatSelector.select(FORMATS, "360", DeliveryType.VIDEO, best_audio="140")
    assert plan.strategy == StrategyKind.DIRECT_STREAM
    assert plan.primary == "360"


def test_video_only_format_is_merged_with_best_audio():
    plan = FormatSelector.select(FORMATS, "1080", DeliveryType.VIDEO, best_audio="140")
    assert plan.strategy == StrategyKind.MERGE_STREAMS
    assert plan.primary == "1080"
    assert plan.audio == "140"


@pytest.mark.parametrize("quality", [None, "", "22", "1080p"])
def test_unknown_video_format_is_rejected(quality):
    with pytest.raises(UnsupportedFormat) as exc_info:
        FormatSelector.select(FORMATS, quality, DeliveryType.VIDEO, best_audio="140")
    assert exc_info.value.status_code == 400


def test_metadata_per_delivery_type():
    assert FormatSelector.get_metadata(DeliveryType.VIDEO).media_type == "video/mp4"
    audio = FormatSelector.get_metadata(DeliveryType.AUDIO)
    assert (audio.ext, audio.media_type) == ("mp3", "audio/mpeg")
