from typing import List, Optional

from pydantic import BaseModel

from ytmerge.core.errors import UnsupportedFormat
from ytmerge.models.internal import (
    DeliveryPlan,
    DeliveryType,
    FormatDescriptor,
    StrategyKind,
)


class MediaMetadata(BaseModel):
    """Media metadata"""
    ext: str
    media_type: str


VIDEO_METADATA = MediaMetadata(ext="mp4", media_type="video/mp4")
AUDIO_METADATA = MediaMetadata(ext="mp3", media_type="audio/mpeg")


class FormatSelector:
    """Decide how a request is delivered"""

    @staticmethod
    def select(
        formats: List[FormatDescriptor],
        quality: Optional[str],
        delivery_type: DeliveryType,
        best_audio: str,
    ) -> DeliveryPlan:
        """
        Audio requests always stream the best audio and ignore `quality`.
        Video requests stream the chosen format directly when it carries
        both tracks, otherwise pair it with the best audio for a merge.
        """
        if delivery_type == DeliveryType.AUDIO:
            return DeliveryPlan(
                strategy=StrategyKind.DIRECT_STREAM,
                delivery_type=delivery_type,
                primary=best_audio,
            )

        chosen = next((f for f in formats if f.identifier == quality), None)
        if chosen is None:
            raise UnsupportedFormat(f"format {quality!r} not offered")

        if chosen.has_video and chosen.has_audio:
            return DeliveryPlan(
                strategy=StrategyKind.DIRECT_STREAM,
                delivery_type=delivery_type,
                primary=chosen.identifier,
            )

        return DeliveryPlan(
            strategy=StrategyKind.MERGE_STREAMS,
            delivery_type=delivery_type,
            primary=chosen.identifier,
            audio=best_audio,
        )

    @staticmethod
    def get_metadata(delivery_type: DeliveryType) -> MediaMetadata:
        if delivery_type == DeliveryType.AUDIO:
            return AUDIO_METADATA
        return VIDEO_METADATA
