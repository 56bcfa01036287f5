from .internal import (
    DeliveryPlan,
    DeliveryType,
    DownloadIntent,
    FormatDescriptor,
    ResolvedMedia,
    StrategyKind,
)
from .response import VideoInfo

__all__ = [
    "DeliveryPlan",
    "DeliveryType",
    "DownloadIntent",
    "FormatDescriptor",
    "ResolvedMedia",
    "StrategyKind",
    "VideoInfo",
]
