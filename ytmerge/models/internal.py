from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class DeliveryType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


class StrategyKind(str, Enum):
    DIRECT_STREAM = "direct_stream"
    MERGE_STREAMS = "merge_streams"


class DownloadIntent(BaseModel):
    """Internal download intent (separated from HTTP concerns)"""
    url: str
    quality: Optional[str]
    delivery_type: DeliveryType


class FormatDescriptor(BaseModel):
    """One fetchable stream as reported by the resolver"""
    identifier: str
    has_video: bool
    has_audio: bool
    ext: Optional[str] = None
    abr: Optional[float] = None


class ResolvedMedia(BaseModel):
    """Resolver output for one URL"""
    url: str
    title: str
    thumbnail: Optional[str] = None
    channel: Optional[str] = None
    duration: int = 0
    formats: List[FormatDescriptor] = []
    best_audio: str = "bestaudio"


class DeliveryPlan(BaseModel):
    """Strategy decision; the selectors are handed to the stream source"""
    strategy: StrategyKind
    delivery_type: DeliveryType
    primary: str
    audio: Optional[str] = None
