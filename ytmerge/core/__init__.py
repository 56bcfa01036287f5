from .errors import (
    DeliveryError,
    InvalidInput,
    StreamingFailure,
    TranscodeFailure,
    UnsupportedFormat,
    UpstreamFetchFailure,
)

__all__ = [
    "DeliveryError",
    "InvalidInput",
    "StreamingFailure",
    "TranscodeFailure",
    "UnsupportedFormat",
    "UpstreamFetchFailure",
]
