from typing import Optional

from ytmerge.core.errors import InvalidInput
from ytmerge.models.internal import DeliveryType, DownloadIntent
from ytmerge.utils.url import is_valid_url, normalize_url


def parse_source_url(raw_url: Optional[str]) -> str:
    """Normalize and validate; raises InvalidInput before anything else runs"""
    if not raw_url:
        raise InvalidInput("missing url")

    url = normalize_url(raw_url.strip())
    if not is_valid_url(url):
        raise InvalidInput(f"not a video URL: {url}")
    return url


def to_intent(raw_url: Optional[str], quality: Optional[str], delivery_type: DeliveryType) -> DownloadIntent:
    """Convert query parameters to a download intent"""
    return DownloadIntent(
        url=parse_source_url(raw_url),
        quality=quality,
        delivery_type=delivery_type,
    )
