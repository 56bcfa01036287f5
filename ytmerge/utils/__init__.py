from .filename import content_disposition, sanitize_title
from .hash import cache_key
from .url import extract_video_id, is_valid_url, normalize_url

__all__ = [
    "cache_key",
    "content_disposition",
    "extract_video_id",
    "is_valid_url",
    "normalize_url",
    "sanitize_title",
]
