import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

SHORTS_PATTERN = re.compile(r"/shorts/([a-zA-Z0-9_-]+)")
VIDEO_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{11}$")

VALID_HOSTS = {
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
    "gaming.youtube.com",
    "youtube-nocookie.com",
    "www.youtube-nocookie.com",
}
SHORT_HOSTS = {"youtu.be"}
PATH_PREFIXES = ("embed", "v", "shorts", "live")


def normalize_url(raw_url: str) -> str:
    """
    Rewrite a /shorts/<id> link into the watch form.
    Anything else passes through untouched.
    """
    if "/shorts/" not in raw_url:
        return raw_url

    match = SHORTS_PATTERN.search(raw_url)
    if not match:
        return raw_url
    return WATCH_URL.format(video_id=match.group(1))


def extract_video_id(url: str) -> Optional[str]:
    """Return the 11-character video id, or None if the URL carries none"""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https"):
        return None

    host = (parsed.hostname or "").lower()
    segments = [s for s in parsed.path.split("/") if s]

    if host in SHORT_HOSTS:
        candidate = segments[0] if segments else None
    elif host in VALID_HOSTS:
        candidate = parse_qs(parsed.query).get("v", [None])[0]
        if candidate is None and len(segments) >= 2 and segments[0] in PATH_PREFIXES:
            candidate = segments[1]
    else:
        return None

    if candidate and VIDEO_ID_PATTERN.match(candidate):
        return candidate
    return None


def is_valid_url(url: str) -> bool:
    return extract_video_id(url) is not None
