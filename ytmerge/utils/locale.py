from typing import Optional
from urllib.parse import urlparse
from ytmerge.config.settings import config


def get_locale(accept_language: Optional[str] = None) -> str:
    """First supported primary language tag from Accept-Language, in header order"""
    for entry in (accept_language or "").split(","):
        tag = entry.split(";")[0].strip().split("-")[0].lower()
        if tag in config.i18n.supported_locales:
            return tag
    return config.i18n.default_locale


def safe_url_for_log(url: str) -> str:
    """Drop the query string unless running at DEBUG"""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "invalid_url"

    base_url = f"{parsed.scheme}://{parsed.netloc}{parsed.path}"
    if config.logging.level == "DEBUG" and parsed.query:
        return f"{base_url}?{parsed.query}"
    return base_url
