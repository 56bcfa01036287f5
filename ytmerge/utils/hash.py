import hashlib


def cache_key(namespace: str, value: str) -> str:
    """Redis key with a stable 16-hex-digit digest of `value`"""
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]
    return f"{namespace}:{digest}"
