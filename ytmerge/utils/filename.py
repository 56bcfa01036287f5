import re

DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9_\-. ]")


def sanitize_title(title: str) -> str:
    """
    Reduce a title to [A-Za-z0-9_.- ] so it is safe in a header or a path.
    Spaces are kept as-is.
    """
    return DISALLOWED_CHARS.sub("", title or "")


def content_disposition(title: str, ext: str) -> str:
    name = sanitize_title(title).strip() or "download"
    return f'attachment; filename="{name}.{ext}"'
