from typing import Optional

from pydantic import BaseModel


class VideoInfo(BaseModel):
    """Video information response"""
    title: str
    thumbnail: Optional[str] = None
    channel: Optional[str] = None
    duration: str


def format_duration(seconds: int) -> str:
    """m:ss; minutes are not wrapped into hours"""
    seconds = max(int(seconds or 0), 0)
    return f"{seconds // 60}:{seconds % 60:02d}"
