import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkItem:
    """Temporary files backing one merge; owned by a single request"""
    video_path: str
    audio_path: str
    output_path: str

    @property
    def paths(self) -> Tuple[str, str, str]:
        return self.video_path, self.audio_path, self.output_path


def allocate(base_dir: str, title_slug: str) -> WorkItem:
    """
    Build three collision-resistant paths under base_dir.
    Nothing is created on disk except base_dir itself.
    """
    os.makedirs(base_dir, exist_ok=True)

    unique = f"{int(time.time() * 1000)}_{random.randint(0, 9999)}_{os.urandom(4).hex()}"
    stem = os.path.join(base_dir, f"{title_slug}_{unique}")

    return WorkItem(
        video_path=f"{stem}_video.mp4",
        audio_path=f"{stem}_audio.mp3",
        output_path=f"{stem}_merged.mp4",
    )


def release(item: WorkItem) -> None:
    """Delete whatever exists; safe to call more than once"""
    for path in item.paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Could not remove temp file {path}: {e}")
