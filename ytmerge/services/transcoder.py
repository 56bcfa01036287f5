import asyncio
import logging
import os

from ytmerge.config.settings import config
from ytmerge.core.errors import TranscodeFailure
from ytmerge.services.ytdlp import FFmpegCommandBuilder, SubprocessExecutor

logger = logging.getLogger(__name__)


class FFmpegTranscoder:
    """Merge separate video and audio files into one mp4"""

    @staticmethod
    async def merge(video_path: str, audio_path: str, output_path: str) -> str:
        cmd = FFmpegCommandBuilder.build_merge_command(video_path, audio_path, output_path)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = await SubprocessExecutor.run(cmd, timeout=config.download.transcode_timeout)
        except asyncio.TimeoutError:
            raise TranscodeFailure("ffmpeg timed out")
        except OSError as e:
            raise TranscodeFailure(f"ffmpeg could not be started: {e}")

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="ignore").strip()
            raise TranscodeFailure(f"ffmpeg exited with {result.returncode}: {stderr[-300:]}")

        if not os.path.isfile(output_path):
            raise TranscodeFailure(f"ffmpeg reported success but {output_path} is missing")

        return output_path
