from typing import List, NamedTuple
import asyncio
from ytmerge.config.settings import config

class CompletedProcess(NamedTuple):
    """Subprocess result"""
    returncode: int
    stdout: bytes
    stderr: bytes

class SubprocessExecutor:
    """Execute subprocess with consistent error handling"""

    @staticmethod
    async def run(
        cmd: List[str],
        timeout: float,
        capture_stderr: bool = True
    ) -> CompletedProcess:
        """
        Run subprocess with timeout and proper cleanup.
        The child is killed on timeout, error or cancellation.
        """
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE if capture_stderr else asyncio.subprocess.DEVNULL,
            stdin=asyncio.subprocess.DEVNULL
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )

            return CompletedProcess(
                returncode=process.returncode,
                stdout=stdout,
                stderr=stderr if capture_stderr else b""
            )

        except (Exception, asyncio.CancelledError):
            await SubprocessExecutor.kill(process)
            raise

    @staticmethod
    async def kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

class YTDLPCommandBuilder:
    """Build yt-dlp commands"""

    @staticmethod
    def _common() -> List[str]:
        cmd = [
            '--no-playlist',
            '--socket-timeout', str(config.download.socket_timeout),
            '--retries', str(config.download.retries),
        ]
        if config.ytdlp.js_runtime:
            cmd.extend(['--js-runtimes', config.ytdlp.js_runtime])
        return cmd

    @staticmethod
    def build_info_command(url: str) -> List[str]:
        """Build command for fetching video info"""
        return [
            config.ytdlp.binary,
            '--dump-json',
            *YTDLPCommandBuilder._common(),
            url,
        ]

    @staticmethod
    def build_stream_command(url: str, format_str: str) -> List[str]:
        """Build command writing the raw selected format to stdout"""
        # NOTE: Do NOT use --print here as it mixes with binary output in stdout
        return [
            config.ytdlp.binary,
            url,
            '-f', format_str,
            '-o', '-',
            *YTDLPCommandBuilder._common(),
            '--no-progress',
            '--quiet',
        ]

    @staticmethod
    def build_version_command() -> List[str]:
        return [config.ytdlp.binary, '--version']

class FFmpegCommandBuilder:
    """Build ffmpeg commands"""

    @staticmethod
    def build_merge_command(video_path: str, audio_path: str, output_path: str) -> List[str]:
        """Two inputs, one output; re-encode to widely playable codecs, overwrite output"""
        return [
            config.transcoder.ffmpeg_path,
            '-hide_banner',
            '-loglevel', 'error',
            '-i', video_path,
            '-i', audio_path,
            '-map', '0:v:0',
            '-map', '1:a:0',
            '-c:v', config.transcoder.video_codec,
            '-c:a', config.transcoder.audio_codec,
            '-y',
            output_path,
        ]

    @staticmethod
    def build_version_command() -> List[str]:
        return [config.transcoder.ffmpeg_path, '-version']
