"""
Transcoder Gateway - ffmpeg / ffprobe invocation

Produces Steam Deck friendly VP9/Opus WebM files:
- duration capped to settings.max_duration
- scaled to fit width x height, letterboxed with black padding
- constant-quality VP9 (CRF = settings.quality)

ffmpeg writes to "<target>.partial"; only a zero exit with a non-empty output
is renamed onto the target, so a file at the target path is always complete.
"""

import asyncio
import contextlib
import json
import os
from pathlib import Path
from typing import List

from steam_animation_daemon.errors import ProbeError, TranscodeError, TranscodeTimeoutError
from steam_animation_daemon.models.video import TranscodeSettings, VideoInfo
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TRANSCODE)

PARTIAL_SUFFIX = ".partial"
DEFAULT_TIMEOUT = 300.0  # 5 minutes
PROBE_TIMEOUT = 30.0
STDERR_TAIL_LINES = 10


def partial_path_for(target: Path) -> Path:
    return target.with_name(target.name + PARTIAL_SUFFIX)


def _stderr_tail(stderr: bytes) -> str:
    lines = stderr.decode("utf-8", errors="replace").strip().splitlines()
    return "\n".join(lines[-STDERR_TAIL_LINES:])


class TranscoderGateway:
    """
    Runs the external transcoder with a hard wall-clock timeout.

    Example:
        gateway = TranscoderGateway(timeout=300)
        await gateway.transcode(source, cache_dir / "3f2a9c01d4e5b6a7.webm", settings)
        info = await gateway.probe(cache_dir / "3f2a9c01d4e5b6a7.webm")
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe"):
        self.timeout = timeout
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe

    def build_command(self, source: Path, output: Path, settings: TranscodeSettings) -> List[str]:
        """ffmpeg argument vector for one transcode"""
        w, h = settings.width, settings.height
        return [
            self.ffmpeg,
            "-y",
            "-i", str(source),
            "-t", str(settings.max_duration),

            # Fit into the target frame, pad the rest black
            "-vf", f"scale={w}:{h}:force_original_aspect_ratio=decrease,pad={w}:{h}:-1:-1:black",

            "-c:v", "libvpx-vp9",
            "-crf", str(settings.quality),
            "-speed", "4",
            "-row-mt", "1",
            "-tile-columns", "2",
            "-frame-parallel", "1",

            # Only applied when the source has an audio stream
            "-c:a", "libopus",
            "-b:a", "64k",

            "-f", "webm",
            str(output),
        ]

    async def transcode(self, source: Path, target: Path, settings: TranscodeSettings) -> Path:
        """
        Transcode `source` into `target`.

        Returns:
            target, guaranteed to exist and be non-empty

        Raises:
            TranscodeTimeoutError: ffmpeg exceeded the timeout (process killed)
            TranscodeError: ffmpeg missing, non-zero exit, or empty output
        """
        partial = partial_path_for(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command(source, partial, settings)

        log.debug("Running ffmpeg", command=" ".join(cmd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise TranscodeError(f"Transcoder not found: {self.ffmpeg}", source=str(source))
        except OSError as e:
            raise TranscodeError(f"Failed to start transcoder: {e}", source=str(source))

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            self._discard(partial)
            log.error("Transcoding timed out", source=str(source), timeout=self.timeout)
            raise TranscodeTimeoutError(str(source), self.timeout)
        except asyncio.CancelledError:
            await self._kill(proc)
            self._discard(partial)
            raise

        if proc.returncode != 0:
            self._discard(partial)
            raise TranscodeError(
                f"ffmpeg exited with status {proc.returncode}",
                source=str(source),
                stderr=_stderr_tail(stderr or b""),
            )

        size = partial.stat().st_size if partial.exists() else 0
        if size == 0:
            self._discard(partial)
            raise TranscodeError("ffmpeg produced an empty output file", source=str(source))

        os.replace(partial, target)
        log.debug("Video processed successfully", output=str(target), bytes=size)
        return target

    async def probe(self, path: Path) -> VideoInfo:
        """
        Read duration / resolution / codec of a media file

        Raises:
            ProbeError: ffprobe missing, failed, or no video stream
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                self.ffprobe,
                "-v", "quiet",
                "-show_format",
                "-show_streams",
                "-of", "json",
                str(path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProbeError(f"Failed to start ffprobe: {e}", path=str(path))

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=PROBE_TIMEOUT)
        except asyncio.TimeoutError:
            await self._kill(proc)
            raise ProbeError("ffprobe timed out", path=str(path))

        if proc.returncode != 0:
            raise ProbeError(f"ffprobe failed: {_stderr_tail(stderr or b'')}", path=str(path))

        return self.parse_probe_output(stdout, path)

    @staticmethod
    def parse_probe_output(stdout: bytes, path: Path) -> VideoInfo:
        try:
            info = json.loads(stdout)
        except ValueError as e:
            raise ProbeError(f"Invalid ffprobe output: {e}", path=str(path))

        streams = info.get("streams") or []
        video = next((s for s in streams if s.get("codec_type") == "video"), None)
        if video is None:
            raise ProbeError("No video stream found", path=str(path))

        try:
            duration = float((info.get("format") or {}).get("duration", 0.0))
        except (TypeError, ValueError):
            duration = 0.0

        return VideoInfo(
            duration=duration,
            width=int(video.get("width") or 0),
            height=int(video.get("height") or 0),
            codec=str(video.get("codec_name", "")),
        )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()

    @staticmethod
    def _discard(partial: Path) -> None:
        try:
            partial.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warn("Failed to remove partial output", path=str(partial), error=str(e))
