"""ffmpeg wrapper that concatenates clips through the concat demuxer."""

import asyncio
import logging
from pathlib import Path
from typing import List, Literal, Optional, Sequence

from clipmerge.utils.errors import TranscodeError, TranscodeTimeoutError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "videos.txt"
OUTPUT_NAME = "output.mp4"

REENCODE_ARGS = [
    "-c:v", "libx264",
    "-preset", "fast",
    "-crf", "23",
    "-c:a", "aac",
    "-b:a", "128k",
]
COPY_ARGS = ["-c", "copy"]

READ_CHUNK_SIZE = 64 * 1024


def quote_manifest_path(path: str) -> str:
    """Single-quote a path for the concat demuxer, escaping embedded quotes."""
    return "'" + path.replace("'", "'\\''") + "'"


def build_manifest(paths: Sequence[Path]) -> str:
    """One ``file '<path>'`` line per clip, in order."""
    return "\n".join(f"file {quote_manifest_path(str(p))}" for p in paths)


class TailBuffer:
    """Keeps only the last max_bytes of everything appended."""

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes
        self._data = bytearray()

    def append(self, chunk: bytes) -> None:
        self._data += chunk
        overflow = len(self._data) - self.max_bytes
        if overflow > 0:
            del self._data[:overflow]

    def __len__(self) -> int:
        return len(self._data)

    def getvalue(self) -> str:
        return self._data.decode("utf-8", errors="replace")


class Transcoder:
    """Runs ffmpeg as an external process."""

    def __init__(
        self,
        binary: str = "ffmpeg",
        mode: Literal["reencode", "copy"] = "reencode",
        timeout: float = 3600.0,
        max_output_bytes: int = 1024 * 1024 * 50,
    ) -> None:
        """
        Initialize the Transcoder.

        Args:
            binary: ffmpeg executable
            mode: 'reencode' to H.264/AAC, 'copy' to keep the input streams
            timeout: Deadline for one ffmpeg run in seconds
            max_output_bytes: Cap on captured stderr; the tail is kept
        """
        self.binary = binary
        self.mode = mode
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes

    def write_manifest(self, paths: Sequence[Path], workdir: Path) -> Path:
        manifest = workdir / MANIFEST_NAME
        manifest.write_text(build_manifest(paths), encoding="utf-8")
        return manifest

    def build_command(self, manifest: Path, output: Path) -> List[str]:
        codec_args = COPY_ARGS if self.mode == "copy" else REENCODE_ARGS
        return [
            self.binary,
            "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(manifest),
            *codec_args,
            str(output),
        ]

    async def _read_tail(self, stream: Optional[asyncio.StreamReader], buffer: TailBuffer) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            buffer.append(chunk)

    async def run(self, cmd: List[str], cwd: Path) -> str:
        """
        Execute ffmpeg and wait for it under the deadline.

        stdout is discarded and stderr is drained as it is produced, so memory
        stays within max_output_bytes however much ffmpeg writes.

        Returns:
            Tail of stderr (ffmpeg writes its progress there)

        Raises:
            TranscodeError: Non-zero exit or missing binary
            TranscodeTimeoutError: Deadline exceeded; the process is killed
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranscodeError(None, str(e))

        stderr = TailBuffer(self.max_output_bytes)
        try:
            await asyncio.wait_for(
                asyncio.gather(self._read_tail(process.stderr, stderr), process.wait()),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass  # already exited
            await process.wait()
            raise TranscodeTimeoutError(self.timeout, stderr.getvalue())

        stderr_text = stderr.getvalue()
        if process.returncode != 0:
            logger.error(f"ffmpeg exited with {process.returncode}: {stderr_text[-2000:]}")
            raise TranscodeError(process.returncode, stderr_text)

        return stderr_text

    async def concatenate(self, clips: Sequence[Path], workdir: Path) -> Path:
        """
        Concatenate clips in order into workdir/output.mp4.

        Returns:
            Path of the produced file
        """
        manifest = self.write_manifest(clips, workdir)
        output = workdir / OUTPUT_NAME
        await self.run(self.build_command(manifest, output), cwd=workdir)

        if not output.exists():
            raise TranscodeError(0, f"ffmpeg reported success but {output.name} is missing")

        logger.info(f"Concatenated {len(clips)} clips ({self.mode}) into {output}")
        return output


def create_transcoder() -> Transcoder:
    """Create a Transcoder instance using application settings."""
    from clipmerge.config import get_settings

    settings = get_settings()
    return Transcoder(
        binary=settings.ffmpeg_binary,
        mode=settings.transcode_mode,
        timeout=settings.transcode_timeout_seconds,
        max_output_bytes=settings.transcode_max_output_bytes,
    )
