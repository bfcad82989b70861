"""FFmpeg fast-start remuxing.

Rewrites an MP4 so its moov atom sits at the front of the file, letting
players start before the whole file has downloaded. Streams are copied,
never re-encoded.
"""

import logging
import os
import subprocess
from typing import Optional

from app.modules.transcoding.probe import MediaToolError

logger = logging.getLogger(__name__)

PROCESSED_MARKER = "processed"


class RemuxFailedError(MediaToolError):
    """Raised when ffmpeg could not produce the fast-start copy."""

    pass


def processed_output_path(input_path: str) -> str:
    """Derive the remux output path: ``dir/name.ext`` -> ``dir/name.processed.ext``."""
    root, ext = os.path.splitext(input_path)
    return f"{root}.{PROCESSED_MARKER}{ext}"


def build_faststart_command(ffmpeg_path: str, input_path: str, output_path: str) -> list[str]:
    """Build the ffmpeg command for a lossless fast-start remux.

    Args:
        ffmpeg_path: Path to ffmpeg binary
        input_path: Source video
        output_path: Destination for the remuxed copy

    Returns:
        FFmpeg command as list of arguments
    """
    return [
        ffmpeg_path,
        "-i", input_path,
        "-movflags", "faststart",
        "-map_metadata", "0",
        "-codec", "copy",
        "-f", "mp4",
        output_path,
    ]


class FastStartTranscoder:
    """Produces a streaming-optimized copy of a local video file."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout: Optional[float] = None):
        """Initialize transcoder.

        Args:
            ffmpeg_path: Path to ffmpeg binary
            timeout: Seconds to wait for ffmpeg, None to wait indefinitely
        """
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def remux(self, input_path: str) -> str:
        """Write the fast-start copy next to the input and return its path.

        The caller owns the returned file and must delete it.

        Raises:
            RemuxFailedError: If ffmpeg exits non-zero, times out or cannot run.
        """
        output_path = processed_output_path(input_path)
        cmd = build_faststart_command(self.ffmpeg_path, input_path, output_path)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise RemuxFailedError(f"ffmpeg timed out after {self.timeout}s") from e
        except OSError as e:
            raise RemuxFailedError(f"Could not run ffmpeg: {e}") from e

        if result.returncode != 0:
            # ffmpeg is chatty on stderr; the tail holds the actual error
            stderr_tail = "\n".join(result.stderr.strip().splitlines()[-5:])
            raise RemuxFailedError(
                f"ffmpeg exited with status {result.returncode}: {stderr_tail}"
            )

        logger.debug("Remuxed for fast start", extra={"input": input_path, "output": output_path})
        return output_path
