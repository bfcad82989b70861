"""Video stream inspection with ffprobe."""

import json
import logging
import math
import subprocess
from typing import Optional

from app.modules.transcoding.models import (
    ASPECT_RATIO_TOLERANCE,
    LANDSCAPE_RATIO,
    PORTRAIT_RATIO,
    AspectClassification,
    VideoDimensions,
)

logger = logging.getLogger(__name__)


class MediaToolError(Exception):
    """Base exception for external media tool failures."""

    pass


class ProbeFailedError(MediaToolError):
    """Raised when ffprobe fails or its output cannot be understood."""

    pass


def classify_aspect_ratio(
    width: int,
    height: int,
    tolerance: float = ASPECT_RATIO_TOLERANCE,
) -> AspectClassification:
    """Bucket a frame size into portrait, landscape or other.

    Source dimensions rarely hit 16:9 or 9:16 exactly, so each reference
    ratio matches within an absolute tolerance.

    Args:
        width: Frame width in pixels
        height: Frame height in pixels
        tolerance: Allowed absolute distance from a reference ratio

    Returns:
        AspectClassification for the frame size
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid frame size {width}x{height}")

    ratio = width / height
    if math.isclose(ratio, PORTRAIT_RATIO, rel_tol=0, abs_tol=tolerance):
        return AspectClassification.PORTRAIT
    if math.isclose(ratio, LANDSCAPE_RATIO, rel_tol=0, abs_tol=tolerance):
        return AspectClassification.LANDSCAPE
    return AspectClassification.OTHER


def build_probe_command(ffprobe_path: str, input_path: str) -> list[str]:
    """Build the ffprobe command that reports the first video stream's size."""
    return [
        ffprobe_path,
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=width,height",
        "-of", "json",
        input_path,
    ]


def parse_probe_output(output: str) -> VideoDimensions:
    """Extract width and height from ffprobe JSON output.

    Expects ``{"streams": [{"width": W, "height": H}]}``.

    Raises:
        ProbeFailedError: If the output is not JSON or carries no usable size.
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ProbeFailedError(f"ffprobe output is not valid JSON: {e}") from e

    streams = data.get("streams") if isinstance(data, dict) else None
    if not streams:
        raise ProbeFailedError("ffprobe found no video stream")

    stream = streams[0]
    width = stream.get("width") if isinstance(stream, dict) else None
    height = stream.get("height") if isinstance(stream, dict) else None

    # bool is an int subclass; a true/false size is still garbage
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in (width, height)):
        raise ProbeFailedError(f"ffprobe reported non-numeric size: {stream!r}")
    if width <= 0 or height <= 0:
        raise ProbeFailedError(f"ffprobe reported invalid size {width}x{height}")

    return VideoDimensions(width=width, height=height)


class FFprobeIntrospector:
    """Reads stream dimensions from a local video file via ffprobe."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: Optional[float] = None):
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    def probe(self, input_path: str) -> VideoDimensions:
        """Return the primary video stream's dimensions.

        Raises:
            ProbeFailedError: On non-zero exit, timeout or unparseable output.
        """
        cmd = build_probe_command(self.ffprobe_path, input_path)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeFailedError(f"ffprobe timed out after {self.timeout}s") from e
        except OSError as e:
            raise ProbeFailedError(f"Could not run ffprobe: {e}") from e

        if result.returncode != 0:
            raise ProbeFailedError(
                f"ffprobe exited with status {result.returncode}: {result.stderr.strip()}"
            )

        dimensions = parse_probe_output(result.stdout)
        logger.debug(
            "Probed video",
            extra={"path": input_path, "width": dimensions.width, "height": dimensions.height},
        )
        return dimensions
