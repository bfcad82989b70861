"""Transcoding module for video inspection and fast-start remuxing.

Wraps the ffprobe and ffmpeg binaries behind a small toolkit interface so
the upload pipeline can be exercised without them.
"""

from app.modules.transcoding.ffmpeg import (
    FastStartTranscoder,
    RemuxFailedError,
    build_faststart_command,
    processed_output_path,
)
from app.modules.transcoding.models import AspectClassification, VideoDimensions
from app.modules.transcoding.probe import (
    FFprobeIntrospector,
    MediaToolError,
    ProbeFailedError,
    build_probe_command,
    classify_aspect_ratio,
    parse_probe_output,
)
from app.modules.transcoding.toolkit import FFmpegMediaToolkit, MediaToolkit, get_media_toolkit

__all__ = [
    "AspectClassification",
    "VideoDimensions",
    "FFprobeIntrospector",
    "FastStartTranscoder",
    "FFmpegMediaToolkit",
    "MediaToolkit",
    "MediaToolError",
    "ProbeFailedError",
    "RemuxFailedError",
    "build_faststart_command",
    "build_probe_command",
    "classify_aspect_ratio",
    "get_media_toolkit",
    "parse_probe_output",
    "processed_output_path",
]
