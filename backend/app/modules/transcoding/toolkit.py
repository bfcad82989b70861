"""The media tool seam used by the upload pipeline."""

from typing import Optional, Protocol

from app.core.config import settings
from app.modules.transcoding.ffmpeg import FastStartTranscoder
from app.modules.transcoding.models import VideoDimensions
from app.modules.transcoding.probe import FFprobeIntrospector


class MediaToolkit(Protocol):
    """Everything the pipeline needs from external media binaries."""

    def probe(self, input_path: str) -> VideoDimensions:
        ...

    def remux(self, input_path: str) -> str:
        ...


class FFmpegMediaToolkit:
    """MediaToolkit backed by the ffprobe and ffmpeg binaries."""

    def __init__(
        self,
        introspector: Optional[FFprobeIntrospector] = None,
        transcoder: Optional[FastStartTranscoder] = None,
    ):
        self.introspector = introspector or FFprobeIntrospector()
        self.transcoder = transcoder or FastStartTranscoder()

    def probe(self, input_path: str) -> VideoDimensions:
        return self.introspector.probe(input_path)

    def remux(self, input_path: str) -> str:
        return self.transcoder.remux(input_path)


def get_media_toolkit() -> MediaToolkit:
    """Build the toolkit from settings."""
    timeout = settings.MEDIA_TOOL_TIMEOUT_SECONDS
    return FFmpegMediaToolkit(
        introspector=FFprobeIntrospector(settings.FFPROBE_PATH, timeout=timeout),
        transcoder=FastStartTranscoder(settings.FFMPEG_PATH, timeout=timeout),
    )
