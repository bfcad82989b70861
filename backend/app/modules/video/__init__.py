"""Video metadata module."""

from app.modules.video.models import Video
from app.modules.video.repository import VideoRepository
from app.modules.video.service import (
    VideoService,
    VideoServiceError,
    VideoNotFoundError,
    ForbiddenError,
    VideoStore,
    load_owned_video,
)

__all__ = [
    "Video",
    "VideoRepository",
    "VideoService",
    "VideoServiceError",
    "VideoNotFoundError",
    "ForbiddenError",
    "VideoStore",
    "load_owned_video",
]
