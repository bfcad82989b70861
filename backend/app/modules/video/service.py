"""Video service for metadata business logic."""

import uuid
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.video.models import Video
from app.modules.video.repository import VideoRepository
from app.modules.video.schemas import VideoCreateRequest


class VideoServiceError(Exception):
    """Base exception for video service errors."""

    pass


class VideoNotFoundError(VideoServiceError):
    """Raised when video is not found."""

    pass


class ForbiddenError(VideoServiceError):
    """Raised when the caller does not own the video."""

    pass


class VideoStore(Protocol):
    """Read/write access to video metadata records."""

    async def get_by_id(self, video_id: uuid.UUID) -> Optional[Video]:
        ...

    async def update(self, video: Video) -> Video:
        ...


async def load_owned_video(
    store: VideoStore,
    video_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Video:
    """Fetch a video and verify that ``user_id`` owns it.

    Ownership is always checked against the freshly loaded record.

    Raises:
        VideoNotFoundError: If no record exists for ``video_id``
        ForbiddenError: If the record belongs to someone else
    """
    video = await store.get_by_id(video_id)
    if video is None:
        raise VideoNotFoundError(f"Video {video_id} not found")
    if not video.is_owned_by(user_id):
        raise ForbiddenError("Not your video")
    return video


class VideoService:
    """Service for video metadata operations."""

    def __init__(self, session: AsyncSession):
        """Initialize service with database session."""
        self.session = session
        self.video_repo = VideoRepository(session)

    async def create_video(self, user_id: uuid.UUID, request: VideoCreateRequest) -> Video:
        """Create an empty video record owned by ``user_id``."""
        return await self.video_repo.create(
            user_id=user_id,
            title=request.title,
            description=request.description,
        )

    async def get_video(self, video_id: uuid.UUID, user_id: uuid.UUID) -> Video:
        """Get a video the caller owns."""
        return await load_owned_video(self.video_repo, video_id, user_id)

    async def list_videos(
        self,
        user_id: uuid.UUID,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Video]:
        return await self.video_repo.get_by_user_id(user_id, limit, offset)
