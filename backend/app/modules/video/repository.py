"""Persistence for video metadata records."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.video.models import Video


class VideoRepository:
    """Video reads and writes within one database session.

    Satisfies the ``VideoStore`` protocol the upload pipeline depends on.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID,
        title: str,
        description: Optional[str] = None,
    ) -> Video:
        """Insert an empty record owned by ``user_id``; media URLs start unset."""
        video = Video(user_id=user_id, title=title, description=description)
        self.session.add(video)
        await self.session.flush()
        await self.session.refresh(video)
        return video

    async def get_by_id(self, video_id: uuid.UUID) -> Optional[Video]:
        """Load a video by ID.

        ``populate_existing`` makes a second lookup in the same session
        re-read the row instead of returning the cached instance, so an
        ownership check after a long upload sees the current owner.
        """
        result = await self.session.execute(
            select(Video)
            .where(Video.id == video_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_user_id(
        self,
        user_id: uuid.UUID,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Video]:
        result = await self.session.execute(
            select(Video)
            .where(Video.user_id == user_id)
            .order_by(Video.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def update(self, video: Video) -> Video:
        """Flush changes made to ``video`` and return the refreshed row."""
        merged = await self.session.merge(video)
        await self.session.flush()
        await self.session.refresh(merged)
        return merged
