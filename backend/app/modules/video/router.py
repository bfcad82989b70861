"""Video API router.

Implements REST endpoints for video metadata records.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.auth.jwt import get_current_user_id
from app.modules.video.schemas import VideoCreateRequest, VideoResponse
from app.modules.video.service import ForbiddenError, VideoNotFoundError, VideoService

router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    request: VideoCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a video record owned by the caller, ready for uploads."""
    service = VideoService(db)
    return await service.create_video(user_id, request)


@router.get("", response_model=list[VideoResponse])
async def list_videos(
    limit: int = 100,
    offset: int = 0,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's videos."""
    service = VideoService(db)
    return await service.list_videos(user_id, limit, offset)


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video(
    video_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get video by ID."""
    service = VideoService(db)

    try:
        return await service.get_video(video_id, user_id)
    except VideoNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
