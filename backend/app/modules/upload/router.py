"""Media upload API router.

Both endpoints take a multipart form with a single file field named after
the kind of media being uploaded.
"""

import uuid
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.core.config import settings
from app.core.database import get_db
from app.core.storage import LocalStorage, ObjectPublisher, get_asset_storage, get_publisher
from app.modules.auth.jwt import get_current_user_id
from app.modules.transcoding.toolkit import MediaToolkit, get_media_toolkit
from app.modules.upload.schemas import UploadRequest
from app.modules.upload.service import (
    ForbiddenError,
    InvalidRequestError,
    ProcessingFailedError,
    PublishFailedError,
    ThumbnailUploader,
    UploadError,
    UploadPipeline,
    VideoNotFoundError,
)
from app.modules.upload.staging import TempStagingStore
from app.modules.video.repository import VideoRepository
from app.modules.video.schemas import VideoResponse
from app.modules.video.service import VideoServiceError, VideoStore

router = APIRouter(tags=["uploads"])


@lru_cache
def get_staging_store() -> TempStagingStore:
    return TempStagingStore(settings.STAGING_DIR, chunk_size=settings.UPLOAD_CHUNK_SIZE)


@lru_cache
def get_object_publisher() -> ObjectPublisher:
    return get_publisher()


@lru_cache
def get_toolkit() -> MediaToolkit:
    return get_media_toolkit()


@lru_cache
def get_assets() -> LocalStorage:
    return get_asset_storage()


def get_video_store(db: AsyncSession = Depends(get_db)) -> VideoStore:
    return VideoRepository(db)


def parse_video_id(raw: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


async def build_upload_request(
    request: Request,
    user_id: uuid.UUID,
    raw_video_id: str,
    field: str,
) -> UploadRequest:
    """Turn a multipart request into an UploadRequest.

    A missing or non-file field yields no stream, which validation rejects.
    """
    form = await request.form()
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        upload = None

    return UploadRequest(
        user_id=user_id,
        video_id=parse_video_id(raw_video_id),
        stream=upload.file if upload else None,
        content_type=upload.content_type if upload else None,
        size=upload.size if upload else None,
    )


def to_http_exception(error: Exception) -> HTTPException:
    """Map pipeline errors onto HTTP status codes."""
    if isinstance(error, InvalidRequestError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, VideoNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, PublishFailedError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not store the uploaded file",
        )
    if isinstance(error, ProcessingFailedError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not process the uploaded video",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed")


@router.post("/video_upload/{video_id}")
async def upload_video(
    video_id: str,
    request: Request,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    toolkit: MediaToolkit = Depends(get_toolkit),
    publisher: ObjectPublisher = Depends(get_object_publisher),
    staging: TempStagingStore = Depends(get_staging_store),
):
    """Upload a video file, optimize it for streaming and publish it.

    Responds with an empty body once the record's video URL is saved.
    """
    upload = await build_upload_request(request, user_id, video_id, "video")
    pipeline = UploadPipeline(store, toolkit, publisher, staging)

    try:
        await pipeline.run(upload)
    except (UploadError, VideoServiceError, PublishFailedError) as e:
        raise to_http_exception(e)

    return Response(status_code=status.HTTP_200_OK)


@router.post("/thumbnail_upload/{video_id}", response_model=VideoResponse)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    user_id: uuid.UUID = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    assets: LocalStorage = Depends(get_assets),
):
    """Upload a JPEG or PNG thumbnail and return the updated video."""
    upload = await build_upload_request(request, user_id, video_id, "thumbnail")
    uploader = ThumbnailUploader(store, assets)

    try:
        return await uploader.run(upload)
    except (UploadError, VideoServiceError, PublishFailedError) as e:
        raise to_http_exception(e)
