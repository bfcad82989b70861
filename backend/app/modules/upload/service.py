"""Upload processing pipeline.

A video upload is validated, staged to local disk, inspected for its
aspect ratio, remuxed for fast start, published to object storage under
``<classification>/<token>.<ext>`` and finally recorded on the video's
metadata. Staged files never outlive the request.
"""

import asyncio
import contextvars
import functools
import logging
from typing import Callable, Optional

from app.core.logging import log_context, log_error, log_info
from app.core.storage import LocalStorage, ObjectPublisher, PublishFailedError
from app.modules.transcoding.ffmpeg import processed_output_path
from app.modules.transcoding.models import AspectClassification
from app.modules.transcoding.probe import MediaToolError, classify_aspect_ratio
from app.modules.transcoding.toolkit import MediaToolkit
from app.modules.upload.schemas import (
    UploadPolicy,
    UploadRequest,
    build_object_key,
    extension_for,
    generate_object_token,
    thumbnail_upload_policy,
    video_upload_policy,
)
from app.modules.upload.staging import StagedArtifact, StagingLimitExceeded, StagingScope, TempStagingStore
from app.modules.video.models import Video
from app.modules.video.service import ForbiddenError, VideoNotFoundError, VideoStore, load_owned_video

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Base exception for upload errors."""

    pass


class InvalidRequestError(UploadError):
    """Raised when the upload request is malformed or breaks policy."""

    pass


class ProcessingFailedError(UploadError):
    """Raised when inspecting or remuxing the staged file failed."""

    pass


async def run_blocking(func: Callable, *args, **kwargs):
    """Run a blocking call in the default executor.

    The call sees the caller's context variables, so its log records keep
    the request's correlation ID.
    """
    loop = asyncio.get_running_loop()
    ctx = contextvars.copy_context()
    return await loop.run_in_executor(
        None, functools.partial(ctx.run, func, *args, **kwargs)
    )


def validate_upload_request(request: UploadRequest, policy: UploadPolicy) -> None:
    """Reject a request that must not reach staging.

    Raises:
        InvalidRequestError: If the target, file, size or type is unacceptable
    """
    if request.video_id is None:
        raise InvalidRequestError("Invalid video ID")
    if request.stream is None:
        raise InvalidRequestError(f"{policy.media_label.capitalize()} file missing")
    if request.size is not None and request.size > policy.max_bytes:
        raise InvalidRequestError("File size too big")
    if request.content_type not in policy.allowed_content_types:
        raise InvalidRequestError(
            f"Invalid {policy.media_label} format; allowed: "
            f"{', '.join(sorted(policy.allowed_content_types))}"
        )


class UploadPipeline:
    """Runs one video upload from request to persisted ``video_url``."""

    def __init__(
        self,
        store: VideoStore,
        toolkit: MediaToolkit,
        publisher: ObjectPublisher,
        staging: TempStagingStore,
        policy: Optional[UploadPolicy] = None,
        token_factory: Callable[[], str] = generate_object_token,
    ):
        self.store = store
        self.toolkit = toolkit
        self.publisher = publisher
        self.staging = staging
        self.policy = policy or video_upload_policy()
        self._token_factory = token_factory

    async def run(self, request: UploadRequest) -> Video:
        """Process an upload and return the updated video record.

        Raises:
            InvalidRequestError: Bad request, nothing staged
            VideoNotFoundError: Unknown video, nothing staged
            ForbiddenError: Caller does not own the video, nothing staged.
                If ownership changed during processing, the published
                object is removed again.
            ProcessingFailedError: ffprobe/ffmpeg failed, staged files removed
            PublishFailedError: Storage upload failed, staged files removed
        """
        validate_upload_request(request, self.policy)
        with log_context(video_id=str(request.video_id), user_id=str(request.user_id)):
            return await self._process(request)

    async def _process(self, request: UploadRequest) -> Video:
        await load_owned_video(self.store, request.video_id, request.user_id)

        filename = f"{self._token_factory()}.{extension_for(request.content_type)}"
        log_info(logger, "Processing video upload", declared_size=request.size)

        try:
            with self.staging.scope() as scope:
                original = await self._stage(scope, filename, request)
                classification = await self._classify(original)
                processed_path = await self._remux(scope, original)

                key = build_object_key(classification, filename)
                url = await run_blocking(
                    self.publisher.publish, processed_path, key, request.content_type
                )
        except (ProcessingFailedError, PublishFailedError) as e:
            log_error(
                logger,
                "Video upload failed",
                exception=e,
                kind=type(e).__name__,
            )
            raise

        # Ownership may have changed while we were processing
        try:
            video = await load_owned_video(self.store, request.video_id, request.user_id)
        except (ForbiddenError, VideoNotFoundError):
            await run_blocking(self.publisher.unpublish, key)
            raise
        video.video_url = url
        video = await self.store.update(video)

        log_info(
            logger,
            "Video upload complete",
            object_key=key,
            classification=classification.value,
        )
        return video

    async def _stage(
        self,
        scope: StagingScope,
        filename: str,
        request: UploadRequest,
    ) -> StagedArtifact:
        try:
            return await run_blocking(
                scope.stage, filename, request.stream, max_bytes=self.policy.max_bytes
            )
        except StagingLimitExceeded as e:
            raise InvalidRequestError("File size too big") from e

    async def _classify(self, artifact: StagedArtifact) -> AspectClassification:
        try:
            dimensions = await run_blocking(self.toolkit.probe, artifact.path)
        except MediaToolError as e:
            raise ProcessingFailedError(f"Could not inspect video: {e}") from e

        classification = classify_aspect_ratio(dimensions.width, dimensions.height)
        logger.info(
            "Classified video",
            extra={
                "width": dimensions.width,
                "height": dimensions.height,
                "classification": classification.value,
            },
        )
        return classification

    async def _remux(self, scope: StagingScope, artifact: StagedArtifact) -> str:
        expected = scope.track(processed_output_path(artifact.path))
        try:
            output_path = await run_blocking(self.toolkit.remux, artifact.path)
        except MediaToolError as e:
            raise ProcessingFailedError(f"Could not prepare video for streaming: {e}") from e

        if output_path != expected.path:
            scope.track(output_path)
        return output_path


class ThumbnailUploader:
    """Stores a thumbnail image as a static asset and records its URL."""

    def __init__(
        self,
        store: VideoStore,
        assets: LocalStorage,
        policy: Optional[UploadPolicy] = None,
        token_factory: Callable[[], str] = generate_object_token,
    ):
        self.store = store
        self.assets = assets
        self.policy = policy or thumbnail_upload_policy()
        self._token_factory = token_factory

    async def run(self, request: UploadRequest) -> Video:
        validate_upload_request(request, self.policy)
        video = await load_owned_video(self.store, request.video_id, request.user_id)

        key = f"{self._token_factory()}.{extension_for(request.content_type)}"
        result = await run_blocking(
            self.assets.upload_fileobj, request.stream, key, request.content_type
        )
        if not result.success:
            raise PublishFailedError(key, result.error_message or "unknown error")

        video.thumbnail_url = result.url
        video = await self.store.update(video)
        log_info(logger, "Thumbnail stored", video_id=str(video.id), object_key=key)
        return video


__all__ = [
    "UploadError",
    "InvalidRequestError",
    "ProcessingFailedError",
    "PublishFailedError",
    "VideoNotFoundError",
    "ForbiddenError",
    "UploadPipeline",
    "ThumbnailUploader",
    "validate_upload_request",
    "run_blocking",
]
