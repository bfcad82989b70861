"""Media upload module.

Video uploads run through the fast-start pipeline in ``service``;
thumbnails are stored as-is.
"""

from app.modules.upload.schemas import UploadPolicy, UploadRequest, build_object_key
from app.modules.upload.service import (
    InvalidRequestError,
    ProcessingFailedError,
    ThumbnailUploader,
    UploadError,
    UploadPipeline,
    validate_upload_request,
)
from app.modules.upload.staging import StagedArtifact, StagingScope, TempStagingStore

__all__ = [
    "UploadPolicy",
    "UploadRequest",
    "build_object_key",
    "InvalidRequestError",
    "ProcessingFailedError",
    "ThumbnailUploader",
    "UploadError",
    "UploadPipeline",
    "validate_upload_request",
    "StagedArtifact",
    "StagingScope",
    "TempStagingStore",
]
