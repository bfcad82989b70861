"""Request types and policies for media uploads."""

import secrets
import uuid
from dataclasses import dataclass
from typing import BinaryIO, Optional

from app.core.config import settings
from app.modules.transcoding.models import AspectClassification

# 32 random bytes, 256 bits of entropy
OBJECT_TOKEN_BYTES = 32


@dataclass
class UploadRequest:
    """One inbound upload, alive only for the duration of the HTTP call."""

    user_id: uuid.UUID
    video_id: Optional[uuid.UUID]
    stream: Optional[BinaryIO]
    content_type: Optional[str]
    size: Optional[int]


@dataclass(frozen=True)
class UploadPolicy:
    """Limits an upload must satisfy before anything is written."""

    max_bytes: int
    allowed_content_types: frozenset[str]
    media_label: str = "video"


def video_upload_policy() -> UploadPolicy:
    return UploadPolicy(
        max_bytes=settings.MAX_VIDEO_UPLOAD_BYTES,
        allowed_content_types=frozenset({settings.ALLOWED_VIDEO_CONTENT_TYPE}),
        media_label="video",
    )


def thumbnail_upload_policy() -> UploadPolicy:
    return UploadPolicy(
        max_bytes=settings.MAX_THUMBNAIL_UPLOAD_BYTES,
        allowed_content_types=frozenset(settings.ALLOWED_THUMBNAIL_CONTENT_TYPES),
        media_label="thumbnail",
    )


def generate_object_token() -> str:
    """Unguessable URL-safe token for file and object names."""
    return secrets.token_urlsafe(OBJECT_TOKEN_BYTES)


def extension_for(content_type: str) -> str:
    """``video/mp4`` -> ``mp4``, ``image/jpeg`` -> ``jpeg``."""
    return content_type.split("/", 1)[1]


def build_object_key(classification: AspectClassification, filename: str) -> str:
    """Storage key of the form ``<classification>/<filename>``."""
    return f"{classification.value}/{filename}"
