"""Application configuration settings.

All configuration values are loaded from environment variables (.env file).
No sensitive values should be hardcoded here.
"""

import os
import tempfile
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "Video Upload Service"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Database - REQUIRED
    DATABASE_URL: str

    # Security - REQUIRED (no defaults for sensitive values)
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    CORS_ORIGINS: list[str] = []

    # Upload limits
    MAX_VIDEO_UPLOAD_BYTES: int = 1 << 30
    ALLOWED_VIDEO_CONTENT_TYPE: str = "video/mp4"
    MAX_THUMBNAIL_UPLOAD_BYTES: int = 10 << 20
    ALLOWED_THUMBNAIL_CONTENT_TYPES: list[str] = ["image/jpeg", "image/png"]

    # Scratch space for files being processed
    STAGING_DIR: str = os.path.join(tempfile.gettempdir(), "video-staging")
    UPLOAD_CHUNK_SIZE: int = 1 << 20

    # Thumbnails are served straight from disk
    ASSETS_ROOT: str = "./assets"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # External media tools
    FFPROBE_PATH: str = "ffprobe"
    FFMPEG_PATH: str = "ffmpeg"
    MEDIA_TOOL_TIMEOUT_SECONDS: Optional[float] = None  # None waits forever

    # Storage Configuration
    # STORAGE_BACKEND: s3, minio, local
    STORAGE_BACKEND: str = "s3"

    # Local Storage (when STORAGE_BACKEND=local)
    LOCAL_STORAGE_PATH: str = "./storage"

    # S3/MinIO/Compatible Storage (when STORAGE_BACKEND=s3 or minio)
    STORAGE_BUCKET: str = ""
    STORAGE_REGION: str = "us-east-1"
    STORAGE_ACCESS_KEY: str = ""
    STORAGE_SECRET_KEY: str = ""
    STORAGE_ENDPOINT_URL: Optional[str] = None  # Required for MinIO
    STORAGE_HOST: Optional[str] = None  # Defaults to s3.<region>.amazonaws.com
    STORAGE_USE_SSL: bool = True

    # Upload retry (1 attempt = no retry)
    STORAGE_UPLOAD_MAX_ATTEMPTS: int = 1
    STORAGE_UPLOAD_RETRY_DELAY_SECONDS: float = 1.0
    STORAGE_UPLOAD_RETRY_MAX_DELAY_SECONDS: float = 30.0

    # CDN Configuration (optional, for any backend)
    CDN_DOMAIN: Optional[str] = None
    CDN_ENABLED: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
