"""Video Upload Service Backend Application.

Accepts user video uploads, optimizes them for streaming playback and
publishes them to object storage.

Modules:
    - core: Configuration, database, logging, object storage
    - modules.auth: Bearer token authentication
    - modules.video: Video metadata management
    - modules.transcoding: ffprobe/ffmpeg wrappers
    - modules.upload: Upload processing pipeline
"""

__version__ = "0.1.0"
