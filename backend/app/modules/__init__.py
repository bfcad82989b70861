"""Application modules.

- auth: Bearer token validation
- video: Video metadata records
- transcoding: ffprobe inspection and fast-start remuxing
- upload: Thumbnail and video upload processing
"""
