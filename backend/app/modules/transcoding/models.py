"""Value types for media inspection and remuxing."""

from dataclasses import dataclass
from enum import Enum


class AspectClassification(str, Enum):
    """Orientation bucket of a video, used as the storage key prefix."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    OTHER = "other"


# Reference width/height ratios for each named bucket
PORTRAIT_RATIO = 9 / 16
LANDSCAPE_RATIO = 16 / 9
ASPECT_RATIO_TOLERANCE = 0.001


@dataclass(frozen=True)
class VideoDimensions:
    """Pixel size of the primary video stream."""

    width: int
    height: int
