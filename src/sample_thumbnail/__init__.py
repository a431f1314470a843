"""Multi-resolution waveform thumbnails for audio samples."""

from sample_thumbnail.core import (
    Bit,
    Rect,
    SampleBuffer,
    SampleFrame,
    Thumbnail,
    ThumbnailRegistry,
    UninitializedCacheError,
    VisualizeParameters,
    build_pyramid,
    get_default_registry,
)
from sample_thumbnail.gui import SampleThumbnail

__version__ = "0.1.0"

__all__ = [
    "Bit",
    "Rect",
    "SampleBuffer",
    "SampleFrame",
    "SampleThumbnail",
    "Thumbnail",
    "ThumbnailRegistry",
    "UninitializedCacheError",
    "VisualizeParameters",
    "build_pyramid",
    "get_default_registry",
]
