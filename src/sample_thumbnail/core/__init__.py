"""Sample data models, summary pyramid and the shared thumbnail cache."""

from .data_models import (
    Bit,
    Rect,
    SampleBuffer,
    SampleFrame,
    UninitializedCacheError,
    VisualizeParameters,
)
from .pyramid import Thumbnail, build_pyramid, generate, level_sizes, reduce_level, size_divisor
from .registry import (
    ThumbnailCacheEntry,
    ThumbnailHandle,
    ThumbnailRegistry,
    get_default_registry,
    reset_default_registry,
)

__all__ = [
    "Bit",
    "Rect",
    "SampleBuffer",
    "SampleFrame",
    "UninitializedCacheError",
    "VisualizeParameters",
    "Thumbnail",
    "build_pyramid",
    "generate",
    "level_sizes",
    "reduce_level",
    "size_divisor",
    "ThumbnailCacheEntry",
    "ThumbnailHandle",
    "ThumbnailRegistry",
    "get_default_registry",
    "reset_default_registry",
]
