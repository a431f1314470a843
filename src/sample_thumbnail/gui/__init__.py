"""Rendering components for sample thumbnails."""
from .canvas import Canvas, QtCanvas, QtRaster, Raster, qt_raster_factory, segment_pair
from .raster_cache import RasterFastPath, prerender, select_raster
from .sample_thumbnail import SampleThumbnail
from .window_renderer import WindowRenderer

__all__ = [
    "Canvas",
    "QtCanvas",
    "QtRaster",
    "Raster",
    "qt_raster_factory",
    "segment_pair",
    "RasterFastPath",
    "prerender",
    "select_raster",
    "SampleThumbnail",
    "WindowRenderer",
]
