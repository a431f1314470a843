"""Prerendered full-sample rasters for cheap small-width redraws.

Each cache entry keeps a handful of rasters at fixed widths (widest first),
rendered once from the pyramid. A narrow request is answered by stretching
the widest raster that is not wider than the request.
"""
from __future__ import annotations

from loguru import logger

from sample_thumbnail.config.settings import RasterConfig
from sample_thumbnail.core.data_models import Rect, VisualizeParameters
from sample_thumbnail.gui.canvas import Canvas, Raster, RasterFactory
from sample_thumbnail.gui.window_renderer import WindowRenderer


def prerender(renderer: WindowRenderer, factory: RasterFactory, config: RasterConfig) -> list[Raster]:
    """Render the whole sample once per configured width.

    Returns:
        Rasters in the order of ``config.widths`` (descending width)
    """
    rasters = []
    for width in config.widths:
        raster = factory(width, config.height, config.waveform_color)
        params = VisualizeParameters(
            clip_rect=Rect(0, 0, width, config.height),
            amplification=1.0,
            reversed=False,
            allow_high_resolution=True,
        )
        with raster.painter_canvas() as canvas:
            renderer.render(params, canvas)
        rasters.append(raster)

    logger.debug(f"Prerendered {len(rasters)} rasters at widths {list(config.widths)}, height {config.height}")
    return rasters


def select_raster(rasters: list[Raster], width: int) -> Raster | None:
    """Widest raster whose width does not exceed ``width``.

    ``rasters`` must be sorted by descending width.
    """
    for raster in rasters:
        if raster.width <= width:
            return raster
    return None


class RasterFastPath:
    """Answers render queries by scaling a prerendered raster."""

    def __init__(self, rasters: list[Raster], config: RasterConfig | None = None):
        self.rasters = rasters
        self.config = config or RasterConfig()

    def select(self, params: VisualizeParameters) -> Raster | None:
        """Raster to use for ``params``, or None when the window renderer must draw."""
        _, sample, _ = params.effective_rects()
        if sample.width > self.config.width_limit:
            return None
        return select_raster(self.rasters, sample.width)

    def draw(self, params: VisualizeParameters, canvas: Canvas, raster: Raster) -> None:
        """Stretch ``raster`` onto the sample rect of ``params``.

        The raster always holds the full sample, so it is cropped to the
        sample rect's horizontal span and scaled by ``width / raster.width``
        whatever the fractional window is.
        """
        clip, sample, view = params.effective_rects()
        if sample.height < 1 or params.sample_view_length <= 0:
            return

        width_ratio = sample.width / raster.width * (-1.0 if params.reversed else 1.0)
        height_ratio = sample.height / raster.height
        span = Rect(sample.x, 0, sample.width, raster.height)
        scaled = raster.copy(span).scaled(width_ratio, height_ratio)

        target = sample.intersected(clip).intersected(view)
        if target.width < 1 or target.height < 1:
            return
        source = target.translated(-sample.x, -sample.y)
        canvas.blit(target, scaled, source)
