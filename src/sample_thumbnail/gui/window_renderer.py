"""Draw a fractional window of a sample from its thumbnail pyramid.

Picks the coarsest pyramid level that still has at least one Bit per pixel
column, maps every column of the target rect to a run of Bits, merges the
run and draws it as one vertical segment pair.
"""
from __future__ import annotations

from typing import Iterator

import numpy as np
from loguru import logger

from sample_thumbnail.config.settings import RasterConfig
from sample_thumbnail.core.data_models import UninitializedCacheError, VisualizeParameters
from sample_thumbnail.core.pyramid import Thumbnail
from sample_thumbnail.gui.canvas import Canvas


class WindowRenderer:
    """Renders VisualizeParameters queries against a list of pyramid levels.

    Attributes:
        levels: Pyramid levels, finest first
        config: Colour settings for the rms segment
    """

    def __init__(self, levels: list[Thumbnail], config: RasterConfig | None = None):
        if not levels:
            raise UninitializedCacheError("Nonexistent thumbnail cache.")
        self.levels = levels
        self.config = config or RasterConfig()

    def select_level(self, width_select: int, allow_high_resolution: bool) -> int:
        """Index of the level to draw from.

        Walks from the coarsest level towards finer ones and stops at the
        first level with at least ``width_select`` Bits. The finest level is
        only reachable when ``allow_high_resolution`` is set or it is the
        only level.
        """
        stop = 0 if allow_high_resolution or len(self.levels) == 1 else 1
        index = len(self.levels) - 1
        while index != stop and len(self.levels[index]) < width_select:
            index -= 1
        return index

    def column_spans(
        self, params: VisualizeParameters, level: Thumbnail
    ) -> Iterator[tuple[int, np.ndarray]]:
        """Yield (pixel column, Bit indices) for every column to draw.

        Indices are in merge order; with ``params.reversed`` each index ``t``
        is mirrored to ``t_last - t``.
        """
        clip, sample, view = params.effective_rects()
        width = sample.width
        if width < 1 or params.sample_view_length <= 0:
            return

        size = len(level)
        last_sample = max(int(params.sample_end * size), 1) - 1
        t_start = int(params.sample_start * size)
        t_last = min(last_sample, size - 1)
        view_size = t_last - t_start + 1
        if view_size < 1:
            return

        chunk = -(-view_size // width)
        x = sample.x
        first_column = max(x, clip.x, view.x)
        end_column = min(sample.right, clip.right, view.right)

        for column in range(first_column, end_column):
            t_index = t_start + (column - x) * view_size // width
            if t_index > t_last:
                break

            indices = np.arange(t_index, min(t_index + chunk, t_last + 1))
            if params.reversed:
                indices = t_last - indices
            yield column, indices

    def render(self, params: VisualizeParameters, canvas: Canvas) -> int:
        """Draw ``params`` onto ``canvas``.

        Returns:
            Number of columns drawn; 0 for degenerate geometry
        """
        clip, sample, _ = params.effective_rects()
        width = sample.width
        if width < 1 or params.sample_view_length <= 0:
            logger.debug(
                f"Skipping degenerate render: width={width}, "
                f"window=[{params.sample_start}, {params.sample_end}]"
            )
            return 0

        half_height = clip.height // 2
        center_row = clip.y + half_height
        scale = half_height * params.amplification

        color = canvas.pen_color()
        rms_color = canvas.lighter(color, self.config.rms_lighter_factor)

        width_select = int(width / params.sample_view_length)
        level_index = self.select_level(width_select, params.allow_high_resolution)
        level = self.levels[level_index]

        drawn = 0
        for column, indices in self.column_spans(params, level):
            canvas.draw_segment_pair(column, center_row, scale, level.aggregate(indices), color, rms_color)
            drawn += 1

        logger.debug(
            f"Rendered {drawn} columns from level {level_index}/{len(self.levels) - 1} "
            f"({len(level)} bits, width_select={width_select})"
        )
        return drawn
