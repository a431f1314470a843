"""Sample thumbnail facade.

Keep a SampleThumbnail alive for as long as a sample is shown. While any
facade holds the sample's cache entry, later facades for the same sample
reuse the pyramid instead of rebuilding it. Once every facade has been
released, the next registry cleanup evicts the entry.
"""
from __future__ import annotations

import weakref

from loguru import logger

from sample_thumbnail.config.settings import AppConfig, get_config
from sample_thumbnail.core.data_models import SampleBuffer, UninitializedCacheError, VisualizeParameters
from sample_thumbnail.core.pyramid import Thumbnail, build_pyramid
from sample_thumbnail.core.registry import (
    ThumbnailCacheEntry,
    ThumbnailHandle,
    ThumbnailRegistry,
    get_default_registry,
)
from sample_thumbnail.gui.canvas import Canvas, Raster, RasterFactory, qt_raster_factory
from sample_thumbnail.gui.raster_cache import RasterFastPath, prerender
from sample_thumbnail.gui.window_renderer import WindowRenderer


class SampleThumbnail:
    """Draws waveform thumbnails of one sample from a shared cache entry.

    Example:
        >>> thumbnail = SampleThumbnail(sample)
        >>> thumbnail.visualize(VisualizeParameters(clip_rect=Rect(0, 0, 300, 40)), canvas)
        >>> thumbnail.release()
    """

    def __init__(
        self,
        sample: SampleBuffer | None = None,
        *,
        registry: ThumbnailRegistry | None = None,
        config: AppConfig | None = None,
        raster_factory: RasterFactory | None = qt_raster_factory,
    ):
        """Look up or build the thumbnail cache for ``sample``.

        Args:
            sample: Sample to summarize; None leaves the facade uninitialized
            registry: Cache registry (default: process-wide registry)
            config: Pyramid and raster settings (default: global config)
            raster_factory: Creates prerender rasters; None disables the raster fast path
        """
        self.registry = registry if registry is not None else get_default_registry()
        self.config = config if config is not None else get_config()
        self.raster_factory = raster_factory
        self._handle: ThumbnailHandle | None = None
        self._finalizer: weakref.finalize | None = None

        if sample is None:
            return

        if self.select_from_registry(sample):
            return

        self.registry.cleanup()

        entry = self._handle.entry
        try:
            entry.levels = build_pyramid(sample, self.config.thumbnail)
            if self.raster_factory is not None:
                entry.rasters = prerender(self._renderer(), self.raster_factory, self.config.raster)
        except BaseException:
            logger.error(f"Failed to build thumbnail cache for '{sample.name}', dropping entry")
            self.release()
            self.registry.cleanup()
            raise

        logger.info(
            f"Created thumbnail cache for '{sample.name}': {len(entry.levels)} levels, "
            f"{len(entry.rasters)} rasters"
        )

    @property
    def is_initialized(self) -> bool:
        return self._handle is not None and self._handle.entry.is_populated

    @property
    def levels(self) -> tuple[Thumbnail, ...]:
        return tuple(self._entry().levels)

    @property
    def rasters(self) -> tuple[Raster, ...]:
        return tuple(self._entry().rasters)

    def visualize(self, params: VisualizeParameters, canvas: Canvas) -> None:
        """Draw ``params``, scaling a prerendered raster when the request is narrow enough.

        Raises:
            UninitializedCacheError: If no pyramid exists for this facade
        """
        fast_path = RasterFastPath(self._entry().rasters, self.config.raster)
        raster = fast_path.select(params)
        if raster is None:
            self.visualize_direct(params, canvas)
            return
        fast_path.draw(params, canvas, raster)

    def visualize_direct(self, params: VisualizeParameters, canvas: Canvas) -> None:
        """Draw ``params`` from the pyramid, bypassing the rasters.

        Raises:
            UninitializedCacheError: If no pyramid exists for this facade
        """
        self._renderer().render(params, canvas)

    def share(self) -> SampleThumbnail:
        """Another facade holding the same cache entry."""
        entry = self._entry()
        other = SampleThumbnail(registry=self.registry, config=self.config, raster_factory=self.raster_factory)
        other._hold(self.registry.acquire(self._handle.identity))
        if other._handle.entry is not entry:
            other.release()
            raise UninitializedCacheError(f"Cache entry for '{self._handle.identity}' was replaced.")
        return other

    def release(self) -> None:
        """Drop this facade's hold on its cache entry.

        Also runs when an unreleased facade is garbage-collected.
        """
        if self._finalizer is not None:
            self._finalizer()
            self._finalizer = None
        self._handle = None

    def __enter__(self) -> SampleThumbnail:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def select_from_registry(self, sample: SampleBuffer) -> bool:
        """Point this facade at the registry entry for ``sample``, reserving one if absent.

        Deprecated; kept as a test seam.

        Returns:
            True if an existing entry was found
        """
        self.release()
        handle, found = self.registry.lookup_or_reserve(sample.name)
        self._hold(handle)
        return found

    @staticmethod
    def clean_up_registry(registry: ThumbnailRegistry | None = None) -> list[str]:
        """Evict unreferenced entries from ``registry`` (default: process-wide registry).

        Deprecated; kept as a test seam.
        """
        registry = registry if registry is not None else get_default_registry()
        return registry.cleanup()

    def _hold(self, handle: ThumbnailHandle) -> None:
        self._handle = handle
        self._finalizer = weakref.finalize(self, handle.release)

    def _entry(self) -> ThumbnailCacheEntry:
        if self._handle is None:
            raise UninitializedCacheError("Nonexistent thumbnail cache.")
        return self._handle.entry

    def _renderer(self) -> WindowRenderer:
        return WindowRenderer(self._entry().levels, self.config.raster)
