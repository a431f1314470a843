"""Tests for the Qt-backed canvas and raster implementations."""
import numpy as np
import pytest
from PySide6.QtGui import QColor, QImage, QPainter

from sample_thumbnail.config.settings import AppConfig
from sample_thumbnail.core.data_models import Bit, Rect, SampleBuffer, VisualizeParameters
from sample_thumbnail.core.registry import ThumbnailRegistry
from sample_thumbnail.gui.canvas import QtCanvas, QtRaster, qt_raster_factory
from sample_thumbnail.gui.sample_thumbnail import SampleThumbnail


def _alpha(image, x, y):
    return image.pixelColor(x, y).alpha()


def _painted_columns(image):
    return {x for x in range(image.width()) for y in range(image.height()) if _alpha(image, x, y) > 0}


@pytest.fixture
def sine_sample():
    t = np.arange(20_000) / 20_000
    values = 0.8 * np.sin(2 * np.pi * 5 * t)
    return SampleBuffer(name="sine.wav", left=values, right=values)


class TestQtRaster:
    """Tests for the QImage-backed raster."""

    def test_blank_raster_is_transparent(self, qapp):
        """Test that a new raster is fully transparent."""
        raster = QtRaster.blank(32, 16)

        assert (raster.width, raster.height) == (32, 16)
        assert _alpha(raster.image, 0, 0) == 0
        assert _alpha(raster.image, 31, 15) == 0

    def test_copy(self, qapp):
        """Test cropping a raster."""
        raster = qt_raster_factory(32, 16, "#c0c0c0")
        part = raster.copy(Rect(8, 0, 10, 16))
        assert (part.width, part.height) == (10, 16)

    def test_scaled_and_mirrored(self, qapp):
        """Test scaling and horizontal mirroring."""
        raster = QtRaster.blank(32, 16)

        assert raster.scaled(2.0, 0.5).width == 64
        mirrored = raster.scaled(-1.0, 1.0)
        assert (mirrored.width, mirrored.height) == (32, 16)

    def test_painter_canvas_uses_waveform_color(self, qapp):
        """Test that the raster painter uses the waveform color."""
        raster = QtRaster.blank(8, 8, "#ff0000")
        with raster.painter_canvas() as canvas:
            assert canvas.pen_color() == QColor("#ff0000")


class TestQtCanvas:
    """Tests for the QPainter-backed canvas."""

    def test_draw_segment_pair_paints_column(self, qapp):
        """Test that a segment pair paints its column and restores the pen."""
        image = QImage(10, 40, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(QColor(0, 0, 0, 0))
        painter = QPainter(image)
        color = QColor("#c0c0c0")
        painter.setPen(color)
        canvas = QtCanvas(painter)

        canvas.draw_segment_pair(5, 20, 10.0, Bit(max=1.0, min=-1.0, rms=0.5), color, canvas.lighter(color, 123))
        pen_after = painter.pen().color()
        painter.end()

        assert pen_after == color
        assert any(_alpha(image, x, 20) > 0 for x in (4, 5, 6))
        assert _alpha(image, 0, 20) == 0

    def test_blit(self, qapp):
        """Test blitting a raster into a target rect."""
        source = QtRaster.blank(4, 4)
        source.image.fill(QColor(255, 0, 0))
        image = QImage(10, 10, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(QColor(0, 0, 0, 0))

        painter = QPainter(image)
        QtCanvas(painter).blit(Rect(2, 2, 4, 4), source, Rect(0, 0, 4, 4))
        painter.end()

        assert image.pixelColor(3, 3) == QColor(255, 0, 0)
        assert _alpha(image, 8, 8) == 0


class TestQtThumbnail:
    """End-to-end rendering through QImage rasters."""

    def test_prerendered_rasters_are_painted(self, qapp, sine_sample):
        """Test that prerendered rasters contain the waveform."""
        thumbnail = SampleThumbnail(sine_sample, registry=ThumbnailRegistry(), config=AppConfig.default())
        try:
            smallest = thumbnail.rasters[-1]
            assert smallest.width == 16
            assert len(_painted_columns(smallest.image)) >= 15
        finally:
            thumbnail.release()

    @pytest.mark.parametrize("width", [300, 2000])
    def test_visualize_fills_target(self, qapp, sine_sample, width):
        """Test that visualize paints nearly every target column on both paths."""
        thumbnail = SampleThumbnail(sine_sample, registry=ThumbnailRegistry(), config=AppConfig.default())
        image = QImage(width, 60, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(QColor(0, 0, 0, 0))

        painter = QPainter(image)
        painter.setPen(QColor("#c0c0c0"))
        thumbnail.visualize(VisualizeParameters(clip_rect=Rect(0, 0, width, 60)), QtCanvas(painter))
        painter.end()
        thumbnail.release()

        painted = _painted_columns(image)
        assert len(painted) > width * 0.9
