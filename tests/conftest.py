"""Shared fixtures and drawing doubles for thumbnail tests."""
import os
from contextlib import contextmanager

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest

from sample_thumbnail.config.settings import AppConfig, reset_config_manager
from sample_thumbnail.core.data_models import Rect, SampleBuffer
from sample_thumbnail.core.registry import ThumbnailRegistry, reset_default_registry


class RecordingCanvas:
    """Canvas double recording every draw call."""

    def __init__(self, color="pen"):
        self.color = color
        self.segments = []
        self.blits = []

    def pen_color(self):
        return self.color

    def lighter(self, color, factor):
        return f"{color}+{factor}"

    def draw_segment_pair(self, column, center_row, scale, unit, color, rms_color):
        self.segments.append((column, center_row, scale, unit, color, rms_color))

    def blit(self, target, raster, source):
        self.blits.append((target, raster, source))

    @property
    def columns(self):
        return [s[0] for s in self.segments]

    @property
    def units(self):
        return [s[3] for s in self.segments]


class FakeRaster:
    """Raster double that remembers how it was produced."""

    def __init__(self, width, height, color="#c0c0c0", history=()):
        self.width = width
        self.height = height
        self.color = color
        self.history = tuple(history)
        self.canvas = RecordingCanvas(color)

    @contextmanager
    def painter_canvas(self):
        yield self.canvas

    def copy(self, rect):
        return FakeRaster(rect.width, rect.height, self.color, self.history + (("copy", rect),))

    def scaled(self, sx, sy):
        return FakeRaster(
            round(abs(self.width * sx)),
            round(abs(self.height * sy)),
            self.color,
            self.history + (("scaled", sx, sy),),
        )


def fake_raster_factory(width, height, color):
    return FakeRaster(width, height, color)


@pytest.fixture(autouse=True)
def isolated_globals(tmp_path, monkeypatch):
    """Keep config files and the default registry local to each test."""
    monkeypatch.setenv("ST_CONFIG_DIR", str(tmp_path / "config"))
    reset_config_manager()
    reset_default_registry()
    yield
    reset_config_manager()
    reset_default_registry()


@pytest.fixture
def registry():
    return ThumbnailRegistry()


@pytest.fixture
def config():
    return AppConfig.default()


@pytest.fixture
def constant_sample():
    """4096 frames with both channels at 0.5."""
    n = 4096
    return SampleBuffer(name="constant.wav", left=np.full(n, 0.5), right=np.full(n, 0.5))


@pytest.fixture
def ramp_sample():
    """Sample whose amplitude grows with frame index, so every Bit is distinct."""
    n = 40_000
    values = np.linspace(-1.0, 1.0, n)
    return SampleBuffer(name="ramp.wav", left=values, right=values * 0.5)


@pytest.fixture
def canvas():
    return RecordingCanvas()


@pytest.fixture
def clip_rect():
    return Rect(0, 0, 200, 40)
