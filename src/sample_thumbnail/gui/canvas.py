"""Drawing and raster capabilities used by the thumbnail renderers.

Renderers only talk to the ``Canvas`` and ``Raster`` protocols. The Qt
implementations paint immediately through a QPainter (``QtCanvas``) or into
an offscreen QImage (``QtRaster``).
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Protocol

from PySide6.QtCore import QLineF, QPointF, QRect, QRectF
from PySide6.QtGui import QColor, QImage, QPainter, QTransform

from sample_thumbnail.core.data_models import Bit, Rect


def segment_pair(
    unit: Bit, column: float, center_row: float, scale: float
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Geometry of one waveform column.

    Returns:
        ((x, y1, y2), (x, rms_y1, rms_y2)): the min/max segment and the
        rms segment, the latter spanning [-rms, rms] clamped to [min, max]
    """
    line_y1 = center_row - unit.max * scale
    line_y2 = center_row - unit.min * scale

    max_rms = min(max(unit.rms, unit.min), unit.max)
    min_rms = min(max(-unit.rms, unit.min), unit.max)

    rms_y1 = center_row - max_rms * scale
    rms_y2 = center_row - min_rms * scale

    return (column, line_y1, line_y2), (column, rms_y1, rms_y2)


class Canvas(Protocol):
    """Something the renderers can draw waveform columns and rasters onto."""

    def pen_color(self) -> Any: ...

    def lighter(self, color: Any, factor: int) -> Any: ...

    def draw_segment_pair(
        self, column: float, center_row: float, scale: float, unit: Bit, color: Any, rms_color: Any
    ) -> None: ...

    def blit(self, target: Rect, raster: Raster, source: Rect) -> None: ...


class Raster(Protocol):
    """An offscreen image the fast path can prerender into and copy from."""

    width: int
    height: int

    def painter_canvas(self) -> Any: ...

    def copy(self, rect: Rect) -> Raster: ...

    def scaled(self, sx: float, sy: float) -> Raster: ...


RasterFactory = Callable[[int, int, str], Raster]


def _qrect(rect: Rect) -> QRect:
    return QRect(rect.x, rect.y, rect.width, rect.height)


class QtCanvas:
    """Canvas painting through an active QPainter."""

    def __init__(self, painter: QPainter):
        self.painter = painter

    def pen_color(self) -> QColor:
        return self.painter.pen().color()

    def lighter(self, color: QColor, factor: int) -> QColor:
        return color.lighter(factor)

    def draw_segment_pair(
        self,
        column: float,
        center_row: float,
        scale: float,
        unit: Bit,
        color: QColor,
        rms_color: QColor,
    ) -> None:
        (x, y1, y2), (_, rms_y1, rms_y2) = segment_pair(unit, column, center_row, scale)

        self.painter.drawLine(QLineF(QPointF(x, y1), QPointF(x, y2)))
        self.painter.setPen(rms_color)

        self.painter.drawLine(QLineF(QPointF(x, rms_y1), QPointF(x, rms_y2)))
        self.painter.setPen(color)

    def blit(self, target: Rect, raster: QtRaster, source: Rect) -> None:
        self.painter.drawImage(QRectF(_qrect(target)), raster.image, QRectF(_qrect(source)))


class QtRaster:
    """Raster backed by a premultiplied ARGB QImage."""

    def __init__(self, image: QImage, color: str = "#c0c0c0"):
        self.image = image
        self.color = color

    @classmethod
    def blank(cls, width: int, height: int, color: str = "#c0c0c0") -> QtRaster:
        image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(QColor(0, 0, 0, 0))
        return cls(image, color)

    @property
    def width(self) -> int:
        return self.image.width()

    @property
    def height(self) -> int:
        return self.image.height()

    @contextmanager
    def painter_canvas(self) -> Iterator[QtCanvas]:
        painter = QPainter(self.image)
        try:
            painter.setPen(QColor(self.color))
            yield QtCanvas(painter)
        finally:
            painter.end()

    def copy(self, rect: Rect) -> QtRaster:
        return QtRaster(self.image.copy(_qrect(rect)), self.color)

    def scaled(self, sx: float, sy: float) -> QtRaster:
        return QtRaster(self.image.transformed(QTransform().scale(sx, sy)), self.color)


def qt_raster_factory(width: int, height: int, color: str) -> QtRaster:
    return QtRaster.blank(width, height, color)
