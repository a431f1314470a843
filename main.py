"""Sample thumbnail demo - render a synthetic tone to a PNG.

Usage: python main.py [output.png]
"""
import sys

import numpy as np
from PySide6.QtGui import QColor, QGuiApplication, QImage, QPainter
from loguru import logger

# Configure logger
logger.remove()  # Remove default handler
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO",
)
logger.add(
    "sample_thumbnail.log",
    rotation="10 MB",
    retention="7 days",
    level="DEBUG",
)


def make_demo_sample(seconds: float = 4.0, rate: int = 44100):
    """Decaying 220 Hz tone with a little noise on the right channel."""
    from sample_thumbnail import SampleBuffer

    t = np.arange(int(seconds * rate)) / rate
    envelope = np.exp(-t)
    left = 0.8 * envelope * np.sin(2 * np.pi * 220 * t)
    right = left + 0.05 * np.random.default_rng(1234).standard_normal(len(t))
    return SampleBuffer(name="demo://tone-220", left=left, right=np.clip(right, -1.0, 1.0))


def main():
    """Render the demo sample through the thumbnail facade."""
    output = sys.argv[1] if len(sys.argv) > 1 else "thumbnail.png"
    logger.info("Starting sample thumbnail demo")

    # QImage painting needs a GUI application for fonts/colour handling
    app = QGuiApplication.instance() or QGuiApplication(sys.argv)  # noqa: F841

    from sample_thumbnail import Rect, SampleThumbnail, VisualizeParameters
    from sample_thumbnail.gui import QtCanvas

    sample = make_demo_sample()

    image = QImage(800, 120, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(QColor(30, 30, 30))

    with SampleThumbnail(sample) as thumbnail:
        painter = QPainter(image)
        painter.setPen(QColor(thumbnail.config.raster.waveform_color))
        params = VisualizeParameters(clip_rect=Rect(0, 0, image.width(), image.height()), amplification=1.0)
        thumbnail.visualize(params, QtCanvas(painter))
        painter.end()

    image.save(output)
    logger.info(f"Wrote {output}")


if __name__ == "__main__":
    main()
