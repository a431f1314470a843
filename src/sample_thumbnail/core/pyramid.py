"""Min/max/RMS summary pyramid for audio samples.

The finest level is reduced directly from the sample frames. Every coarser
level is reduced from the level just above it, so deep levels are a lossy
composition of earlier reductions rather than a fresh pass over the source.
"""
from __future__ import annotations

import math

import numpy as np
from attrs import define, field
from loguru import logger

from sample_thumbnail.config.settings import ThumbnailConfig
from sample_thumbnail.core.data_models import Bit, SampleBuffer

DEFAULT_MAX = Bit().max
DEFAULT_MIN = Bit().min


def _merged_rms_squared(squares: np.ndarray, starts: np.ndarray) -> np.ndarray:
    """Squared RMS of sequential Bit.merge folds over consecutive buckets.

    Each bucket is folded into a default (rms=0) Bit with
    ``rms = sqrt((rms**2 + x**2) / 2)``, which weights x_j**2 by
    0.5**(k - j) for a bucket of k elements.

    Args:
        squares: Squared rms values of the finer units, bucket-contiguous
        starts: Index of the first element of each bucket (ascending, starts[0] == 0)
    """
    n = len(squares)
    ends = np.append(starts[1:], n)
    bucket_of = np.repeat(np.arange(len(starts)), ends - starts)
    from_end = ends[bucket_of] - 1 - np.arange(n)
    weights = np.power(0.5, from_end + 1)
    return np.add.reduceat(squares * weights, starts)


@define
class Thumbnail:
    """One resolution tier of Bits stored column-wise."""

    max: np.ndarray = field()
    min: np.ndarray = field()
    rms: np.ndarray = field()

    def __attrs_post_init__(self):
        if not len(self.max) == len(self.min) == len(self.rms):
            raise ValueError(
                f"max ({len(self.max)}), min ({len(self.min)}) and rms ({len(self.rms)}) "
                f"must have same length"
            )

    @classmethod
    def from_bits(cls, bits: list[Bit]) -> Thumbnail:
        return cls(
            max=np.array([b.max for b in bits], dtype=np.float64),
            min=np.array([b.min for b in bits], dtype=np.float64),
            rms=np.array([b.rms for b in bits], dtype=np.float64),
        )

    @classmethod
    def empty(cls, size: int) -> Thumbnail:
        """A level of default Bits."""
        return cls(
            max=np.full(size, DEFAULT_MAX),
            min=np.full(size, DEFAULT_MIN),
            rms=np.zeros(size),
        )

    def __len__(self) -> int:
        return len(self.max)

    def __getitem__(self, index: int) -> Bit:
        return Bit(max=float(self.max[index]), min=float(self.min[index]), rms=float(self.rms[index]))

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def aggregate(self, indices: np.ndarray) -> Bit:
        """Merge the Bits at ``indices`` in order into a default Bit."""
        if len(indices) == 0:
            return Bit()
        squares = self.rms[indices] ** 2
        rms_sq = _merged_rms_squared(squares, np.array([0]))[0]
        return Bit(
            max=float(self.max[indices].max()),
            min=float(self.min[indices].min()),
            rms=math.sqrt(rms_sq),
        )


def size_divisor(total_samples: int, floor: int = 32) -> int:
    """Ratio between consecutive level sizes: max(floor, round(3 * log2(n)))."""
    if total_samples <= 1:
        return floor
    return max(floor, round(3 * math.log2(total_samples)))


def level_sizes(total_samples: int, config: ThumbnailConfig | None = None) -> list[int]:
    """Sizes of every pyramid level, finest first."""
    config = config or ThumbnailConfig()
    divisor = size_divisor(total_samples, config.size_divisor_floor)
    sizes = [max(total_samples // config.first_level_ratio, 1)]
    size = sizes[0] // divisor
    while size >= config.min_thumbnail_size:
        sizes.append(size)
        size //= divisor
    return sizes


def generate(thumbnail_size: int, sample: SampleBuffer, size: int | None = None) -> Thumbnail:
    """Reduce raw frames to ``thumbnail_size`` Bits.

    Bit ``i`` covers frames ``[i*size/thumbnail_size, i*size/thumbnail_size + chunk)``
    clipped to the buffer, with ``chunk = (size + thumbnail_size) // thumbnail_size``.
    Neighbouring ranges may overlap by a frame or so.

    Args:
        thumbnail_size: Number of Bits to produce
        sample: Source frames
        size: Number of leading frames to use (default: all)

    Returns:
        Thumbnail of exactly ``thumbnail_size`` Bits
    """
    if thumbnail_size < 1:
        raise ValueError(f"thumbnail_size must be >= 1, got {thumbnail_size}")

    size = len(sample) if size is None else size
    if size == 0:
        return Thumbnail.empty(thumbnail_size)

    chunk = (size + thumbnail_size) // thumbnail_size
    starts = np.arange(thumbnail_size, dtype=np.int64) * size // thumbnail_size
    bounds = np.minimum(starts + chunk, size)
    counts = bounds - starts

    frame_max = np.maximum(sample.left[:size], sample.right[:size])
    frame_min = np.minimum(sample.left[:size], sample.right[:size])
    squares = sample.average[:size] ** 2

    # Pad so every window of length ``chunk`` is in range; padding never wins
    pad = chunk
    frame_max = np.concatenate([frame_max, np.full(pad, -np.inf)])
    frame_min = np.concatenate([frame_min, np.full(pad, np.inf)])
    squares = np.concatenate([squares, np.zeros(pad)])

    windows = starts[:, None] + np.arange(chunk)[None, :]
    level_max = frame_max[windows].max(axis=1)
    level_min = frame_min[windows].min(axis=1)
    level_rms = np.sqrt(squares[windows].sum(axis=1) / counts)

    # Merging frames into a default Bit keeps the default when the default is more extreme
    level_max = np.maximum(level_max, DEFAULT_MAX)
    level_min = np.minimum(level_min, DEFAULT_MIN)

    return Thumbnail(max=level_max, min=level_min, rms=level_rms)


def reduce_level(bigger: Thumbnail, thumbnail_size: int) -> Thumbnail:
    """Merge ``bigger`` into ``thumbnail_size`` buckets.

    Bit ``b`` of the finer level lands in bucket ``b * thumbnail_size // len(bigger)``
    and is merged into a default Bit in index order.
    """
    bigger_size = len(bigger)
    if thumbnail_size < 1 or thumbnail_size > bigger_size:
        raise ValueError(
            f"thumbnail_size must be within [1, {bigger_size}], got {thumbnail_size}"
        )

    targets = np.arange(bigger_size, dtype=np.int64) * thumbnail_size // bigger_size
    starts = np.searchsorted(targets, np.arange(thumbnail_size), side="left")

    level_max = np.maximum(np.maximum.reduceat(bigger.max, starts), DEFAULT_MAX)
    level_min = np.minimum(np.minimum.reduceat(bigger.min, starts), DEFAULT_MIN)
    level_rms = np.sqrt(_merged_rms_squared(bigger.rms ** 2, starts))

    return Thumbnail(max=level_max, min=level_min, rms=level_rms)


def build_pyramid(sample: SampleBuffer, config: ThumbnailConfig | None = None) -> list[Thumbnail]:
    """Build every level for ``sample``, finest first.

    Returns:
        List of Thumbnails whose sizes strictly decrease
    """
    config = config or ThumbnailConfig()
    sizes = level_sizes(len(sample), config)

    levels = [generate(sizes[0], sample)]
    for thumbnail_size in sizes[1:]:
        levels.append(reduce_level(levels[-1], thumbnail_size))

    logger.debug(
        f"Built thumbnail pyramid for '{sample.name}': {len(sample)} frames, "
        f"divisor {size_divisor(len(sample), config.size_divisor_floor)}, level sizes {sizes}"
    )
    return levels
