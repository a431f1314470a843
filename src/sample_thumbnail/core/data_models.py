"""Data models for sample buffers, summary units and render queries.

Uses attrs with validators for type-safe, validated data containers.
"""
from __future__ import annotations

import math

import attrs
import numpy as np
from attrs import define, field


class UninitializedCacheError(RuntimeError):
    """Raised when rendering is requested before a thumbnail cache exists."""


def _validate_ndarray_1d(instance, attribute, value):
    """Validator: ensure value is a 1D numpy array."""
    if not isinstance(value, np.ndarray):
        raise TypeError(f"{attribute.name} must be ndarray, got {type(value).__name__}")
    if value.ndim != 1:
        raise ValueError(f"{attribute.name} must be 1D, got shape {value.shape}")


def _validate_optional_ndarray_1d(instance, attribute, value):
    if value is not None:
        _validate_ndarray_1d(instance, attribute, value)


def _validate_fraction(instance, attribute, value):
    """Validator: ensure value lies in [0, 1]."""
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{attribute.name} must be within [0, 1], got {value}")


def _as_float_array(value):
    if isinstance(value, np.ndarray) or isinstance(value, (list, tuple)):
        return np.asarray(value, dtype=np.float64)
    return value


def _as_optional_float_array(value):
    if value is None:
        return None
    return _as_float_array(value)


@define(frozen=True)
class SampleFrame:
    """A single stereo frame."""

    left: float
    right: float

    @property
    def average(self) -> float:
        return (self.left + self.right) / 2.0


@define
class SampleBuffer:
    """Fixed-length stereo sample data identified by a unique name.

    The name is the cache key: two buffers with the same name share one
    thumbnail pyramid.

    Attributes:
        name: Unique identity of the underlying audio resource (usually its file path)
        left: Left channel amplitudes
        right: Right channel amplitudes
        average: Per-frame average; derived from left/right when not supplied
    """

    name: str = field(validator=attrs.validators.instance_of(str))
    left: np.ndarray = field(converter=_as_float_array, validator=_validate_ndarray_1d)
    right: np.ndarray = field(converter=_as_float_array, validator=_validate_ndarray_1d)
    average: np.ndarray | None = field(
        default=None, converter=_as_optional_float_array, validator=_validate_optional_ndarray_1d
    )

    def __attrs_post_init__(self):
        """Validate channel lengths and derive the average channel."""
        if len(self.left) != len(self.right):
            raise ValueError(
                f"left ({len(self.left)}) and right ({len(self.right)}) must have same length"
            )
        if self.average is None:
            self.average = (self.left + self.right) / 2.0
        elif len(self.average) != len(self.left):
            raise ValueError(
                f"average ({len(self.average)}) must match channel length ({len(self.left)})"
            )

    @classmethod
    def from_frames(cls, name: str, frames: np.ndarray) -> SampleBuffer:
        """Create from an (N, 2) array of left/right frames."""
        frames = np.asarray(frames, dtype=np.float64)
        if frames.ndim != 2 or frames.shape[1] != 2:
            raise ValueError(f"frames must have shape (N, 2), got {frames.shape}")
        return cls(name=name, left=frames[:, 0].copy(), right=frames[:, 1].copy())

    @classmethod
    def from_mono(cls, name: str, samples: np.ndarray) -> SampleBuffer:
        """Create from a mono signal duplicated on both channels."""
        samples = np.asarray(samples, dtype=np.float64)
        return cls(name=name, left=samples.copy(), right=samples.copy())

    def __len__(self) -> int:
        return len(self.left)

    def __getitem__(self, index: int) -> SampleFrame:
        return SampleFrame(float(self.left[index]), float(self.right[index]))

    @property
    def num_frames(self) -> int:
        """Total number of frames."""
        return len(self.left)


@define(frozen=True)
class Bit:
    """Min, max and RMS amplitude over a span of frames.

    A default Bit has max below and min above any real amplitude so the
    first merge always overwrites them.
    """

    max: float = -100.0
    min: float = 100.0
    rms: float = 0.0

    @classmethod
    def from_frame(cls, frame: SampleFrame) -> Bit:
        return cls(
            max=max(frame.left, frame.right),
            min=min(frame.left, frame.right),
            rms=0.0,
        )

    def merge(self, other: Bit) -> Bit:
        """Combine two units; min/max widen, rms is the quadratic mean."""
        return Bit(
            max=max(self.max, other.max),
            min=min(self.min, other.min),
            rms=math.sqrt((self.rms * self.rms + other.rms * other.rms) / 2.0),
        )

    def merge_frame(self, frame: SampleFrame) -> Bit:
        return self.merge(Bit.from_frame(frame))


@define(frozen=True)
class Rect:
    """Integer pixel rectangle (Qt semantics: right = x + width)."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_null(self) -> bool:
        return self.width == 0 and self.height == 0

    def translated(self, dx: int, dy: int) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def intersected(self, other: Rect) -> Rect:
        """Overlap of two rects; an empty overlap has zero width or height."""
        x = max(self.x, other.x)
        y = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        return Rect(x, y, max(right - x, 0), max(bottom - y, 0))


@define
class VisualizeParameters:
    """One render query: which part of the sample to draw, and where.

    Attributes:
        amplification: Vertical gain applied to the waveform
        reversed: Draw the waveform mirrored in time
        sample_start: Start of the drawn window as a fraction of the sample
        sample_end: End of the drawn window as a fraction of the sample
        clip_rect: Visible area of the owning widget
        sample_rect: Where the drawn window maps to; defaults to clip_rect
        view_rect: Further restriction of drawn columns; defaults to clip_rect
        allow_high_resolution: Permit drawing from the finest pyramid level
    """

    clip_rect: Rect = field(factory=Rect, validator=attrs.validators.instance_of(Rect))
    amplification: float = field(default=1.0, converter=float)
    reversed: bool = field(default=False, validator=attrs.validators.instance_of(bool))
    sample_start: float = field(default=0.0, converter=float, validator=_validate_fraction)
    sample_end: float = field(default=1.0, converter=float, validator=_validate_fraction)
    sample_rect: Rect | None = field(
        default=None, validator=attrs.validators.optional(attrs.validators.instance_of(Rect))
    )
    view_rect: Rect | None = field(
        default=None, validator=attrs.validators.optional(attrs.validators.instance_of(Rect))
    )
    allow_high_resolution: bool = field(default=False, validator=attrs.validators.instance_of(bool))

    def effective_rects(self) -> tuple[Rect, Rect, Rect]:
        """Return (clip, sample, view) with unset or null sub-rects replaced by clip."""
        clip = self.clip_rect
        sample = clip if self.sample_rect is None or self.sample_rect.is_null else self.sample_rect
        view = clip if self.view_rect is None or self.view_rect.is_null else self.view_rect
        return clip, sample, view

    @property
    def sample_view_length(self) -> float:
        return self.sample_end - self.sample_start
