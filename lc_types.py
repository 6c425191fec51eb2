"""Value types shared by the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

import numpy as np

UNKNOWN = "unknown"

# ffprobe emits the colour fields in this order, not alphabetically
COLOR_KEYS: Tuple[str, str, str] = ("color_space", "color_transfer", "color_primaries")

CHANNELS = 3
FLOAT_BYTES = 4

ColorMetadata = Dict[str, str]


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Resolution must be positive, got {self.width}x{self.height}")

    @property
    def pixels(self) -> int:
        return self.width * self.height

    @property
    def frame_bytes(self) -> int:
        """Bytes of one decoded planar float32 RGB frame."""
        return self.pixels * CHANNELS * FLOAT_BYTES

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class MediaInfo:
    path: Path
    frame_count: int
    resolution: Resolution
    color: ColorMetadata = field(default_factory=dict)


@dataclass(frozen=True, eq=False)
class LinearFrame:
    """One linear-light RGB image.

    ``data`` has shape ``(height, width, 3)`` with channels in R, G, B order.
    The array is made read-only so frames can be shared with scoring threads.
    """

    data: np.ndarray

    def __post_init__(self) -> None:
        arr = np.asarray(self.data, dtype=np.float32)
        if arr.ndim != 3 or arr.shape[2] != CHANNELS or arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise ValueError(f"LinearFrame expects a (height, width, 3) array, got shape {arr.shape}")
        arr = arr.view()
        arr.flags.writeable = False
        object.__setattr__(self, "data", arr)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        """Pixels in raster order as a ``(width * height, 3)`` view."""
        return self.data.reshape(-1, CHANNELS)


@dataclass(frozen=True)
class SummaryStatistics:
    mean: float
    median: float
    std_dev: float
    p5: float
    p95: float
