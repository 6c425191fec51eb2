"""Planar float32 bytes to interleaved linear RGB frames."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Union

import numpy as np

from lc_errors import DemuxError
from lc_types import CHANNELS, FLOAT_BYTES, LinearFrame, Resolution

Buffer = Union[bytes, bytearray, memoryview]


def demux_frames(raw: Buffer, resolution: Resolution, frame_count: int) -> List[LinearFrame]:
    """Split ``raw`` into ``frame_count`` frames.

    ``raw`` holds three contiguous planes in the decoder's order G, B, R, each
    ``frame_count * width * height`` floats long. Pixels come out as R, G, B.
    """
    if frame_count <= 0:
        raise DemuxError(f"Frame count must be positive, got {frame_count}.")
    size = len(raw)
    if size % FLOAT_BYTES:
        raise DemuxError(f"Raw buffer of {size} bytes is not a whole number of float32 values.")
    floats = np.frombuffer(raw, dtype="<f4")
    if floats.size % CHANNELS:
        raise DemuxError(f"Expected 3 planes of equal length, got {floats.size} floats.")

    plane_len = floats.size // CHANNELS
    expected = frame_count * resolution.pixels
    if plane_len != expected:
        raise DemuxError(
            f"Plane length {plane_len} does not match {frame_count} frames of "
            f"{resolution} ({expected} samples per plane)."
        )

    g_plane, b_plane, r_plane = floats.reshape(CHANNELS, plane_len)
    rgb = np.stack((r_plane, g_plane, b_plane), axis=-1)
    rgb = rgb.reshape(frame_count, resolution.height, resolution.width, CHANNELS)
    return [LinearFrame(frame) for frame in rgb]


def split_frames(raw: Buffer, resolution: Resolution) -> Iterator[memoryview]:
    frame_bytes = resolution.frame_bytes
    size = len(raw)
    if size % frame_bytes:
        raise DemuxError(
            f"Raw buffer of {size} bytes is not a multiple of one {resolution} frame ({frame_bytes} bytes)."
        )
    view = memoryview(raw)
    for offset in range(0, size, frame_bytes):
        yield view[offset:offset + frame_bytes]


def demux_sequence(raw: Buffer, resolution: Resolution, frame_count: int) -> List[LinearFrame]:
    """Demux a whole decoder output, where every frame carries its own G, B, R planes."""
    frames = [demux_frames(chunk, resolution, 1)[0] for chunk in split_frames(raw, resolution)]
    if len(frames) != frame_count:
        raise DemuxError(f"Decoded {len(frames)} frames but the probe reported {frame_count}.")
    return frames


def demux_stream(chunks: Iterable[Buffer], resolution: Resolution) -> Iterator[LinearFrame]:
    for chunk in chunks:
        yield demux_frames(chunk, resolution, 1)[0]
