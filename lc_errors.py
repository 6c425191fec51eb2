"""Error types raised by the comparison stages."""

from __future__ import annotations


class CompareError(RuntimeError):
    """Base class for every stage failure."""


class ProbeError(CompareError):
    """ffprobe missing, failed, or produced unusable output."""


class DecodeError(CompareError):
    """ffmpeg missing, failed, or produced a partial frame."""


class DemuxError(CompareError):
    """Raw float data does not match the declared frame layout."""


class ScoringError(CompareError):
    """The metric rejected a frame pair or the pairing policy was violated."""


class StatisticsError(CompareError, ValueError):
    """Statistics were requested over an empty score set."""
