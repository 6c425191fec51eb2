"""Summary statistics over per-frame scores."""

from __future__ import annotations

import math
from typing import Iterable, List

import numpy as np

from lc_errors import StatisticsError
from lc_types import SummaryStatistics


def percentile(sorted_vals: np.ndarray, p: float) -> float:
    """Linearly interpolated percentile of an ascending array, ``p`` in [0, 1]."""
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Percentile must be within [0, 1], got {p}")
    if len(sorted_vals) == 0:
        raise StatisticsError("Empty metric list.")
    pos = p * (len(sorted_vals) - 1)
    lo = int(math.floor(pos))
    hi = int(math.ceil(pos))
    frac = pos - lo
    return float(sorted_vals[lo] + frac * (sorted_vals[hi] - sorted_vals[lo]))


def summarize(scores: Iterable[float]) -> SummaryStatistics:
    arr = np.sort(np.fromiter((float(s) for s in scores), dtype=np.float64))
    if arr.size == 0:
        raise StatisticsError("Empty metric list.")
    mean = float(arr.mean())
    return SummaryStatistics(
        mean=mean,
        median=float(np.median(arr)),
        std_dev=float(np.sqrt(np.mean((arr - mean) ** 2))),
        p5=percentile(arr, 0.05),
        p95=percentile(arr, 0.95),
    )


def format_summary(stats: SummaryStatistics) -> List[str]:
    return [
        f"Mean:    {stats.mean:.8f}",
        f"Median:  {stats.median:.8f}",
        f"Std dev: {stats.std_dev:.8f}",
        f"P5:      {stats.p5:.8f}",
        f"P95:     {stats.p95:.8f}",
    ]
