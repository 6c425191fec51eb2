"""Frame pairing and parallel scoring."""

from __future__ import annotations

import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from lc_errors import ScoringError
from lc_logging import LOG
from lc_registry import MetricFn
from lc_types import LinearFrame

ScoreCallback = Callable[[int, float], None]


class ScoreSet:
    """Append-only collection of ``(index, score)`` results shared by workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[Tuple[int, float]] = []

    def add(self, index: int, score: float) -> None:
        with self._lock:
            self._entries.append((index, float(score)))

    def values(self) -> List[float]:
        """Scores in completion order."""
        with self._lock:
            return [s for _, s in self._entries]

    def ordered(self) -> List[Tuple[int, float]]:
        with self._lock:
            return sorted(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values())


def default_workers() -> int:
    return os.cpu_count() or 1


def pair_count(source: Sequence[LinearFrame], distorted: Sequence[LinearFrame], *, strict: bool = False) -> int:
    """Number of positional pairs; unequal lengths truncate unless ``strict``."""
    n_src, n_dst = len(source), len(distorted)
    if n_src != n_dst:
        if strict:
            raise ScoringError(f"Frame counts differ: source has {n_src}, distorted has {n_dst}.")
        LOG.warning(
            "[score] frame counts differ (source=%d, distorted=%d); scoring the first %d pairs",
            n_src, n_dst, min(n_src, n_dst),
        )
    return min(n_src, n_dst)


def score_pairs(
    source: Sequence[LinearFrame],
    distorted: Sequence[LinearFrame],
    metric: MetricFn,
    *,
    workers: Optional[int] = None,
    strict: bool = False,
    on_score: Optional[ScoreCallback] = None,
) -> ScoreSet:
    """Score ``source[i]`` against ``distorted[i]`` on a thread pool.

    The first failing pair aborts the run: queued pairs are cancelled and the
    failure is raised as ``ScoringError``.
    """
    n = pair_count(source, distorted, strict=strict)
    scores = ScoreSet()
    if n == 0:
        return scores

    def _work(index: int) -> float:
        value = float(metric(source[index], distorted[index]))
        scores.add(index, value)
        return value

    max_workers = workers if workers and workers > 0 else default_workers()
    LOG.debug("[score] %d pairs on %d workers", n, max_workers)

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="score") as pool:
        futures: Dict[Future, int] = {pool.submit(_work, i): i for i in range(n)}
        try:
            for fut in as_completed(futures):
                index = futures[fut]
                exc = fut.exception()
                if exc is not None:
                    if isinstance(exc, ScoringError):
                        raise exc
                    raise ScoringError(f"Metric failed on frame pair {index}: {exc}") from exc
                if on_score is not None:
                    on_score(index, fut.result())
        except BaseException:
            for fut in futures:
                fut.cancel()
            raise

    return scores
