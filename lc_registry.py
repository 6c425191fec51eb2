"""Named frame-pair metrics and the contract they are called under.

A metric is registered once under a base name, optionally with the plugin
backends it can run on. Lookups accept ``name`` or ``name:backend`` and hand
back a callable that checks the pair's dimensions before the metric sees it,
so individual metrics only deal with same-sized frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from lc_errors import ScoringError
from lc_types import LinearFrame

MetricFn = Callable[[LinearFrame, LinearFrame], float]


@dataclass(frozen=True)
class MetricEntry:
    name: str
    fn: Callable[..., float]
    backends: Tuple[str, ...] = ()


def check_same_shape(src: LinearFrame, dst: LinearFrame) -> None:
    if src.shape != dst.shape:
        raise ScoringError(
            f"Frame shapes differ: source {src.width}x{src.height}, distorted {dst.width}x{dst.height}."
        )


def _bind(entry: MetricEntry, backend: Optional[str]) -> MetricFn:
    kwargs = {"backend": backend} if backend else {}

    def scored(src: LinearFrame, dst: LinearFrame) -> float:
        check_same_shape(src, dst)
        return float(entry.fn(src, dst, **kwargs))

    scored.__name__ = entry.fn.__name__
    scored.__doc__ = entry.fn.__doc__
    scored.metric = entry
    scored.backend = backend
    return scored


class MetricRegistry:
    """Metrics looked up case-insensitively, with an optional ``:backend`` suffix."""

    def __init__(self) -> None:
        self._items: Dict[str, MetricEntry] = {}

    def register(self, name: str, fn: Callable[..., float], backends: Tuple[str, ...] = ()) -> MetricEntry:
        key = self._normalize(name)
        if not key or ":" in key:
            raise ValueError(f"Invalid metric name: {name!r}")
        entry = MetricEntry(key, fn, tuple(self._normalize(b) for b in backends))
        self._items[key] = entry
        return entry

    def get(self, name: str) -> MetricFn:
        key = self._normalize(name)
        base, sep, backend = key.partition(":")
        entry = self._items.get(base)
        if entry is None:
            raise KeyError(f"Unknown metric name: {name}")
        if not sep:
            return _bind(entry, None)
        if backend not in entry.backends:
            known = ", ".join(entry.backends) or "none"
            raise KeyError(f"Unknown backend for {base}: {backend!r} (known: {known})")
        return _bind(entry, backend)

    def names(self) -> List[str]:
        out: List[str] = []
        for key in sorted(self._items):
            out.append(key)
            out.extend(f"{key}:{b}" for b in self._items[key].backends)
        return out

    @staticmethod
    def _normalize(name: str) -> str:
        return str(name).strip().lower()


registry = MetricRegistry()


def metric(name: str, backends: Tuple[str, ...] = ()):
    """Decorator to register a metric under a name."""

    def deco(fn):
        registry.register(name, fn, backends)
        return fn

    return deco
