"""Stage wiring: probe, normalise, decode, demux, score, summarize."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import lc_metrics  # noqa: F401  (registers built-in metrics)
from lc_cmd import spawn_pipe, which_or_none
from lc_color import DEFAULT_TAG, normalize_color_metadata
from lc_decode import DEFAULT_NPL, SpawnFn, decode_raw, iter_raw_frames
from lc_demux import demux_sequence, demux_stream
from lc_errors import DecodeError, DemuxError, ProbeError, ScoringError
from lc_logging import LOG
from lc_probe import probe_media
from lc_registry import registry
from lc_score import ScoreCallback, ScoreSet, score_pairs
from lc_stats import summarize
from lc_types import LinearFrame, MediaInfo, SummaryStatistics


@dataclass
class CompareConfig:
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"
    metric: str = "ssimulacra2"
    workers: int = 0  # 0 = one per CPU
    strict: bool = False
    stream: bool = False
    npl: int = DEFAULT_NPL
    default_tag: str = DEFAULT_TAG


@dataclass
class CompareResult:
    source: MediaInfo
    distorted: MediaInfo
    scores: ScoreSet
    stats: SummaryStatistics


def require_tools(config: CompareConfig) -> None:
    if not which_or_none(config.ffprobe):
        raise ProbeError(f"Required tool not found in PATH: {config.ffprobe}")
    if not which_or_none(config.ffmpeg):
        raise DecodeError(f"Required tool not found in PATH: {config.ffmpeg}")


def load_frames(path: Path, config: CompareConfig, *, spawn: SpawnFn = spawn_pipe):
    """Probe and decode one input. Returns ``(MediaInfo, frames)``."""
    info = probe_media(Path(path), config.ffprobe)
    color = normalize_color_metadata(info.color, config.default_tag)
    info = MediaInfo(path=info.path, frame_count=info.frame_count, resolution=info.resolution, color=color)

    if config.stream:
        # never holds the whole raw output; the demuxed frames are still collected
        chunks = iter_raw_frames(info.path, info.resolution, color, ffmpeg=config.ffmpeg, npl=config.npl, spawn=spawn)
        frames: List[LinearFrame] = list(demux_stream(chunks, info.resolution))
        if len(frames) != info.frame_count:
            raise DemuxError(f"Decoded {len(frames)} frames but the probe reported {info.frame_count}.")
    else:
        raw = decode_raw(info.path, info.resolution, color, ffmpeg=config.ffmpeg, npl=config.npl, spawn=spawn)
        frames = demux_sequence(raw, info.resolution, info.frame_count)
        del raw
    return info, frames


def compare(
    source: Path,
    distorted: Path,
    config: CompareConfig,
    *,
    on_score: Optional[ScoreCallback] = None,
    spawn: SpawnFn = spawn_pipe,
) -> CompareResult:
    try:
        metric_fn = registry.get(config.metric)
    except KeyError as e:
        raise ScoringError(f"Unknown metric: {config.metric} (available: {', '.join(registry.names())})") from e

    src_info, src_frames = load_frames(source, config, spawn=spawn)
    dst_info, dst_frames = load_frames(distorted, config, spawn=spawn)
    if src_info.resolution != dst_info.resolution:
        LOG.warning("[compare] resolutions differ: source=%s, distorted=%s", src_info.resolution, dst_info.resolution)

    LOG.info("[score] %s on %d/%d frames", config.metric, len(src_frames), len(dst_frames))
    scores = score_pairs(
        src_frames,
        dst_frames,
        metric_fn,
        workers=config.workers,
        strict=config.strict,
        on_score=on_score,
    )
    stats = summarize(scores)
    return CompareResult(source=src_info, distorted=dst_info, scores=scores, stats=stats)
