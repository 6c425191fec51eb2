#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
lincompare - perceptual comparison of a source and a distorted video/image.

Both inputs are decoded by ffmpeg into linear-light float RGB, frames are
paired by position, scored on a thread pool and summarized.

Examples:
  python lincompare.py ref.mkv enc.mkv
  python lincompare.py ref.png enc.avif --metric psnr --csv scores.csv
"""

from __future__ import annotations

import argparse
import csv
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

ROOT = os.path.dirname(os.path.abspath(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tqdm import tqdm

from lc_decode import DEFAULT_NPL
from lc_errors import CompareError
from lc_logging import LOG, eprint, setup_logging
from lc_pipeline import CompareConfig, compare, require_tools
from lc_stats import format_summary

__version__ = "0.1.0"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="lincompare",
        description="Compare a distorted video/image against its source with a perceptual metric.",
    )
    p.add_argument("source", help="Source video or image(s)")
    p.add_argument("distorted", help="Distorted video or image(s)")
    p.add_argument(
        "--metric",
        default="ssimulacra2",
        help="Metric name: ssimulacra2 (vship or vszip), ssimulacra2:vship, ssimulacra2:vszip, psnr.",
    )
    p.add_argument("--workers", type=int, default=0, help="Scoring threads (0 = one per CPU).")
    p.add_argument(
        "--strict",
        action="store_true",
        help="Fail when the inputs have different frame counts instead of scoring the common prefix.",
    )
    p.add_argument("--stream", action="store_true", help="Read decoder output frame by frame instead of buffering the whole raw stream.")
    p.add_argument("--ffmpeg", default="ffmpeg", help="ffmpeg executable.")
    p.add_argument("--ffprobe", default="ffprobe", help="ffprobe executable.")
    p.add_argument("--npl", type=int, default=DEFAULT_NPL, help="zscale nominal peak luminance (cd/m^2).")
    p.add_argument("--csv", default=None, help="Save per-frame scores to CSV.")
    p.add_argument("--log", default="", help="Also write the log to this file.")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def save_csv(path: str, rows: Sequence[Tuple[int, float]], metric_name: str) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["frame", metric_name])
        for i, v in rows:
            w.writerow([i, v])


def run(args: argparse.Namespace) -> int:
    config = CompareConfig(
        ffmpeg=args.ffmpeg,
        ffprobe=args.ffprobe,
        metric=args.metric,
        workers=args.workers,
        strict=args.strict,
        stream=args.stream,
        npl=args.npl,
    )
    for path in (args.source, args.distorted):
        # image-sequence patterns (ref_%03d.png) are resolved by ffmpeg itself
        if "%" not in path and not os.path.exists(path):
            raise FileNotFoundError(f"File not found: {os.path.abspath(path)}")
    require_tools(config)

    bar: List[tqdm] = []

    def _on_score(index: int, score: float) -> None:
        if not bar:
            bar.append(tqdm(desc=f"Scoring {config.metric}", unit="f", file=sys.stderr, leave=False))
        tqdm.write(f"Frame {index}: {score:.8f}", file=sys.stdout)
        bar[0].update(1)

    try:
        result = compare(Path(args.source), Path(args.distorted), config, on_score=_on_score)
    finally:
        if bar:
            bar[0].close()

    print(f"Metric: {config.metric} ({len(result.scores)} frame pairs)")
    for line in format_summary(result.stats):
        print(line)

    if args.csv:
        save_csv(args.csv, result.scores.ordered(), config.metric)
        print(f"CSV saved: {args.csv}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log or None)
    try:
        return run(args)
    except (CompareError, FileNotFoundError) as e:
        LOG.debug("failure", exc_info=True)
        eprint(f"[error] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
