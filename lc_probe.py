"""Stream metadata queries through ffprobe."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from lc_cmd import format_cmd, run_capture, tail
from lc_errors import ProbeError
from lc_logging import LOG
from lc_types import COLOR_KEYS, ColorMetadata, MediaInfo, Resolution


def _ffprobe_cmd(ffprobe: str, path: Path, *extra: str) -> List[str]:
    return [
        ffprobe,
        "-hide_banner",
        "-v", "error",
        "-select_streams", "v:0",
        *extra,
        "-of", "csv=p=0",
        str(path),
    ]


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _fields(text: str, expected: int, what: str) -> List[str]:
    line = _first_line(text)
    if not line:
        raise ProbeError(f"ffprobe returned no {what}.")
    parts = [p.strip() for p in line.split(",")]
    # some builds append a separator after the last entry
    if len(parts) == expected + 1 and parts[-1] == "":
        parts.pop()
    if len(parts) != expected:
        raise ProbeError(f"Expected {expected} {what} fields from ffprobe, got {len(parts)}: {line!r}")
    return parts


def _query(cmd: Sequence[str]) -> str:
    try:
        cp = run_capture(cmd)
    except OSError as e:
        raise ProbeError(f"Could not run ffprobe ({format_cmd(cmd)}): {e}") from e
    if cp.returncode != 0:
        raise ProbeError(
            f"ffprobe failed (rc={cp.returncode}): {format_cmd(cmd)}\n{tail(cp.stderr or '')}"
        )
    return cp.stdout or ""


def parse_frame_count(text: str) -> int:
    (value,) = _fields(text, 1, "frame count")
    try:
        count = int(value)
    except ValueError as e:
        raise ProbeError(f"Frame count is not an integer: {value!r}") from e
    if count <= 0:
        raise ProbeError(f"Frame count must be positive, got {count}.")
    return count


def parse_resolution(text: str) -> Resolution:
    w, h = _fields(text, 2, "resolution")
    try:
        width, height = int(w), int(h)
    except ValueError as e:
        raise ProbeError(f"Resolution fields are not integers: {w!r},{h!r}") from e
    if width <= 0 or height <= 0:
        raise ProbeError(f"Resolution must be positive, got {width}x{height}.")
    return Resolution(width, height)


def parse_color_metadata(text: str) -> ColorMetadata:
    values = _fields(text, len(COLOR_KEYS), "colour")
    missing = [key for key, value in zip(COLOR_KEYS, values) if not value]
    if missing:
        raise ProbeError(f"ffprobe left colour fields empty ({', '.join(missing)}): {_first_line(text)!r}")
    return dict(zip(COLOR_KEYS, values))


def probe_frame_count(path: Path, ffprobe: str = "ffprobe") -> int:
    cmd = _ffprobe_cmd(ffprobe, path, "-count_packets", "-show_entries", "stream=nb_read_packets")
    return parse_frame_count(_query(cmd))


def probe_resolution(path: Path, ffprobe: str = "ffprobe") -> Resolution:
    cmd = _ffprobe_cmd(ffprobe, path, "-show_entries", "stream=width,height")
    return parse_resolution(_query(cmd))


def probe_color_metadata(path: Path, ffprobe: str = "ffprobe") -> ColorMetadata:
    cmd = _ffprobe_cmd(ffprobe, path, "-show_entries", "stream=" + ",".join(COLOR_KEYS))
    return parse_color_metadata(_query(cmd))


def probe_media(path: Path, ffprobe: str = "ffprobe") -> MediaInfo:
    """Run all three probes for one input."""
    path = Path(path)
    resolution = probe_resolution(path, ffprobe)
    frame_count = probe_frame_count(path, ffprobe)
    color = probe_color_metadata(path, ffprobe)
    LOG.info(
        "[probe] %s: %d frames, %s, space=%s transfer=%s primaries=%s",
        path.name, frame_count, resolution,
        color["color_space"], color["color_transfer"], color["color_primaries"],
    )
    return MediaInfo(path=path, frame_count=frame_count, resolution=resolution, color=color)
