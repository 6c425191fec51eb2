"""ffmpeg decoding to linear-light planar float32 RGB."""

from __future__ import annotations

import subprocess
import threading
from pathlib import Path
from typing import IO, Callable, Iterator, List, Mapping, Sequence

from lc_cmd import format_cmd, spawn_pipe, tail
from lc_errors import DecodeError
from lc_logging import LOG
from lc_types import Resolution

# Three float32 LE planes per frame, in G, B, R order.
PIX_FMT = "gbrpf32le"

DEFAULT_NPL = 100

SpawnFn = Callable[[Sequence[str]], subprocess.Popen]


def build_linearize_filter(color: Mapping[str, str], npl: int = DEFAULT_NPL) -> str:
    """zscale chain converting the tagged input to linear light, BT.709 primaries."""
    return (
        f"zscale=matrixin={color['color_space']}"
        f":transferin={color['color_transfer']}"
        f":primariesin={color['color_primaries']}"
        f":transfer=linear:primaries=bt709:npl={int(npl)}"
        f",format={PIX_FMT}"
    )


def build_decode_command(
    path: Path,
    color: Mapping[str, str],
    *,
    ffmpeg: str = "ffmpeg",
    npl: int = DEFAULT_NPL,
) -> List[str]:
    return [
        ffmpeg,
        "-hide_banner",
        "-nostdin",
        "-v", "error",
        "-i", str(path),
        "-map", "0:v:0",
        "-vf", build_linearize_filter(color, npl),
        "-pix_fmt", PIX_FMT,
        "-fps_mode", "passthrough",
        "-f", "rawvideo",
        "-",
    ]


def _spawn(spawn: SpawnFn, cmd: Sequence[str]) -> subprocess.Popen:
    try:
        return spawn(cmd)
    except OSError as e:
        raise DecodeError(f"Could not start ffmpeg ({format_cmd(cmd)}): {e}") from e


def _failed(cmd: Sequence[str], rc: int, stderr: bytes) -> DecodeError:
    msg = tail(stderr.decode("utf-8", errors="replace"))
    return DecodeError(f"ffmpeg failed (rc={rc}): {format_cmd(cmd)}\n{msg}")


def _check_length(size: int, resolution: Resolution, path: Path) -> int:
    frame_bytes = resolution.frame_bytes
    if size == 0:
        raise DecodeError(f"ffmpeg produced no frames for {path}.")
    frames, rem = divmod(size, frame_bytes)
    if rem:
        raise DecodeError(
            f"Decoded {size} bytes from {path}, not a multiple of one frame "
            f"({resolution.width}x{resolution.height}x3x4 = {frame_bytes}): "
            f"{frames} whole frames + {rem} bytes."
        )
    return frames


def decode_raw(
    path: Path,
    resolution: Resolution,
    color: Mapping[str, str],
    *,
    ffmpeg: str = "ffmpeg",
    npl: int = DEFAULT_NPL,
    spawn: SpawnFn = spawn_pipe,
) -> bytes:
    """Decode a whole input into memory.

    stdout and stderr are drained concurrently by ``communicate`` so a large
    output can never block the child on a full pipe.
    """
    cmd = build_decode_command(path, color, ffmpeg=ffmpeg, npl=npl)
    proc = _spawn(spawn, cmd)
    out, err = proc.communicate()
    if proc.returncode != 0:
        raise _failed(cmd, proc.returncode, err or b"")
    out = out or b""
    frames = _check_length(len(out), resolution, Path(path))
    LOG.info("[decode] %s: %d frames (%d bytes)", Path(path).name, frames, len(out))
    return out


def _drain(stream: IO[bytes], sink: List[bytes]) -> None:
    for chunk in iter(lambda: stream.read(65536), b""):
        sink.append(chunk)


def _read_exact(stream: IO[bytes], size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = stream.read(size - len(buf))
        if not chunk:
            break
        buf += chunk
    return bytes(buf)


def iter_raw_frames(
    path: Path,
    resolution: Resolution,
    color: Mapping[str, str],
    *,
    ffmpeg: str = "ffmpeg",
    npl: int = DEFAULT_NPL,
    spawn: SpawnFn = spawn_pipe,
) -> Iterator[bytes]:
    """Yield one frame's raw bytes at a time.

    Only a single frame is buffered. Closing the generator before the end
    kills the child process.
    """
    cmd = build_decode_command(path, color, ffmpeg=ffmpeg, npl=npl)
    proc = _spawn(spawn, cmd)
    assert proc.stdout is not None and proc.stderr is not None
    err_chunks: List[bytes] = []
    drain = threading.Thread(target=_drain, args=(proc.stderr, err_chunks), name="ffmpeg-stderr", daemon=True)
    drain.start()

    frame_bytes = resolution.frame_bytes
    count = 0
    done = False
    try:
        while True:
            chunk = _read_exact(proc.stdout, frame_bytes)
            if not chunk:
                break
            if len(chunk) != frame_bytes:
                proc.wait()
                drain.join()
                if proc.returncode != 0:
                    raise _failed(cmd, proc.returncode, b"".join(err_chunks))
                _check_length(count * frame_bytes + len(chunk), resolution, Path(path))
            count += 1
            yield chunk
        done = True
    finally:
        if not done and proc.poll() is None:
            proc.kill()
        proc.stdout.close()
        proc.wait()
        drain.join()
        proc.stderr.close()

    if proc.returncode != 0:
        raise _failed(cmd, proc.returncode, b"".join(err_chunks))
    if count == 0:
        raise DecodeError(f"ffmpeg produced no frames for {path}.")
    LOG.info("[decode] %s: streamed %d frames", Path(path).name, count)
