"""Built-in metrics; the registry checks frame dimensions before calling them."""

from __future__ import annotations

import math

import numpy as np

from lc_errors import ScoringError
from lc_registry import metric
from lc_types import LinearFrame

MAX_PSNR = 100.0

SSIMU2_BACKENDS = ("vship", "vszip")
SSIMU2_PROP_KEYS = ("_SSIMULACRA2", "SSIMULACRA2")

# VapourSynth frame prop codes
_TRANSFER_LINEAR = 8
_TRANSFER_SRGB = 13
_PRIMARIES_BT709 = 1
_MATRIX_RGB = 0


@metric("psnr")
def metric_psnr(src: LinearFrame, dst: LinearFrame) -> float:
    """Linear-light PSNR against a peak of 1.0."""
    diff = src.data.astype(np.float64) - dst.data
    mse = float(np.mean(diff * diff))
    if mse <= 0.0:
        return MAX_PSNR
    return min(MAX_PSNR, 10.0 * math.log10(1.0 / mse))


def has_vapoursynth() -> bool:
    try:
        import vapoursynth  # noqa: F401
        return True
    except Exception:
        return False


def _pick_backend(core, backend: str) -> str:
    have = {
        "vship": hasattr(core, "vship") and hasattr(core.vship, "SSIMULACRA2"),
        "vszip": hasattr(core, "vszip") and hasattr(core.vszip, "SSIMULACRA2"),
    }
    if backend == "auto":
        for name in SSIMU2_BACKENDS:
            if have[name]:
                return name
        raise ScoringError("No SSIMULACRA2 VapourSynth plugin found. Install vship or vszip.")
    if not have.get(backend):
        raise ScoringError(f"{backend} VapourSynth plugin is not loaded (core.{backend}.SSIMULACRA2 not available).")
    return backend


def _frame_clip(vs, core, frame: LinearFrame):
    """Single-frame sRGB-encoded RGBS clip holding ``frame``."""
    blank = core.std.BlankClip(width=frame.width, height=frame.height, format=vs.RGBS, length=1, keep=True)

    def _fill(n, f):
        fout = f.copy()
        for plane in range(3):
            np.copyto(np.asarray(fout[plane]), frame.data[:, :, plane])
        return fout

    clip = core.std.ModifyFrame(clip=blank, clips=blank, selector=_fill)
    clip = core.std.SetFrameProps(
        clip, _Matrix=_MATRIX_RGB, _Transfer=_TRANSFER_LINEAR, _Primaries=_PRIMARIES_BT709, _ColorRange=0
    )
    return core.resize.Point(
        clip,
        format=vs.RGBS,
        transfer_in=_TRANSFER_LINEAR,
        transfer=_TRANSFER_SRGB,
        primaries_in=_PRIMARIES_BT709,
        primaries=_PRIMARIES_BT709,
    )


@metric("ssimulacra2", backends=SSIMU2_BACKENDS)
def metric_ssimulacra2(src: LinearFrame, dst: LinearFrame, *, backend: str = "auto") -> float:
    """SSIMULACRA2 through the vship or vszip VapourSynth plugin."""
    if not has_vapoursynth():
        raise ScoringError(
            "VapourSynth is not available (python module not found). Install VapourSynth and the vship or vszip plugin."
        )

    import vapoursynth as vs  # type: ignore

    core = vs.core
    selected = _pick_backend(core, backend)
    ref = _frame_clip(vs, core, src)
    dis = _frame_clip(vs, core, dst)
    if selected == "vship":
        result = core.vship.SSIMULACRA2(ref, dis, numStream=1)
    else:
        result = core.vszip.SSIMULACRA2(ref, dis)

    props = result.get_frame(0).props
    for k in SSIMU2_PROP_KEYS:
        if k in props:
            return float(props[k])
    raise ScoringError(f"{selected} produced a frame without SSIMULACRA2 props ({', '.join(SSIMU2_PROP_KEYS)}).")

