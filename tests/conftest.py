import logging
import subprocess
import sys

import numpy as np
import pytest

import lc_probe
from lc_logging import LOG


def planar_bytes(frames):
    """Encode (height, width, 3) RGB arrays the way ffmpeg writes gbrpf32le."""
    out = bytearray()
    for rgb in frames:
        rgb = np.asarray(rgb, dtype="<f4")
        for channel in (1, 2, 0):
            out += rgb[:, :, channel].tobytes()
    return bytes(out)


def python_spawn(script):
    """A decoder stand-in: runs ``script`` in a child Python, ignoring the command."""

    def spawn(cmd):
        return subprocess.Popen(
            [sys.executable, "-c", script],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )

    return spawn


def file_spawn(path):
    return python_spawn(
        "import sys\n"
        f"data = open({str(path)!r}, 'rb').read()\n"
        "sys.stdout.buffer.write(data)\n"
    )


@pytest.fixture
def fake_ffprobe(monkeypatch):
    """Route ffprobe calls to canned outputs keyed by the requested entries."""
    outputs = {
        "stream=width,height": "2,1\n",
        "stream=nb_read_packets": "2\n",
        "stream=color_space,color_transfer,color_primaries": "unknown,bt709,unknown\n",
    }
    calls = []

    def run_capture(cmd):
        calls.append(list(cmd))
        entries = cmd[cmd.index("-show_entries") + 1]
        return subprocess.CompletedProcess(list(cmd), 0, stdout=outputs[entries], stderr="")

    monkeypatch.setattr(lc_probe, "run_capture", run_capture)
    run_capture.outputs = outputs
    run_capture.calls = calls
    return run_capture


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    for handler in list(LOG.handlers):
        LOG.removeHandler(handler)
        handler.close()
    LOG.setLevel(logging.NOTSET)
    LOG.propagate = True
