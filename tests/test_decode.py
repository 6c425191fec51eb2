import numpy as np
import pytest

from conftest import file_spawn, planar_bytes, python_spawn
from lc_decode import build_decode_command, build_linearize_filter, decode_raw, iter_raw_frames
from lc_demux import demux_sequence
from lc_errors import DecodeError
from lc_types import Resolution

COLOR = {"color_space": "bt709", "color_transfer": "smpte2084", "color_primaries": "bt2020"}


def test_linearize_filter_embeds_tags():
    assert build_linearize_filter(COLOR) == (
        "zscale=matrixin=bt709:transferin=smpte2084:primariesin=bt2020"
        ":transfer=linear:primaries=bt709:npl=100,format=gbrpf32le"
    )
    assert ":npl=203," in build_linearize_filter(COLOR, npl=203)


def test_decode_command_layout():
    cmd = build_decode_command("in.mkv", COLOR, ffmpeg="/opt/ffmpeg")
    assert cmd[0] == "/opt/ffmpeg"
    assert cmd[cmd.index("-i") + 1] == "in.mkv"
    assert cmd[cmd.index("-vf") + 1] == build_linearize_filter(COLOR)
    assert cmd[cmd.index("-pix_fmt") + 1] == "gbrpf32le"
    assert cmd[cmd.index("-fps_mode") + 1] == "passthrough"
    assert cmd[cmd.index("-f") + 1] == "rawvideo"
    assert cmd[-1] == "-"


def test_decode_reads_output_larger_than_pipe_buffer():
    res = Resolution(64, 64)
    frames = 10
    # noisy stderr as well, both pipes must be drained while the child runs
    script = (
        "import sys\n"
        "sys.stderr.write('x' * 200000)\n"
        "sys.stderr.flush()\n"
        f"sys.stdout.buffer.write(b'\\x00' * {res.frame_bytes * frames})\n"
    )
    raw = decode_raw("clip.mkv", res, COLOR, spawn=python_spawn(script))
    assert len(raw) == res.frame_bytes * frames


def test_decode_round_trip_through_demux(tmp_path):
    rgb = [np.random.default_rng(i).random((2, 3, 3), dtype=np.float32) for i in range(4)]
    src = tmp_path / "raw.bin"
    src.write_bytes(planar_bytes(rgb))
    res = Resolution(3, 2)

    raw = decode_raw(src, res, COLOR, spawn=file_spawn(src))
    frames = demux_sequence(raw, res, 4)

    for got, expected in zip(frames, rgb):
        np.testing.assert_array_equal(got.data, expected)


def test_decode_failure_reports_stderr():
    script = "import sys\nsys.stderr.write('Invalid data found')\nsys.exit(3)\n"
    with pytest.raises(DecodeError) as exc:
        decode_raw("bad.mkv", Resolution(2, 2), COLOR, spawn=python_spawn(script))
    assert "rc=3" in str(exc.value)
    assert "Invalid data found" in str(exc.value)


def test_decode_rejects_partial_frame():
    res = Resolution(2, 2)
    script = f"import sys\nsys.stdout.buffer.write(b'\\x00' * {res.frame_bytes + 5})\n"
    with pytest.raises(DecodeError, match="not a multiple of one frame"):
        decode_raw("clip.mkv", res, COLOR, spawn=python_spawn(script))


def test_decode_rejects_empty_output():
    with pytest.raises(DecodeError, match="no frames"):
        decode_raw("clip.mkv", Resolution(2, 2), COLOR, spawn=python_spawn("pass"))


def test_missing_decoder_binary():
    with pytest.raises(DecodeError, match="Could not start ffmpeg"):
        decode_raw("clip.mkv", Resolution(2, 2), COLOR, ffmpeg="/nonexistent/ffmpeg-lincompare")


def test_stream_yields_one_frame_at_a_time():
    res = Resolution(32, 32)
    script = (
        "import sys\n"
        "sys.stderr.write('y' * 200000)\n"
        f"sys.stdout.buffer.write(b'\\x01' * {res.frame_bytes * 5})\n"
    )
    chunks = list(iter_raw_frames("clip.mkv", res, COLOR, spawn=python_spawn(script)))
    assert [len(c) for c in chunks] == [res.frame_bytes] * 5


def test_stream_partial_frame():
    res = Resolution(2, 2)
    script = f"import sys\nsys.stdout.buffer.write(b'\\x00' * {res.frame_bytes * 2 + 7})\n"
    gen = iter_raw_frames("clip.mkv", res, COLOR, spawn=python_spawn(script))
    assert len(next(gen)) == res.frame_bytes
    assert len(next(gen)) == res.frame_bytes
    with pytest.raises(DecodeError, match="not a multiple of one frame"):
        next(gen)


def test_stream_failure_after_output():
    res = Resolution(2, 2)
    script = (
        "import sys\n"
        f"sys.stdout.buffer.write(b'\\x00' * {res.frame_bytes})\n"
        "sys.stdout.flush()\n"
        "sys.stderr.write('decoder exploded')\n"
        "sys.exit(1)\n"
    )
    with pytest.raises(DecodeError, match="decoder exploded"):
        list(iter_raw_frames("clip.mkv", res, COLOR, spawn=python_spawn(script)))


def test_stream_close_early_stops_child():
    res = Resolution(16, 16)
    script = (
        "import sys\n"
        f"chunk = b'\\x00' * {res.frame_bytes}\n"
        "while True:\n"
        "    sys.stdout.buffer.write(chunk)\n"
    )
    gen = iter_raw_frames("clip.mkv", res, COLOR, spawn=python_spawn(script))
    assert len(next(gen)) == res.frame_bytes
    gen.close()


def test_stream_missing_binary():
    gen = iter_raw_frames("clip.mkv", Resolution(2, 2), COLOR, ffmpeg="/nonexistent/ffmpeg-lincompare")
    with pytest.raises(DecodeError, match="Could not start ffmpeg"):
        next(gen)
