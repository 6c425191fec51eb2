"""Subprocess execution helpers."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from typing import Optional, Sequence

from lc_logging import LOG, strip_ansi


def format_cmd(cmd: Sequence[object]) -> str:
    return " ".join(shlex.quote(str(x)) for x in cmd)


def which_or_none(exe: str) -> Optional[str]:
    return shutil.which(exe)


def tail(text: str, limit: int = 2000) -> str:
    text = strip_ansi(text).strip()
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]


def run_capture(cmd: Sequence[object]) -> subprocess.CompletedProcess:
    """Run a short command to completion and capture its text output.

    Does not check the return code; callers decide which error type a failure
    maps to. A missing executable raises ``OSError`` as ``subprocess.run`` does.
    """
    LOG.debug("[cmd] %s", format_cmd(cmd))
    return subprocess.run(
        list(map(str, cmd)),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    )


def spawn_pipe(cmd: Sequence[object]) -> subprocess.Popen:
    """Start a producer process with binary stdout/stderr pipes."""
    LOG.debug("[cmd] %s", format_cmd(cmd))
    return subprocess.Popen(
        list(map(str, cmd)),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
