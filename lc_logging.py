"""Logging setup and console helpers."""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Optional

LOG = logging.getLogger("lincompare")

ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_DATEFMT = "%H:%M:%S"


def eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


def strip_ansi(s: str) -> str:
    return ANSI_RE.sub("", s)


def setup_logging(verbose: bool, log_path: Optional[str] = None) -> None:
    """Route the lincompare logger to stderr and, optionally, a log file."""
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    LOG.handlers.clear()
    LOG.addHandler(handler)
    LOG.setLevel(level)
    LOG.propagate = False

    if not log_path:
        return
    p = Path(log_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(p, mode="a", encoding="utf-8")
    fh.setFormatter(formatter)
    # the file always gets the full trace
    fh.setLevel(logging.DEBUG)
    LOG.addHandler(fh)
    LOG.setLevel(logging.DEBUG)
