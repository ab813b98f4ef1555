"""
File helpers shared by the readers and writers.

Reading: Cell Ranger >= 3 gzips its outputs, older versions do not, and
users sometimes gunzip by hand. ``open_binary`` picks the right opener from
the file suffix; the table readers use it to inspect raw lines.

Writing: text outputs go through a temporary file in the destination
directory followed by ``os.replace()``, so an interrupted run never leaves a
half-written table behind.
"""

from __future__ import annotations

import gzip
import os
import tempfile
from pathlib import Path
from typing import BinaryIO


def is_gzipped(path: str | os.PathLike) -> bool:
    """True if *path* has a ``.gz`` suffix."""
    return str(path).endswith(".gz")


def open_binary(path: str | os.PathLike) -> BinaryIO:
    """Open *path* for binary reading, transparently decompressing ``.gz`` files."""
    if is_gzipped(path):
        return gzip.open(path, "rb")
    return open(path, "rb")


def first_existing(*candidates: Path) -> Path | None:
    """Return the first candidate path that exists as a file, else None."""
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def atomic_write_text(path: str | os.PathLike, content: str) -> Path:
    """
    Write text to *path* through a sibling temp file and os.replace().

    Returns:
        The destination path
    """
    dest = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", newline="") as fh:
            fh.write(content)
        os.replace(tmp, dest)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return dest
