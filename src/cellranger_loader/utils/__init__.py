"""Utility modules for Cell Ranger file handling."""

from cellranger_loader.utils.fileio import (
    atomic_write_text,
    first_existing,
    is_gzipped,
    open_binary,
)

__all__ = [
    'atomic_write_text',
    'first_existing',
    'is_gzipped',
    'open_binary',
]
