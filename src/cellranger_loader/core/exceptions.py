"""
Exception hierarchy for Cell Ranger output loading.

Every failure while loading a pipestance is fatal for that call. The classes
below let callers tell the failure kinds apart, and each also subclasses the
builtin exception a generic caller would expect (``FileNotFoundError`` for
missing paths, ``ValueError`` for bad content), so
``except FileNotFoundError`` keeps working.

Examples:
    >>> from cellranger_loader.core.exceptions import CellRangerLoadError
    >>> try:
    ...     dataset = load_cellranger_data("/data/run1")
    ... except CellRangerLoadError as e:
    ...     print(f"Could not load run1: {e}")
"""

from __future__ import annotations

from typing import Sequence

__all__ = [
    'CellRangerLoadError',
    'PathNotFoundError',
    'AmbiguousGenomeError',
    'UnknownGenomeError',
    'MissingInputFileError',
    'ParseError',
    'TableParseError',
    'MatrixParseError',
    'DimensionMismatchError',
]


class CellRangerLoadError(Exception):
    """Base class for all errors raised while loading Cell Ranger output."""
    pass


class PathNotFoundError(CellRangerLoadError, FileNotFoundError):
    """Raised when the pipestance root, its outs/ directory, or the matrix directory is missing."""
    pass


class _GenomeError(CellRangerLoadError, ValueError):
    """Shared base for genome resolution failures; keeps the candidate list."""

    def __init__(self, message: str, candidates: Sequence[str] = ()):
        super().__init__(message)
        self.candidates = list(candidates)


class AmbiguousGenomeError(_GenomeError):
    """Raised when a legacy matrix directory holds several genomes and none was requested."""
    pass


class UnknownGenomeError(_GenomeError):
    """Raised when the requested genome is not among the genomes present."""
    pass


class MissingInputFileError(CellRangerLoadError, FileNotFoundError):
    """Raised when the barcode, feature, or matrix file is absent."""
    pass


class ParseError(CellRangerLoadError, ValueError):
    """Raised when an input file cannot be parsed."""
    pass


class TableParseError(ParseError):
    """Raised for malformed feature or barcode tables."""
    pass


class MatrixParseError(ParseError):
    """Raised for malformed Matrix Market files."""
    pass


class DimensionMismatchError(CellRangerLoadError, ValueError):
    """Raised when the matrix shape disagrees with the feature or barcode table."""
    pass
