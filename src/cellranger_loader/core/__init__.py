"""
Core data structures for Cell Ranger matrix loading.

1. CellRangerDataset: Sparse count matrix with aligned feature and barcode annotations
2. MatrixLayout / MatrixLocation: The detected export layout, resolved once per load
3. Exceptions: One error class per failure kind, all deriving from CellRangerLoadError
"""

from cellranger_loader.core.dataset import CellRangerDataset
from cellranger_loader.core.layout import GENE_EXPRESSION, MatrixLayout, MatrixLocation
from cellranger_loader.core.exceptions import (
    CellRangerLoadError,
    PathNotFoundError,
    AmbiguousGenomeError,
    UnknownGenomeError,
    MissingInputFileError,
    ParseError,
    TableParseError,
    MatrixParseError,
    DimensionMismatchError,
)

__all__ = [
    'CellRangerDataset',
    'MatrixLayout',
    'MatrixLocation',
    'GENE_EXPRESSION',
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
