"""
Matrix Market reader for Cell Ranger count matrices.

Cell Ranger writes ``matrix.mtx[.gz]`` in Matrix Market coordinate format:

    %%MatrixMarket matrix coordinate integer general
    %metadata_json: {...}
    33694 737280 2286884        <- rows (features), cols (barcodes), entries
    33665 1 1                   <- 1-based row, col, value
    ...

The declared dimensions are authoritative: trailing all-zero features or
barcodes have no entries, so the shape cannot be inferred from the triples.
No cross-checks against the feature or barcode tables are done here; the
row count may still change through modality filtering before assembly.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from scipy import io as sio
from scipy import sparse

from cellranger_loader.core.exceptions import MatrixParseError

__all__ = ['read_mtx_header', 'read_mtx']

logger = logging.getLogger(__name__)


def read_mtx_header(path: str | os.PathLike) -> tuple[int, int, int, str, str, str]:
    """
    Read the Matrix Market banner and size line.

    Returns:
        (rows, cols, entries, format, field, symmetry) as reported by
        ``scipy.io.mminfo``

    Raises:
        MatrixParseError: If the header cannot be parsed
    """
    path = Path(path)
    try:
        return sio.mminfo(str(path))
    except Exception as e:
        raise MatrixParseError(f"Failed to read Matrix Market header of {path}: {e}") from e


def read_mtx(path: str | os.PathLike) -> sparse.csr_matrix:
    """
    Read a coordinate-format Matrix Market file into a CSR matrix.

    Args:
        path: matrix.mtx or matrix.mtx.gz

    Returns:
        CSR matrix whose shape equals the declared (rows, cols) header

    Raises:
        MatrixParseError: If the file is not a coordinate Matrix Market file
            or its body cannot be parsed

    Examples:
        >>> m = read_mtx("outs/filtered_feature_bc_matrix/matrix.mtx.gz")
        >>> m.shape
        (33538, 5025)
    """
    path = Path(path)
    n_rows, n_cols, n_entries, fmt, field, symmetry = read_mtx_header(path)

    if fmt != "coordinate":
        raise MatrixParseError(
            f"Expected a coordinate (sparse) Matrix Market file, got '{fmt}': {path}"
        )

    try:
        # scipy decompresses .gz paths itself; the header dimensions set the shape
        matrix = sparse.csr_matrix(sio.mmread(str(path)))
    except Exception as e:
        raise MatrixParseError(f"Failed to parse Matrix Market file {path}: {e}") from e

    logger.debug(
        f"Read {n_rows:,} x {n_cols:,} {field} matrix ({n_entries:,} entries) from {path}"
    )
    return matrix
