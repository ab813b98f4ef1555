"""
Core data structure for a loaded Cell Ranger gene-barcode matrix.

CellRangerDataset ties the sparse count matrix to its feature annotations and
cell barcodes, aligned purely by position:

    - Rows = features (genes), row i annotated by features.iloc[i]
    - Columns = cells (barcodes), column j identified by barcodes[j]
    - Values = UMI counts

Engineering Design:
    - Immutable: Properties are read-only, subsetting returns new instances
    - Sparse: scipy.sparse CSR matrix, never densified implicitly
    - Validated: Constructor checks shape consistency and id uniqueness
    - Library-neutral: No AnnData / modeling types; see cellranger_loader.adapters

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from scipy import sparse
    >>> from cellranger_loader.core.dataset import CellRangerDataset
    >>>
    >>> matrix = sparse.csr_matrix(np.array([[0, 3], [1, 0]]))
    >>> features = pd.DataFrame(
    ...     {'id': ['ENSG01', 'ENSG02'], 'gene_short_name': ['TP53', 'MYC']}
    ... )
    >>> barcodes = pd.Index(['AAAC-1', 'AAAG-1'], name='barcode')
    >>> dataset = CellRangerDataset(matrix, features, barcodes)
    >>> dataset.shape
    (2, 2)
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd
from scipy import sparse

from cellranger_loader.core.layout import MatrixLayout

__all__ = ['CellRangerDataset', 'FEATURE_COLUMNS']

# Columns retained in the assembled feature table
FEATURE_COLUMNS = ("id", "gene_short_name")


class CellRangerDataset:
    """
    Immutable container for a features x cells count matrix and its annotations.

    Attributes:
        matrix: Sparse count matrix (features x cells), CSR format
        features: Feature table with columns ``id`` and ``gene_short_name``,
            indexed by ``id``
        barcodes: Cell barcodes (column identifiers)
        layout: Export layout the data was read from (None if built by hand)
        genome: Genome that was selected, if any

    Shape Invariants:
        - matrix.shape[0] == len(features)
        - matrix.shape[1] == len(barcodes)
        - feature ids and barcodes are unique
    """

    def __init__(
        self,
        matrix: sparse.spmatrix,
        features: pd.DataFrame,
        barcodes: pd.Index,
        layout: Optional[MatrixLayout] = None,
        genome: Optional[str] = None,
    ):
        """
        Initialize CellRangerDataset with validation.

        Args:
            matrix: Sparse matrix (features x cells); converted to CSR
            features: DataFrame with ``id`` and ``gene_short_name`` columns
            barcodes: Cell barcodes, one per matrix column
            layout: Source layout, kept for provenance
            genome: Selected genome, kept for provenance

        Raises:
            TypeError: If matrix is not a scipy sparse matrix or features is
                not a DataFrame
            ValueError: If shapes are inconsistent or identifiers repeat
        """
        if not sparse.issparse(matrix):
            raise TypeError(f"matrix must be a scipy sparse matrix, got {type(matrix)}")
        if not isinstance(features, pd.DataFrame):
            raise TypeError(f"features must be pd.DataFrame, got {type(features)}")

        missing = [c for c in FEATURE_COLUMNS if c not in features.columns]
        if missing:
            raise ValueError(f"features is missing required columns: {missing}")

        barcodes = pd.Index(barcodes, name="barcode")
        n_features, n_cells = matrix.shape

        if len(features) != n_features:
            raise ValueError(
                f"features length ({len(features)}) must match matrix rows ({n_features})"
            )
        if len(barcodes) != n_cells:
            raise ValueError(
                f"barcodes length ({len(barcodes)}) must match matrix columns ({n_cells})"
            )
        if features["id"].duplicated().any():
            raise ValueError("feature ids must be unique")
        if barcodes.duplicated().any():
            raise ValueError("barcodes must be unique")

        features = features.loc[:, list(FEATURE_COLUMNS)].copy()
        features.index = pd.Index(features["id"].to_numpy())

        self._matrix = sparse.csr_matrix(matrix)
        self._features = features
        self._barcodes = barcodes
        self._layout = layout
        self._genome = genome

    @property
    def matrix(self) -> sparse.csr_matrix:
        """Count matrix (features x cells)."""
        return self._matrix

    @property
    def features(self) -> pd.DataFrame:
        """Feature annotations, one row per matrix row."""
        return self._features

    @property
    def barcodes(self) -> pd.Index:
        """Cell barcodes, one per matrix column."""
        return self._barcodes

    @property
    def layout(self) -> Optional[MatrixLayout]:
        return self._layout

    @property
    def genome(self) -> Optional[str]:
        return self._genome

    @property
    def feature_ids(self) -> pd.Index:
        """Row identifiers (Ensembl ids, possibly disambiguated)."""
        return self._features.index

    @property
    def gene_short_names(self) -> pd.Series:
        """Gene symbols; may contain repeats."""
        return self._features["gene_short_name"]

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_features, n_cells)."""
        return self._matrix.shape

    @property
    def n_features(self) -> int:
        return self._matrix.shape[0]

    @property
    def n_cells(self) -> int:
        return self._matrix.shape[1]

    def cell_metadata(self) -> pd.DataFrame:
        """
        Minimal per-cell table keyed by barcode.

        Returns:
            DataFrame with a single ``barcode`` column, indexed by barcode
        """
        return pd.DataFrame(
            {"barcode": self._barcodes.to_numpy()},
            index=pd.Index(self._barcodes.to_numpy()),
        )

    def to_dense(self) -> np.ndarray:
        """Dense copy of the count matrix. Only sensible for small data."""
        return self._matrix.toarray()

    def select_features(self, mask: np.ndarray | pd.Series) -> CellRangerDataset:
        """
        Subset dataset by features (rows).

        Args:
            mask: Boolean array/Series indicating which features to keep.
                If Series, uses values and ignores index

        Returns:
            New CellRangerDataset with selected features

        Raises:
            ValueError: If mask length doesn't match n_features

        Examples:
            >>> mito = dataset.gene_short_names.str.startswith('MT-')
            >>> nuclear = dataset.select_features(~mito)
        """
        if isinstance(mask, pd.Series):
            mask = mask.values
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_features:
            raise ValueError(
                f"mask length ({len(mask)}) must match n_features ({self.n_features})"
            )

        return CellRangerDataset(
            matrix=self._matrix[mask, :],
            features=self._features.iloc[mask].reset_index(drop=True),
            barcodes=self._barcodes,
            layout=self._layout,
            genome=self._genome,
        )

    def select_cells(self, mask: np.ndarray | pd.Series) -> CellRangerDataset:
        """
        Subset dataset by cells (columns).

        Args:
            mask: Boolean array/Series indicating which cells to keep

        Returns:
            New CellRangerDataset with selected cells

        Raises:
            ValueError: If mask length doesn't match n_cells

        Examples:
            >>> umis = np.asarray(dataset.matrix.sum(axis=0)).ravel()
            >>> cells = dataset.select_cells(umis >= 500)
        """
        if isinstance(mask, pd.Series):
            mask = mask.values
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_cells:
            raise ValueError(
                f"mask length ({len(mask)}) must match n_cells ({self.n_cells})"
            )

        return CellRangerDataset(
            matrix=self._matrix[:, mask],
            features=self._features.reset_index(drop=True),
            barcodes=self._barcodes[mask],
            layout=self._layout,
            genome=self._genome,
        )

    def copy(self, deep: bool = True) -> CellRangerDataset:
        """
        Create a copy of this dataset.

        Args:
            deep: If True, copy the matrix and tables. If False, share them

        Returns:
            New CellRangerDataset instance
        """
        if deep:
            return CellRangerDataset(
                matrix=self._matrix.copy(),
                features=self._features.reset_index(drop=True).copy(),
                barcodes=self._barcodes.copy(),
                layout=self._layout,
                genome=self._genome,
            )
        return CellRangerDataset(
            matrix=self._matrix,
            features=self._features.reset_index(drop=True),
            barcodes=self._barcodes,
            layout=self._layout,
            genome=self._genome,
        )

    def __repr__(self) -> str:
        """String representation for debugging."""
        layout = self._layout.value if self._layout is not None else "unknown"
        first_feature = self.feature_ids[0] if self.n_features else "N/A"
        first_cell = self._barcodes[0] if self.n_cells else "N/A"
        return (
            f"CellRangerDataset({self.n_features} features × {self.n_cells} cells, "
            f"{self._matrix.nnz} non-zero)\n"
            f"  Layout: {layout}, genome: {self._genome or 'N/A'}\n"
            f"  Features: {first_feature}...\n"
            f"  Cells: {first_cell}..."
        )

    def __str__(self) -> str:
        return self.__repr__()
