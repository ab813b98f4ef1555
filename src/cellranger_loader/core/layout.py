"""
Directory layouts written by the Cell Ranger pipeline.

Cell Ranger has shipped two on-disk conventions for its sparse matrix export:

    Legacy (Cell Ranger <= 2.x), one subdirectory per reference genome:
        outs/filtered_gene_bc_matrices/<genome>/{matrix.mtx, genes.tsv, barcodes.tsv}
        outs/raw_gene_bc_matrices/<genome>/...

    Combined (Cell Ranger >= 3.0), one directory for all feature types:
        outs/filtered_feature_bc_matrix/{matrix.mtx.gz, features.tsv.gz, barcodes.tsv.gz}
        outs/raw_feature_bc_matrix/...

In the combined layout the genome and the feature type (Gene Expression,
Antibody Capture, CRISPR Guide Capture, ...) are columns of the feature file
rather than directory names.

The layout is resolved once per load and stored in a MatrixLocation; every
later step branches on ``location.layout`` instead of probing the
filesystem again.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

__all__ = [
    'MatrixLayout',
    'MatrixLocation',
    'GENE_EXPRESSION',
    'OUTS_DIR',
]

# Feature type tag for gene expression rows in features.tsv (column 3)
GENE_EXPRESSION = "Gene Expression"

OUTS_DIR = "outs"


class MatrixLayout(Enum):
    """Cell Ranger matrix export layout."""
    LEGACY = "legacy"        # per-genome subdirectories, genes.tsv
    COMBINED = "combined"    # single directory, features.tsv.gz with feature_type

    @property
    def filtered_dir(self) -> str:
        """Name of the filtered (cell-containing barcodes) matrix directory."""
        return _MATRIX_DIRS[(self, True)]

    @property
    def raw_dir(self) -> str:
        """Name of the raw (all barcodes) matrix directory."""
        return _MATRIX_DIRS[(self, False)]

    def matrix_dir_name(self, barcode_filtered: bool) -> str:
        return _MATRIX_DIRS[(self, bool(barcode_filtered))]

    @property
    def feature_file(self) -> str:
        return "features.tsv" if self is MatrixLayout.COMBINED else "genes.tsv"

    @property
    def feature_columns(self) -> tuple[str, ...]:
        """Column names assigned to the headerless feature file."""
        if self is MatrixLayout.COMBINED:
            return ("id", "gene_short_name", "feature_type")
        return ("id", "gene_short_name")

    @property
    def compressed(self) -> bool:
        """Whether the pipeline gzips the three files in this layout."""
        return self is MatrixLayout.COMBINED


_MATRIX_DIRS = {
    (MatrixLayout.LEGACY, True): "filtered_gene_bc_matrices",
    (MatrixLayout.LEGACY, False): "raw_gene_bc_matrices",
    (MatrixLayout.COMBINED, True): "filtered_feature_bc_matrix",
    (MatrixLayout.COMBINED, False): "raw_feature_bc_matrix",
}


@dataclass(frozen=True)
class MatrixLocation:
    """
    Resolved matrix directory for one pipestance.

    Attributes:
        layout: Detected export layout
        outs_dir: The pipestance ``outs`` directory
        matrix_dir: Filtered or raw matrix directory (for the legacy layout
            this is the parent of the per-genome subdirectories)
        barcode_filtered: True if the filtered cell set was selected
    """
    layout: MatrixLayout
    outs_dir: Path
    matrix_dir: Path
    barcode_filtered: bool = True
