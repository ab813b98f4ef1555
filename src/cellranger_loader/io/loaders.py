"""
Cell Ranger pipestance loader.

Loads the sparse matrix export of one Cell Ranger run into a
CellRangerDataset, for either export layout.

Biological Context:
    Cell Ranger quantifies droplet single-cell RNA-seq and writes a
    features x barcodes UMI count matrix plus two annotation tables:
    - matrix.mtx: sparse counts (Matrix Market coordinate format)
    - genes.tsv / features.tsv: Ensembl id, gene symbol[, feature type]
    - barcodes.tsv: cell barcode per column

    The filtered matrix holds only barcodes called as cells; the raw matrix
    holds every barcode seen (including empty droplets).

    Cell Ranger 3+ multiplexes other feature types (antibody capture, CRISPR
    guides) into the same matrix; only Gene Expression rows are returned.

Engineering Design:
    - Layout is detected once, every later step branches on the enum
    - File order defines alignment; nothing is re-sorted or joined
    - Duplicate identifiers are made unique, never dropped
    - Every shape disagreement is fatal and names the files involved

Examples:
    >>> from cellranger_loader.io.loaders import load_cellranger_data
    >>>
    >>> dataset = load_cellranger_data("/data/pbmc_10k_v3")
    >>> print(f"Loaded {dataset.n_features} genes x {dataset.n_cells} cells")
    Loaded 33538 genes x 11769 cells
    >>>
    >>> # Barnyard sample, keep human genes only
    >>> dataset = load_cellranger_data("/data/hgmm_1k", genome="hg19")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import pandas as pd
from scipy import sparse

from cellranger_loader.core.dataset import CellRangerDataset
from cellranger_loader.core.exceptions import DimensionMismatchError
from cellranger_loader.core.layout import MatrixLayout
from cellranger_loader.io.modality import filter_gene_expression
from cellranger_loader.io.mtx import read_mtx
from cellranger_loader.io.paths import locate_input_files, resolve_matrix_dir
from cellranger_loader.io.tables import disambiguate, read_barcode_table, read_feature_table

__all__ = ['load_cellranger_data', 'assemble_dataset']

logger = logging.getLogger(__name__)


def _check_feature_rows(matrix: sparse.spmatrix, features: pd.DataFrame,
                        feature_path: Path, matrix_path: Path) -> None:
    if matrix.shape[0] != len(features):
        raise DimensionMismatchError(
            f"Mismatch dimension between gene file: \n\t {feature_path}\n "
            f"and matrix file: \n\t {matrix_path}\n"
            f"({len(features)} features vs {matrix.shape[0]} matrix rows)"
        )


def _check_barcode_columns(matrix: sparse.spmatrix, barcodes: pd.Index,
                           barcode_path: Path, matrix_path: Path) -> None:
    if matrix.shape[1] != len(barcodes):
        raise DimensionMismatchError(
            f"Mismatch dimension between barcode file: \n\t {barcode_path}\n "
            f"and matrix file: \n\t {matrix_path}\n"
            f"({len(barcodes)} barcodes vs {matrix.shape[1]} matrix columns)"
        )


def assemble_dataset(
    matrix: sparse.spmatrix,
    features: pd.DataFrame,
    barcodes: pd.Index,
    *,
    feature_path: Path,
    barcode_path: Path,
    matrix_path: Path,
    layout: Optional[MatrixLayout] = None,
    genome: Optional[str] = None,
) -> CellRangerDataset:
    """
    Confirm dimensional consistency and build the final dataset.

    Args:
        matrix: Count matrix (features x cells), possibly modality-filtered
        features: Feature table with ``id`` and ``gene_short_name``,
            unique ids, aligned with matrix rows
        barcodes: Unique barcodes aligned with matrix columns
        feature_path, barcode_path, matrix_path: Source files, named in errors
        layout, genome: Provenance recorded on the dataset

    Returns:
        CellRangerDataset

    Raises:
        DimensionMismatchError: If matrix rows != len(features) (names the
            feature file) or matrix columns != len(barcodes) (names the
            barcode file)
    """
    _check_feature_rows(matrix, features, feature_path, matrix_path)
    _check_barcode_columns(matrix, barcodes, barcode_path, matrix_path)

    return CellRangerDataset(
        matrix=matrix,
        features=features,
        barcodes=barcodes,
        layout=layout,
        genome=genome,
    )


def load_cellranger_data(
    pipestance_path: str | os.PathLike,
    genome: Optional[str] = None,
    barcode_filtered: bool = True,
) -> CellRangerDataset:
    """
    Load the gene expression matrix of a Cell Ranger run.

    If the run is from Cell Ranger 3.0+ and contains non Gene Expression
    features (e.g. antibodies or CRISPR guides), only Gene Expression rows
    are returned.

    Args:
        pipestance_path: Cell Ranger output directory (contains ``outs``)
        genome: Desired genome (e.g. 'hg19' or 'mm10'). Required for legacy
            multi-genome runs; for combined-layout runs it restricts features
            to ids containing the name, if any do
        barcode_filtered: Load only cell-containing barcodes (default True)

    Returns:
        CellRangerDataset with:
        - matrix: CSR counts (genes x cells)
        - features: id (unique) and gene_short_name per row
        - barcodes: unique cell barcodes per column

    Raises:
        PathNotFoundError: Missing pipestance, outs, or matrix directory
        AmbiguousGenomeError: Legacy layout with several genomes and none given
        UnknownGenomeError: Requested genome not present (legacy layout)
        MissingInputFileError: A barcode, feature, or matrix file is absent
        ParseError: A table or the matrix is malformed
        DimensionMismatchError: Tables and matrix disagree in size
    """
    location = resolve_matrix_dir(pipestance_path, barcode_filtered=barcode_filtered)
    files = locate_input_files(location, genome=genome)
    layout = files.layout

    logger.info(
        f"Loading {'filtered' if barcode_filtered else 'raw'} {layout.value} "
        f"matrix from {location.matrix_dir}"
        + (f" (genome {files.genome})" if files.genome else "")
    )

    matrix = read_mtx(files.matrix)

    features = read_feature_table(files.features, layout)
    features["id"] = disambiguate(features["id"].tolist(), "feature ids", files.features)
    _check_feature_rows(matrix, features, files.features, files.matrix)

    if layout is MatrixLayout.COMBINED:
        matrix, features = filter_gene_expression(matrix, features, genome=files.genome)

    barcode_table = read_barcode_table(files.barcodes)
    barcodes = pd.Index(
        disambiguate(barcode_table["barcode"].tolist(), "barcodes", files.barcodes),
        name="barcode",
    )

    dataset = assemble_dataset(
        matrix,
        features,
        barcodes,
        feature_path=files.features,
        barcode_path=files.barcodes,
        matrix_path=files.matrix,
        layout=layout,
        genome=files.genome,
    )

    logger.info(f"Loaded {dataset.n_features:,} features x {dataset.n_cells:,} cells")
    return dataset
