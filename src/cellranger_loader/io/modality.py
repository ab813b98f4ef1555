"""
Gene expression selection for combined-layout (Cell Ranger >= 3) exports.

A feature-barcode matrix can mix several feature types in one file:
Gene Expression, Antibody Capture, CRISPR Guide Capture, Custom, ... Only
Gene Expression rows are kept.

Multi-genome (barnyard) references prefix every gene id with the genome
name, e.g. ``hg19_ENSG00000243485`` / ``mm10___ENSMUSG00000051951``. When a
genome is requested, rows are further restricted to ids containing that
name. Single-genome samples carry no prefix, so a genome that matches no id
is ignored (with a log note) instead of dropping every row.

Note that the genome match is a plain substring test and can therefore also
match an unrelated id that happens to contain the string.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd
from scipy import sparse

from cellranger_loader.core.dataset import FEATURE_COLUMNS
from cellranger_loader.core.exceptions import DimensionMismatchError
from cellranger_loader.core.layout import GENE_EXPRESSION

__all__ = ['gene_expression_mask', 'filter_gene_expression']

logger = logging.getLogger(__name__)


def gene_expression_mask(features: pd.DataFrame, genome: Optional[str] = None) -> np.ndarray:
    """
    Boolean keep-mask over feature rows.

    Args:
        features: Feature table with ``id`` and ``feature_type`` columns
        genome: Optional genome name to match as a substring of ``id``

    Returns:
        Boolean array, True for rows to keep
    """
    allowed = (features["feature_type"] == GENE_EXPRESSION).to_numpy()

    if genome is not None:
        genome_match = features["id"].str.contains(genome, regex=False).to_numpy()
        if genome_match.any():
            allowed = allowed & genome_match
        else:
            logger.info(
                f"No feature id contains genome '{genome}'; data does not appear to be "
                "from a multi-genome sample, returning all gene expression features "
                "without filtering by genome."
            )

    return allowed


def filter_gene_expression(
    matrix: sparse.spmatrix,
    features: pd.DataFrame,
    genome: Optional[str] = None,
) -> tuple[sparse.csr_matrix, pd.DataFrame]:
    """
    Keep only Gene Expression rows (optionally of one genome) in matrix and features.

    Args:
        matrix: Count matrix (features x cells)
        features: Feature table aligned with matrix rows, with columns
            ``id``, ``gene_short_name``, ``feature_type``
        genome: Optional genome name (see module docstring)

    Returns:
        (filtered CSR matrix, filtered feature table). Rows are renumbered
        from 0, the table keeps only ``id`` and ``gene_short_name``

    Raises:
        DimensionMismatchError: If features and matrix rows are not the same length

    Examples:
        >>> matrix, features = filter_gene_expression(matrix, features, genome="hg19")
        >>> set(features.columns)
        {'id', 'gene_short_name'}
    """
    if len(features) != matrix.shape[0]:
        raise DimensionMismatchError(
            f"Feature table has {len(features)} rows but matrix has {matrix.shape[0]}"
        )

    keep = gene_expression_mask(features, genome)
    n_dropped = int((~keep).sum())
    if n_dropped:
        dropped_types = features.loc[~keep, "feature_type"].value_counts()
        logger.info(
            f"Dropped {n_dropped:,} features "
            f"({', '.join(f'{t}: {n}' for t, n in dropped_types.items())})"
        )

    filtered_matrix = sparse.csr_matrix(matrix)[keep, :]
    filtered_features = (
        features.loc[keep, list(FEATURE_COLUMNS)].reset_index(drop=True)
    )
    return filtered_matrix, filtered_features
