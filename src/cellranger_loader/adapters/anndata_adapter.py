"""
AnnData adapter for loaded Cell Ranger datasets.

CellRangerDataset deliberately knows nothing about downstream modeling
libraries. This adapter is the single place where it is converted into the
container the analysis stack expects (``anndata.AnnData``, as used by
scanpy), together with the model-level settings the caller must provide:

    - per-cell metadata table, keyed by barcode
    - lower detection limit: minimum value counted as true expression
    - expression family: distribution assumed for the count response

Orientation:
    CellRangerDataset is features x cells (Cell Ranger convention); AnnData
    is cells x features, so the matrix is transposed here.

Examples:
    >>> from cellranger_loader.adapters import CellDataSetConfig, ExpressionFamily, to_anndata
    >>> config = CellDataSetConfig(
    ...     lower_detection_limit=0.1,
    ...     expression_family=ExpressionFamily.NEGBINOMIAL_SIZE,
    ... )
    >>> adata = to_anndata(dataset, config)
    >>> adata.uns['cellranger_loader']['expression_family']
    'negbinomial.size'
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import anndata
import pandas as pd

from cellranger_loader.core.dataset import CellRangerDataset

__all__ = ['ExpressionFamily', 'CellDataSetConfig', 'to_anndata']

logger = logging.getLogger(__name__)

UNS_KEY = "cellranger_loader"


class ExpressionFamily(Enum):
    """Distribution family for expression values."""
    NEGBINOMIAL_SIZE = "negbinomial.size"  # UMI counts, fixed size factor
    NEGBINOMIAL = "negbinomial"            # UMI counts, estimated dispersion
    TOBIT = "tobit"                        # log-transformed FPKM/TPM
    GAUSSIAN = "gaussian"                  # already normalised, log scale
    BINOMIAL = "binomial"                  # binarised expression

    @classmethod
    def from_name(cls, name: str) -> ExpressionFamily:
        """Look up by value ('negbinomial.size') or member name ('NEGBINOMIAL_SIZE')."""
        for member in cls:
            if name in (member.value, member.name, member.name.lower()):
                return member
        raise ValueError(
            f"Unknown expression family: '{name}'. "
            f"Available: {[m.value for m in cls]}"
        )


@dataclass
class CellDataSetConfig:
    """
    Model-level settings attached to the converted dataset.

    Attributes:
        lower_detection_limit: Minimum expression level that constitutes true
            expression (default 0.5)
        expression_family: Distribution family for expression response values
            (default NEGBINOMIAL_SIZE, appropriate for UMI counts)
    """
    lower_detection_limit: float = 0.5
    expression_family: ExpressionFamily = field(default=ExpressionFamily.NEGBINOMIAL_SIZE)

    def __post_init__(self):
        """Validate configuration."""
        if isinstance(self.expression_family, str):
            self.expression_family = ExpressionFamily.from_name(self.expression_family)
        limit = float(self.lower_detection_limit)
        if not math.isfinite(limit) or limit < 0:
            raise ValueError(
                f"lower_detection_limit must be a finite, non-negative number, got {self.lower_detection_limit}"
            )
        self.lower_detection_limit = limit


def _build_obs(dataset: CellRangerDataset, cell_metadata: Optional[pd.DataFrame]) -> pd.DataFrame:
    obs = dataset.cell_metadata()
    if cell_metadata is None:
        return obs

    if not cell_metadata.index.is_unique:
        repeated = cell_metadata.index[cell_metadata.index.duplicated()].unique()
        raise ValueError(
            f"cell_metadata index must hold unique barcodes; repeated: {list(repeated[:3])}"
        )

    missing = dataset.barcodes.difference(cell_metadata.index)
    if len(missing) > 0:
        raise ValueError(
            f"cell_metadata is missing {len(missing)} barcode(s), "
            f"e.g. {list(missing[:3])}"
        )

    extra = cell_metadata.drop(columns=["barcode"], errors="ignore")
    return obs.join(extra, how="left")


def to_anndata(
    dataset: CellRangerDataset,
    config: Optional[CellDataSetConfig] = None,
    cell_metadata: Optional[pd.DataFrame] = None,
) -> anndata.AnnData:
    """
    Convert a CellRangerDataset into an AnnData object (cells x features).

    Args:
        dataset: Loaded dataset
        config: Model-level settings; defaults to CellDataSetConfig()
        cell_metadata: Optional per-cell annotations indexed by barcode. Must
            cover every barcode in the dataset exactly once; extra rows are ignored

    Returns:
        AnnData with
        - X: CSR counts (cells x features)
        - obs: ``barcode`` column plus any cell_metadata columns
        - var: ``id`` and ``gene_short_name``, indexed by feature id
        - uns['cellranger_loader']: lower_detection_limit, expression_family,
          layout, genome

    Raises:
        ValueError: If cell_metadata does not cover all barcodes or repeats one
    """
    if config is None:
        config = CellDataSetConfig()

    obs = _build_obs(dataset, cell_metadata)
    var = dataset.features.copy()
    # h5ad output rejects an index name that repeats a column name
    var.index = pd.Index(var.index.astype(str), name=None)
    obs.index = pd.Index(obs.index.astype(str), name=None)

    adata = anndata.AnnData(
        X=dataset.matrix.T.tocsr(),
        obs=obs,
        var=var,
    )
    settings = {
        "lower_detection_limit": config.lower_detection_limit,
        "expression_family": config.expression_family.value,
    }
    if dataset.layout is not None:
        settings["layout"] = dataset.layout.value
    if dataset.genome is not None:
        settings["genome"] = dataset.genome
    adata.uns[UNS_KEY] = settings

    logger.debug(f"Converted dataset to AnnData {adata.n_obs} x {adata.n_vars}")
    return adata
