"""
Boundary adapters from CellRangerDataset to downstream analysis containers.

The core never imports a modeling library; conversion and model-level
settings (lower detection limit, expression family) live here.
"""

from cellranger_loader.adapters.anndata_adapter import (
    CellDataSetConfig,
    ExpressionFamily,
    to_anndata,
)

__all__ = [
    'CellDataSetConfig',
    'ExpressionFamily',
    'to_anndata',
]
