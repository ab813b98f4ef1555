"""
cellranger-loader - Cell Ranger matrix export loading

Loads the sparse gene-barcode matrix written by the 10x Genomics Cell Ranger
pipeline (legacy per-genome or combined feature-barcode layout) into a
validated, position-aligned dataset.
"""

__version__ = "0.1.0"

from cellranger_loader.core.dataset import CellRangerDataset
from cellranger_loader.core.layout import MatrixLayout
from cellranger_loader.core.exceptions import CellRangerLoadError
from cellranger_loader.io.loaders import load_cellranger_data

__all__ = [
    "CellRangerDataset",
    "MatrixLayout",
    "CellRangerLoadError",
    "load_cellranger_data",
]
