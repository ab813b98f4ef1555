"""
Writers for loaded Cell Ranger datasets.

Writes a CellRangerDataset back to disk as a gene-expression-only triplet,
in the legacy (uncompressed, two-column genes file) convention.

Output Files:
    {path}.matrix.mtx    - Matrix Market coordinate counts (genes x cells)
    {path}.features.tsv  - id <tab> gene_short_name, one row per matrix row
    {path}.barcodes.tsv  - one (disambiguated) barcode per matrix column

Examples:
    >>> from pathlib import Path
    >>> from cellranger_loader.io.writers import write_dataset
    >>>
    >>> write_dataset(dataset, Path("results/pbmc_gex"))
    >>> # results/pbmc_gex.matrix.mtx, .features.tsv, .barcodes.tsv
"""

from __future__ import annotations

import logging
from pathlib import Path

from scipy import io as sio

from cellranger_loader.core.dataset import CellRangerDataset
from cellranger_loader.utils.fileio import atomic_write_text

__all__ = ['write_dataset', 'write_cell_metadata']

logger = logging.getLogger(__name__)


def write_dataset(dataset: CellRangerDataset, path: Path) -> dict[str, Path]:
    """
    Write dataset as a matrix / features / barcodes triplet.

    Args:
        dataset: Loaded dataset
        path: Output path prefix (without extension). Parent directories are
            created if needed.

    Returns:
        Mapping of 'matrix', 'features', 'barcodes' to the written files
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    outputs = {
        "matrix": path.parent / f"{path.name}.matrix.mtx",
        "features": path.parent / f"{path.name}.features.tsv",
        "barcodes": path.parent / f"{path.name}.barcodes.tsv",
    }

    features_text = dataset.features.to_csv(sep="\t", header=False, index=False)
    barcodes_text = "".join(f"{b}\n" for b in dataset.barcodes)
    atomic_write_text(outputs["features"], features_text)
    atomic_write_text(outputs["barcodes"], barcodes_text)

    sio.mmwrite(str(outputs["matrix"]), dataset.matrix.tocoo())

    logger.info(
        f"Wrote {dataset.n_features:,} x {dataset.n_cells:,} matrix to {outputs['matrix']}"
    )
    return outputs


def write_cell_metadata(dataset: CellRangerDataset, path: Path) -> Path:
    """
    Write the per-cell table (barcode column) to CSV.

    Args:
        dataset: Loaded dataset
        path: Output path prefix (without extension)

    Returns:
        Path of the written ``{path}.cells.csv``
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out = path.parent / f"{path.name}.cells.csv"
    atomic_write_text(out, dataset.cell_metadata().to_csv(index=False))
    logger.info(f"Wrote cell metadata to {out}")
    return out
