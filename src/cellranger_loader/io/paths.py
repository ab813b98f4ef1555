"""
Pipestance path resolution.

Locates the matrix directory and the three input files inside a Cell Ranger
output directory ("pipestance"), detecting which export layout is present.

Resolution order:
    1. ``<pipestance>`` and ``<pipestance>/outs`` must exist
    2. Layout is COMBINED iff ``outs/filtered_feature_bc_matrix`` exists,
       otherwise LEGACY (combined wins if both are present)
    3. Matrix directory = {filtered, raw} x {legacy, combined} name
    4. LEGACY only: pick the genome subdirectory
    5. Locate barcodes, features/genes and matrix files

Examples:
    >>> from cellranger_loader.io.paths import resolve_matrix_dir, locate_input_files
    >>> location = resolve_matrix_dir("/data/pbmc3k", barcode_filtered=True)
    >>> location.layout
    <MatrixLayout.LEGACY: 'legacy'>
    >>> files = locate_input_files(location, genome="hg19")
    >>> files.matrix
    PosixPath('/data/pbmc3k/outs/filtered_gene_bc_matrices/hg19/matrix.mtx')
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from cellranger_loader.core.exceptions import (
    AmbiguousGenomeError,
    MissingInputFileError,
    PathNotFoundError,
    UnknownGenomeError,
)
from cellranger_loader.core.layout import OUTS_DIR, MatrixLayout, MatrixLocation
from cellranger_loader.utils.fileio import first_existing

__all__ = [
    'InputFiles',
    'detect_layout',
    'resolve_matrix_dir',
    'list_genomes',
    'get_genome_in_matrix_path',
    'locate_input_files',
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputFiles:
    """
    The three files making up one matrix export.

    Attributes:
        location: Resolved matrix directory and layout
        features: features.tsv[.gz] (combined) or genes.tsv (legacy)
        barcodes: barcodes.tsv[.gz]
        matrix: matrix.mtx[.gz]
        genome: Selected genome; for the combined layout this is whatever the
            caller asked for (used later as a feature id filter)
    """
    location: MatrixLocation
    features: Path
    barcodes: Path
    matrix: Path
    genome: Optional[str] = None

    @property
    def layout(self) -> MatrixLayout:
        return self.location.layout


def detect_layout(outs_dir: Path) -> MatrixLayout:
    """
    Detect the export layout from the outs directory.

    The combined layout is recognised by its *filtered* directory, whichever
    cell set is requested, so a raw-only combined export is treated as
    legacy and then fails on the missing legacy directory.
    """
    if (outs_dir / MatrixLayout.COMBINED.filtered_dir).is_dir():
        return MatrixLayout.COMBINED
    return MatrixLayout.LEGACY


def resolve_matrix_dir(
    pipestance_path: str | os.PathLike,
    barcode_filtered: bool = True,
) -> MatrixLocation:
    """
    Determine the export layout and matrix directory of a pipestance.

    Args:
        pipestance_path: Cell Ranger output root (the directory containing ``outs``)
        barcode_filtered: Select cell-containing barcodes (filtered matrix)
            instead of all barcodes (raw matrix)

    Returns:
        MatrixLocation with the detected layout and matrix directory

    Raises:
        PathNotFoundError: If the pipestance, its outs directory, or the
            selected matrix directory does not exist
    """
    root = Path(pipestance_path)
    if not root.is_dir():
        raise PathNotFoundError(
            f"Could not find the pipestance path: '{root}'. "
            "Please double-check if the directory exists."
        )

    outs_dir = root / OUTS_DIR
    if not outs_dir.is_dir():
        raise PathNotFoundError(
            f"Could not find the pipestance output directory: '{outs_dir}'. "
            "Please double-check if the directory exists."
        )

    layout = detect_layout(outs_dir)
    matrix_dir = outs_dir / layout.matrix_dir_name(barcode_filtered)
    if not matrix_dir.is_dir():
        raise PathNotFoundError(f"Could not find directory: {matrix_dir}")

    logger.debug(f"Resolved {layout.value} layout, matrix directory {matrix_dir}")

    return MatrixLocation(
        layout=layout,
        outs_dir=outs_dir,
        matrix_dir=matrix_dir,
        barcode_filtered=bool(barcode_filtered),
    )


def list_genomes(matrix_dir: str | os.PathLike) -> List[str]:
    """Names of the immediate subdirectories of a legacy matrix directory, sorted."""
    return sorted(p.name for p in Path(matrix_dir).iterdir() if p.is_dir())


def get_genome_in_matrix_path(
    matrix_dir: str | os.PathLike,
    genome: Optional[str] = None,
) -> str:
    """
    Pick the genome subdirectory of a legacy matrix directory.

    Args:
        matrix_dir: e.g. ``outs/filtered_gene_bc_matrices``
        genome: Genome to look for; if None, the only genome present is used

    Returns:
        Genome name (subdirectory name)

    Raises:
        AmbiguousGenomeError: genome is None and there is not exactly one candidate
        UnknownGenomeError: genome is not one of the candidates

    Examples:
        >>> get_genome_in_matrix_path("outs/filtered_gene_bc_matrices")
        'hg19'
        >>> get_genome_in_matrix_path("outs/filtered_gene_bc_matrices", "mm10")
        Traceback (most recent call last):
        ...
        UnknownGenomeError: Could not find specified genome: 'mm10'. Genomes present: hg19
    """
    genomes = list_genomes(matrix_dir)
    present = ", ".join(genomes)

    if genome is None:
        if len(genomes) == 1:
            return genomes[0]
        if not genomes:
            raise AmbiguousGenomeError(
                f"No genome subdirectories found in {matrix_dir}",
                candidates=genomes,
            )
        raise AmbiguousGenomeError(
            f"Multiple genomes found in {matrix_dir}; please specify one. "
            f"Genomes present: {present}",
            candidates=genomes,
        )

    if genome not in genomes:
        raise UnknownGenomeError(
            f"Could not find specified genome: '{genome}'. Genomes present: {present}",
            candidates=genomes,
        )
    return genome


def _require(path: Optional[Path], expected: Path, description: str) -> Path:
    if path is None:
        raise MissingInputFileError(f"{description} missing: {expected}")
    return path


def locate_input_files(
    location: MatrixLocation,
    genome: Optional[str] = None,
) -> InputFiles:
    """
    Locate the barcode, feature and matrix files for a resolved location.

    LEGACY: resolves the genome subdirectory first, files are uncompressed.
    COMBINED: files are looked up gzipped first, then uncompressed; the genome
    is passed through untouched for the feature id filter.

    Raises:
        AmbiguousGenomeError, UnknownGenomeError: see get_genome_in_matrix_path
        MissingInputFileError: If any of the three files is absent
    """
    layout = location.layout

    if layout is MatrixLayout.LEGACY:
        genome = get_genome_in_matrix_path(location.matrix_dir, genome)
        base = location.matrix_dir / genome
    else:
        base = location.matrix_dir

    def find(name: str) -> tuple[Optional[Path], Path]:
        plain = base / name
        if layout.compressed:
            gz = base / f"{name}.gz"
            return first_existing(gz, plain), gz
        return first_existing(plain), plain

    barcodes = _require(*find("barcodes.tsv"), "Barcode file")
    features = _require(*find(layout.feature_file), "Gene name or features file")
    matrix = _require(*find("matrix.mtx"), "Expression matrix file")

    logger.debug(f"Input files: {features.name}, {barcodes.name}, {matrix.name} in {base}")

    return InputFiles(
        location=location,
        features=features,
        barcodes=barcodes,
        matrix=matrix,
        genome=genome,
    )
