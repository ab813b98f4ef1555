"""
Pytest configuration and shared fixtures.

Builds synthetic Cell Ranger pipestance directories (legacy and combined
layouts) in pytest's tmp_path so every test works on real files.
"""

import gzip
from pathlib import Path
from types import SimpleNamespace
from typing import Optional, Sequence

import numpy as np
import pytest


def _open_text(path: Path):
    if str(path).endswith(".gz"):
        return gzip.open(path, "wt")
    return open(path, "w")


def write_tsv(path: Path, rows: Sequence[Sequence[str]]) -> Path:
    """Write headerless tab-separated rows (gzipped if path ends with .gz)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with _open_text(path) as f:
        for row in rows:
            f.write("\t".join(row) + "\n")
    return path


def write_mtx(path: Path, dense: np.ndarray, shape: Optional[tuple] = None) -> Path:
    """
    Write a dense array as a Matrix Market coordinate file, Cell Ranger style.

    Args:
        path: Destination (gzipped if it ends with .gz)
        dense: Values (features x cells); zeros are not written
        shape: Declared dimensions; defaults to dense.shape
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    dense = np.asarray(dense)
    n_rows, n_cols = shape if shape is not None else dense.shape
    rows, cols = np.nonzero(dense)
    with _open_text(path) as f:
        f.write("%%MatrixMarket matrix coordinate integer general\n")
        f.write('%metadata_json: {"software_version": "test"}\n')
        f.write(f"{n_rows} {n_cols} {len(rows)}\n")
        for r, c in zip(rows, cols):
            f.write(f"{r + 1} {c + 1} {int(dense[r, c])}\n")
    return path


def make_legacy_pipestance(
    root: Path,
    genomes: dict,
    filtered: bool = True,
) -> Path:
    """
    Create ``root/outs/{filtered,raw}_gene_bc_matrices/<genome>/...``.

    Args:
        genomes: genome name -> (gene rows [(id, name)], barcodes [str], dense matrix)
    """
    matrix_dir = root / "outs" / ("filtered_gene_bc_matrices" if filtered else "raw_gene_bc_matrices")
    matrix_dir.mkdir(parents=True, exist_ok=True)
    for genome, (genes, barcodes, dense) in genomes.items():
        gdir = matrix_dir / genome
        write_tsv(gdir / "genes.tsv", genes)
        write_tsv(gdir / "barcodes.tsv", [[b] for b in barcodes])
        write_mtx(gdir / "matrix.mtx", dense)
    return root


def make_combined_pipestance(
    root: Path,
    features: Sequence[Sequence[str]],
    barcodes: Sequence[str],
    dense: np.ndarray,
    filtered: bool = True,
    gzipped: bool = True,
) -> Path:
    """
    Create ``root/outs/{filtered,raw}_feature_bc_matrix/{features,barcodes,matrix}``.

    The filtered directory is always created, since that is how the combined
    layout is recognised.
    """
    outs = root / "outs"
    (outs / "filtered_feature_bc_matrix").mkdir(parents=True, exist_ok=True)
    matrix_dir = outs / ("filtered_feature_bc_matrix" if filtered else "raw_feature_bc_matrix")
    suffix = ".gz" if gzipped else ""
    write_tsv(matrix_dir / f"features.tsv{suffix}", features)
    write_tsv(matrix_dir / f"barcodes.tsv{suffix}", [[b] for b in barcodes])
    write_mtx(matrix_dir / f"matrix.mtx{suffix}", dense)
    return root


@pytest.fixture
def builders():
    """File and pipestance builders for tests that need custom layouts."""
    return SimpleNamespace(
        write_tsv=write_tsv,
        write_mtx=write_mtx,
        legacy=make_legacy_pipestance,
        combined=make_combined_pipestance,
    )


@pytest.fixture
def legacy_pipestance(tmp_path):
    """
    Legacy single-genome (mm10) run: 5 genes x 5 cells, one repeated barcode.
    """
    genes = [[f"ENSMUSG0000000000{i}", f"Gene{i}"] for i in range(1, 6)]
    barcodes = ["c1", "c1", "c2", "c3", "c4"]
    dense = np.arange(25).reshape(5, 5) % 4
    return make_legacy_pipestance(tmp_path / "run_legacy", {"mm10": (genes, barcodes, dense)})


@pytest.fixture
def combined_features():
    """Barnyard-style features: two human genes, one mouse gene, one antibody."""
    return [
        ["hg19_ENSG01", "hg19_TP53", "Gene Expression"],
        ["hg19_ENSG02", "hg19_MYC", "Gene Expression"],
        ["mm10_ENSMUSG01", "mm10_Actb", "Gene Expression"],
        ["CD3", "CD3_TotalSeqB", "Antibody Capture"],
    ]


@pytest.fixture
def combined_dense():
    return np.array([
        [1, 0, 2],
        [0, 3, 0],
        [4, 0, 0],
        [9, 9, 9],
    ])


@pytest.fixture
def combined_pipestance(tmp_path, combined_features, combined_dense):
    """Combined-layout run (gzipped): 4 features (3 GEX, 1 antibody) x 3 cells."""
    return make_combined_pipestance(
        tmp_path / "run_combined",
        combined_features,
        ["AAAC-1", "AAAG-1", "AAAT-1"],
        combined_dense,
    )
