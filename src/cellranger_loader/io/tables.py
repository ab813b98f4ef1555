"""
Feature and barcode table loading.

Both tables are headerless, tab-separated text (optionally gzipped). Row
order is significant: row i of the feature table annotates row i of the
matrix and row i of the barcode table identifies column i, so the files are
read strictly in order and never re-sorted.

Feature table columns:
    LEGACY   (genes.tsv):        id, gene_short_name
    COMBINED (features.tsv.gz):  id, gene_short_name, feature_type

Barcode table columns:
    barcode

Identifiers are not guaranteed unique (gene ids repeat across some
references, barcodes can repeat in merged outputs), so ``make_unique`` appends
an occurrence counter to repeats the way R's ``make.unique`` does.

Examples:
    >>> from cellranger_loader.io.tables import make_unique
    >>> make_unique(["A", "A", "B"])
    ['A', 'A.1', 'B']
"""

from __future__ import annotations

import logging
import os
import warnings
from pathlib import Path
from typing import Iterable, List, Sequence

import pandas as pd

from cellranger_loader.core.exceptions import TableParseError
from cellranger_loader.core.layout import MatrixLayout
from cellranger_loader.utils.fileio import open_binary

__all__ = [
    'make_unique',
    'read_tsv_table',
    'read_feature_table',
    'read_barcode_table',
    'disambiguate',
]

logger = logging.getLogger(__name__)


def make_unique(names: Iterable[str], sep: str = ".") -> List[str]:
    """
    Make identifiers unique by suffixing repeats with an occurrence counter.

    The first occurrence of a value is kept as-is; later occurrences become
    ``<value><sep>1``, ``<value><sep>2``, ... A counter value is skipped if
    the resulting name already exists (in the input or among names generated
    so far), so the output is always unique. Singletons are untouched and
    already-unique input is returned unchanged.

    Pure and deterministic: the same input always gives the same output.

    Args:
        names: Identifiers in their original order
        sep: Separator between value and counter

    Returns:
        List of unique identifiers, same length and order as the input

    Examples:
        >>> make_unique(["A", "A", "B"])
        ['A', 'A.1', 'B']
        >>> make_unique(["A", "A", "A.1"])
        ['A', 'A.2', 'A.1']
    """
    names = [str(n) for n in names]
    duplicated = pd.Index(names).duplicated(keep="first")
    if not duplicated.any():
        return names

    taken = set(names)
    counters: dict[str, int] = {}
    result = list(names)

    for i, name in enumerate(names):
        if not duplicated[i]:
            continue
        k = counters.get(name, 1)
        candidate = f"{name}{sep}{k}"
        while candidate in taken:
            k += 1
            candidate = f"{name}{sep}{k}"
        taken.add(candidate)
        counters[name] = k + 1
        result[i] = candidate

    return result


def disambiguate(values: Sequence[str], what: str, path: Path) -> List[str]:
    """
    ``make_unique`` with a UserWarning when anything had to be renamed.

    Args:
        values: Raw identifiers
        what: Human readable label for messages ("feature ids", "barcodes")
        path: Source file, named in the warning
    """
    unique = make_unique(values)
    renamed = [new for old, new in zip(values, unique) if old != new]
    if renamed:
        warnings.warn(
            f"Found {len(renamed)} duplicate {what} in {path}. "
            f"Repeats were suffixed to make them unique (e.g. '{renamed[0]}').",
            UserWarning
        )
    return unique


def _short_lines(path: Path, n_required: int) -> List[int]:
    """1-based numbers of non-blank lines with fewer than *n_required* tab-separated fields."""
    # read_csv pads missing trailing fields, so count them on the raw lines
    short = []
    with open_binary(path) as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.rstrip(b"\r\n")
            if line and line.count(b"\t") + 1 < n_required:
                short.append(lineno)
    return short


def read_tsv_table(
    path: str | os.PathLike,
    columns: Sequence[str],
) -> pd.DataFrame:
    """
    Read a headerless tab-separated table, keeping the first ``len(columns)`` columns.

    Args:
        path: Table file (``.gz`` is decompressed)
        columns: Names for the leading columns; the file must have at least
            this many columns on every row. Extra trailing columns are dropped

    Returns:
        DataFrame of strings in file order with a default RangeIndex

    Raises:
        TableParseError: If the file is empty, unreadable, ragged, or has
            rows with fewer than ``len(columns)`` fields
    """
    path = Path(path)
    n_required = len(columns)

    try:
        df = pd.read_csv(
            path,
            sep="\t",
            header=None,
            dtype=str,
            compression="infer",
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError as e:
        raise TableParseError(f"Table file is empty: {path}") from e
    except Exception as e:
        raise TableParseError(f"Failed to read table file {path}: {e}") from e

    if df.shape[1] < n_required:
        raise TableParseError(
            f"Expected at least {n_required} tab-separated columns "
            f"({', '.join(columns)}) in {path}, found {df.shape[1]}"
        )

    df = df.iloc[:, :n_required]
    df.columns = list(columns)

    short = _short_lines(path, n_required)
    if short:
        raise TableParseError(
            f"{len(short)} row(s) in {path} have fewer than {n_required} "
            f"columns (first at line {short[0]})"
        )

    return df.reset_index(drop=True)


def read_feature_table(path: str | os.PathLike, layout: MatrixLayout) -> pd.DataFrame:
    """
    Read genes.tsv / features.tsv[.gz] for the given layout.

    Returns:
        DataFrame with columns ``id``, ``gene_short_name`` and, for the
        combined layout, ``feature_type``
    """
    df = read_tsv_table(path, layout.feature_columns)
    logger.debug(f"Read {len(df):,} features from {path}")
    return df


def read_barcode_table(path: str | os.PathLike) -> pd.DataFrame:
    """
    Read barcodes.tsv[.gz].

    Returns:
        DataFrame with a single ``barcode`` column
    """
    df = read_tsv_table(path, ("barcode",))
    logger.debug(f"Read {len(df):,} barcodes from {path}")
    return df
