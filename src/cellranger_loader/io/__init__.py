"""
I/O module for loading Cell Ranger matrix exports.

Reads the three-file sparse export of a Cell Ranger run (matrix, features or
genes, barcodes) from either the legacy per-genome layout or the combined
feature-barcode layout, and assembles a validated CellRangerDataset.

Key Functions:
    - load_cellranger_data: Load a pipestance (main entry point)
    - resolve_matrix_dir / locate_input_files: Layout detection and file lookup
    - get_genome_in_matrix_path: Genome selection for legacy layouts
    - read_feature_table / read_barcode_table / make_unique: Annotation tables
    - read_mtx: Matrix Market reader
    - filter_gene_expression: Keep Gene Expression rows (combined layout)
    - assemble_dataset: Final shape validation
    - write_dataset: Write a dataset back out as a triplet

Examples:
    >>> from cellranger_loader.io import load_cellranger_data, write_dataset
    >>>
    >>> dataset = load_cellranger_data("/data/run1", genome="GRCh38")
    >>> write_dataset(dataset, "results/run1_gex")
"""

from cellranger_loader.io.loaders import assemble_dataset, load_cellranger_data
from cellranger_loader.io.paths import (
    InputFiles,
    get_genome_in_matrix_path,
    list_genomes,
    locate_input_files,
    resolve_matrix_dir,
)
from cellranger_loader.io.tables import make_unique, read_barcode_table, read_feature_table
from cellranger_loader.io.mtx import read_mtx
from cellranger_loader.io.modality import filter_gene_expression
from cellranger_loader.io.writers import write_cell_metadata, write_dataset

__all__ = [
    'load_cellranger_data',
    'assemble_dataset',
    'InputFiles',
    'resolve_matrix_dir',
    'locate_input_files',
    'list_genomes',
    'get_genome_in_matrix_path',
    'read_feature_table',
    'read_barcode_table',
    'make_unique',
    'read_mtx',
    'filter_gene_expression',
    'write_dataset',
    'write_cell_metadata',
]
