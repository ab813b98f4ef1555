"""
cellranger-loader load command - Load a Cell Ranger matrix export.

Usage:
    cellranger-loader load /data/pbmc_10k_v3 --h5ad results/pbmc.h5ad
    cellranger-loader load /data/hgmm_1k --genome hg19 --output results/hgmm_hg19
    cellranger-loader load --config load.yaml --raw
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cellranger_loader.cli._validators import _expression_family, _non_negative_float


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the load subcommand."""
    parser = subparsers.add_parser(
        "load",
        help="Load a Cell Ranger matrix export and summarise or convert it",
        description=(
            "Load the gene expression matrix of a Cell Ranger run (legacy per-genome "
            "or combined feature-barcode layout), validate it, and optionally write it "
            "out as a matrix/features/barcodes triplet or an .h5ad file."
        )
    )

    parser.add_argument("pipestance", type=Path, nargs="?", default=None,
                        help="Cell Ranger output directory (contains outs/)")
    parser.add_argument("--genome", "-g", default=None,
                        help="Genome to load (required for multi-genome legacy runs)")
    parser.add_argument("--raw", dest="barcode_filtered", action="store_false",
                        help="Load all barcodes (raw matrix) instead of filtered cells")
    parser.set_defaults(barcode_filtered=True)

    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Output prefix for .matrix.mtx/.features.tsv/.barcodes.tsv")
    parser.add_argument("--h5ad", type=Path, default=None,
                        help="Write AnnData (.h5ad) to this path")

    parser.add_argument("--lower-detection-limit", type=_non_negative_float, default=0.5,
                        help="Minimum value counted as true expression (default: 0.5)")
    parser.add_argument("--expression-family", type=_expression_family,
                        default="negbinomial.size",
                        help="Expression distribution family (default: negbinomial.size)")

    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="YAML/JSON config file; explicit flags override it")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    parser.set_defaults(func=run_load)


def _resolve_args(args: argparse.Namespace, cli_args: Optional[List[str]]) -> argparse.Namespace:
    if args.config is None:
        return args

    from cellranger_loader.cli.config import load_config, merge_config_with_args, validate_config

    config = load_config(args.config)
    validate_config(config)
    return merge_config_with_args(config, args, cli_args)


def run_load(args: argparse.Namespace, cli_args: Optional[List[str]] = None) -> int:
    """Execute the load command."""
    from cellranger_loader.adapters import CellDataSetConfig, to_anndata
    from cellranger_loader.cli.config import to_load_config
    from cellranger_loader.core.exceptions import CellRangerLoadError
    from cellranger_loader.io.loaders import load_cellranger_data
    from cellranger_loader.io.writers import write_dataset

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    try:
        args = _resolve_args(args, cli_args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.pipestance is None:
        print("Error: a pipestance path is required (positional or 'pipestance' in --config)",
              file=sys.stderr)
        return 1

    settings = to_load_config(args)
    logger.debug(f"Effective settings: {settings}")

    try:
        dataset = load_cellranger_data(
            settings.pipestance,
            genome=settings.genome,
            barcode_filtered=settings.barcode_filtered,
        )
    except CellRangerLoadError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"\n{'='*70}")
    print("  Cell Ranger Matrix")
    print(f"{'='*70}")
    print(f"  Pipestance: {settings.pipestance}")
    print(f"  Layout:     {dataset.layout.value}")
    print(f"  Genome:     {dataset.genome or 'N/A'}")
    print(f"  Cells:      {'filtered' if settings.barcode_filtered else 'raw'}")
    print(f"  Shape:      {dataset.n_features:,} features x {dataset.n_cells:,} cells")
    print(f"  Non-zero:   {dataset.matrix.nnz:,}")

    if settings.output is not None:
        outputs = write_dataset(dataset, settings.output)
        for kind, path in outputs.items():
            print(f"  Wrote {kind}: {path}")

    if settings.h5ad is not None:
        model = CellDataSetConfig(
            lower_detection_limit=settings.model.lower_detection_limit,
            expression_family=settings.model.expression_family,
        )
        adata = to_anndata(dataset, model)
        settings.h5ad.parent.mkdir(parents=True, exist_ok=True)
        adata.write_h5ad(settings.h5ad)
        print(f"  Wrote AnnData: {settings.h5ad}")

    return 0
