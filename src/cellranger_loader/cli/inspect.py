"""
cellranger-loader inspect command - Show what a pipestance contains.

Reports the detected layout, matrix directory, available genomes (legacy
layout) and the located input files without reading the matrix.

Usage:
    cellranger-loader inspect /data/pbmc3k
    cellranger-loader inspect /data/pbmc3k --raw
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the inspect subcommand."""
    parser = subparsers.add_parser(
        "inspect",
        help="Show the layout, genomes and files of a Cell Ranger run",
    )
    parser.add_argument("pipestance", type=Path,
                        help="Cell Ranger output directory (contains outs/)")
    parser.add_argument("--genome", "-g", default=None,
                        help="Genome to locate files for")
    parser.add_argument("--raw", dest="barcode_filtered", action="store_false",
                        help="Inspect the raw matrix instead of filtered cells")
    parser.set_defaults(barcode_filtered=True, func=run_inspect)


def run_inspect(args: argparse.Namespace, cli_args: Optional[List[str]] = None) -> int:
    """Execute the inspect command."""
    from cellranger_loader.core.exceptions import AmbiguousGenomeError, CellRangerLoadError
    from cellranger_loader.core.layout import MatrixLayout
    from cellranger_loader.io.paths import list_genomes, locate_input_files, resolve_matrix_dir

    try:
        location = resolve_matrix_dir(args.pipestance, barcode_filtered=args.barcode_filtered)
    except CellRangerLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Pipestance:  {args.pipestance}")
    print(f"Layout:      {location.layout.value}")
    print(f"Matrix dir:  {location.matrix_dir}")

    if location.layout is MatrixLayout.LEGACY:
        genomes = list_genomes(location.matrix_dir)
        print(f"Genomes:     {', '.join(genomes) if genomes else '(none)'}")

    try:
        files = locate_input_files(location, genome=args.genome)
    except AmbiguousGenomeError as e:
        if not e.candidates:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Files:       pass --genome to choose one of {', '.join(e.candidates)}")
        return 0
    except CellRangerLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Features:    {files.features}")
    print(f"Barcodes:    {files.barcodes}")
    print(f"Matrix:      {files.matrix}")
    return 0
