"""
cellranger-loader CLI - Command-line interface for Cell Ranger matrix loading.

Commands:
    cellranger-loader inspect   - Show layout, genomes and input files of a run
    cellranger-loader load      - Load, validate and optionally convert a run
"""

import argparse
import sys
from typing import Optional, List

from cellranger_loader import __version__


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for cellranger-loader."""
    parser = argparse.ArgumentParser(
        prog="cellranger-loader",
        description="Load Cell Ranger sparse matrix exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  inspect       Show layout, genomes and input files of a run
  load          Load, validate and optionally convert a run

Examples:
  cellranger-loader inspect /data/pbmc3k
  cellranger-loader load /data/pbmc3k --genome hg19 --output results/pbmc3k
  cellranger-loader load /data/pbmc_10k_v3 --h5ad results/pbmc_10k.h5ad
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from cellranger_loader.cli import inspect, load
    inspect.register_parser(subparsers)
    load.register_parser(subparsers)

    if args is None:
        args = sys.argv[1:]
    parsed_args = parser.parse_args(args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    return parsed_args.func(parsed_args, args)


if __name__ == "__main__":
    sys.exit(main())
