"""Shared argparse type validators for CLI parameter checking.

Intended to be used as the ``type=`` argument in ``add_argument()``.
"""

from __future__ import annotations

import argparse
import math

from cellranger_loader.adapters.anndata_adapter import ExpressionFamily


def _non_negative_float(value: str) -> float:
    """argparse type for finite floats >= 0."""
    try:
        fvalue = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value} is not a number")
    if not math.isfinite(fvalue) or fvalue < 0:
        raise argparse.ArgumentTypeError(f"{value} is not a non-negative number")
    return fvalue


def _expression_family(value: str) -> str:
    """argparse type for expression family names; returns the canonical value."""
    try:
        return ExpressionFamily.from_name(value).value
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
