"""
Configuration file support for the cellranger-loader CLI.

Supports YAML and JSON config files with CLI argument override.

Example config (load.yaml):

    pipestance: /data/hgmm_1k
    genome: hg19
    barcode_filtered: true
    output: results/hgmm_hg19
    h5ad: results/hgmm_hg19.h5ad
    model:
      lower_detection_limit: 0.5
      expression_family: negbinomial.size
"""

import json
from argparse import Namespace
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from cellranger_loader.adapters.anndata_adapter import ExpressionFamily


_CONFIG_PARSERS = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.loads,
}


@dataclass
class ModelConfig:
    """Settings handed to the AnnData adapter."""
    lower_detection_limit: float = 0.5
    expression_family: str = ExpressionFamily.NEGBINOMIAL_SIZE.value


@dataclass
class LoadConfig:
    """
    Complete configuration schema for the ``load`` command.

    Mirrors the CLI argument structure for consistency.
    """
    pipestance: Optional[Path] = None
    genome: Optional[str] = None
    barcode_filtered: bool = True
    output: Optional[Path] = None
    h5ad: Optional[Path] = None
    model: ModelConfig = field(default_factory=ModelConfig)


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Read a YAML (.yaml, .yml) or JSON (.json) config file into a dict.

    An empty file gives an empty dict.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the suffix is not supported, the file does not parse,
            or the top level is not a mapping

    Examples:
        >>> config = load_config(Path("load.yaml"))
        >>> config["genome"]
        'hg19'
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    parser = _CONFIG_PARSERS.get(config_path.suffix.lower())
    if parser is None:
        raise ValueError(
            f"Unsupported config format: {config_path.suffix or '(no suffix)'}. "
            f"Use one of {', '.join(sorted(_CONFIG_PARSERS))}"
        )

    text = config_path.read_text()
    try:
        config = parser(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Could not parse config file {config_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(
            f"Config file {config_path} must hold a mapping, got {type(config).__name__}"
        )
    return config


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Raises:
        ValueError: If configuration is invalid
    """
    known = {'pipestance', 'genome', 'barcode_filtered', 'output', 'h5ad', 'model'}
    unknown = set(config) - known
    if unknown:
        raise ValueError(
            f"Unknown config keys: {sorted(unknown)}. Expected: {sorted(known)}"
        )

    if 'barcode_filtered' in config and not isinstance(config['barcode_filtered'], bool):
        raise ValueError(
            f"barcode_filtered must be true or false, got: {config['barcode_filtered']!r}"
        )

    model = config.get('model')
    if model is None:
        model = {}
    if not isinstance(model, dict):
        raise ValueError("'model' section must be a mapping")

    if 'expression_family' in model:
        ExpressionFamily.from_name(str(model['expression_family']))

    if 'lower_detection_limit' in model:
        limit = model['lower_detection_limit']
        if isinstance(limit, bool) or not isinstance(limit, (int, float)) or limit < 0:
            raise ValueError(
                f"lower_detection_limit must be a non-negative number, got: {limit}"
            )


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """Explicit CLI value, else config value, else the CLI default."""
    if was_explicitly_set or config_value is None:
        return cli_value
    return config_value


_FLAG_TO_DEST = {
    '--raw': 'barcode_filtered',
    '-g': 'genome',
    '-o': 'output',
}


def _explicit_dests(cli_args: Optional[List[str]]) -> set:
    explicit = set()
    for arg in cli_args or []:
        if not arg.startswith('-'):
            continue
        flag = arg.split('=', 1)[0]
        if flag in _FLAG_TO_DEST:
            explicit.add(_FLAG_TO_DEST[flag])
        elif flag.startswith('--'):
            explicit.add(flag[2:].replace('-', '_'))
    return explicit


def merge_config_with_args(
    config: Dict[str, Any],
    args: Namespace,
    cli_args: Optional[List[str]] = None,
) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values).
                  If None, assumes all flags are defaults

    Returns:
        Updated Namespace with merged values
    """
    explicit = _explicit_dests(cli_args)
    # a positional pipestance counts as explicit when present
    if getattr(args, 'pipestance', None) is not None:
        explicit.add('pipestance')

    merged = Namespace(**vars(args))

    path_keys = ('pipestance', 'output', 'h5ad')
    for key in ('pipestance', 'genome', 'barcode_filtered', 'output', 'h5ad'):
        if key not in config:
            continue
        value = config[key]
        if value is not None and key in path_keys:
            value = Path(value)
        setattr(merged, key, _merge_value(getattr(merged, key, None), value, key in explicit))

    model = config.get('model') or {}
    if 'lower_detection_limit' in model:
        merged.lower_detection_limit = _merge_value(
            merged.lower_detection_limit,
            model['lower_detection_limit'],
            'lower_detection_limit' in explicit,
        )
    if 'expression_family' in model:
        merged.expression_family = _merge_value(
            merged.expression_family,
            model['expression_family'],
            'expression_family' in explicit,
        )

    return merged


def to_load_config(args: Namespace) -> LoadConfig:
    """Snapshot of the effective settings, e.g. for logging."""
    return LoadConfig(
        pipestance=args.pipestance,
        genome=args.genome,
        barcode_filtered=args.barcode_filtered,
        output=args.output,
        h5ad=args.h5ad,
        model=ModelConfig(
            lower_detection_limit=args.lower_detection_limit,
            expression_family=args.expression_family,
        ),
    )
