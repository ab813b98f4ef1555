"""
Tests for the cellranger-loader command line interface and config merging.
"""

import json
from argparse import Namespace
from pathlib import Path

import pytest
import yaml

from cellranger_loader.cli import main
from cellranger_loader.cli.config import (
    _merge_value,
    load_config,
    merge_config_with_args,
    to_load_config,
    validate_config,
)


def _load_args(**overrides):
    values = dict(
        pipestance=None, genome=None, barcode_filtered=True, output=None, h5ad=None,
        lower_detection_limit=0.5, expression_family="negbinomial.size",
        config=None, verbose=False,
    )
    values.update(overrides)
    return Namespace(**values)


class TestInspectCommand:

    def test_combined(self, combined_pipestance, capsys):
        assert main(["inspect", str(combined_pipestance)]) == 0
        out = capsys.readouterr().out
        assert "combined" in out
        assert "features.tsv.gz" in out
        assert "Genomes" not in out

    def test_legacy_lists_genomes(self, legacy_pipestance, capsys):
        assert main(["inspect", str(legacy_pipestance)]) == 0
        out = capsys.readouterr().out
        assert "legacy" in out
        assert "mm10" in out
        assert "genes.tsv" in out

    def test_ambiguous_genome(self, tmp_path, builders, capsys):
        genome = ([["G1", "A"]], ["X"], [[1]])
        root = builders.legacy(tmp_path / "run", {"hg19": genome, "mm10": genome})
        assert main(["inspect", str(root)]) == 0
        assert "pass --genome" in capsys.readouterr().out

    def test_no_genome_directories(self, tmp_path, builders, capsys):
        root = builders.legacy(tmp_path / "run", {})
        assert main(["inspect", str(root)]) == 1
        assert "No genome subdirectories" in capsys.readouterr().err

    def test_missing_pipestance(self, tmp_path, capsys):
        assert main(["inspect", str(tmp_path / "nope")]) == 1
        assert "Could not find the pipestance path" in capsys.readouterr().err


class TestLoadCommand:

    def test_summary(self, combined_pipestance, capsys):
        assert main(["load", str(combined_pipestance)]) == 0
        out = capsys.readouterr().out
        assert "3 features x 3 cells" in out
        assert "combined" in out

    def test_output_triplet(self, combined_pipestance, tmp_path, capsys):
        prefix = tmp_path / "results" / "run"
        assert main(["load", str(combined_pipestance), "--output", str(prefix)]) == 0
        assert (tmp_path / "results" / "run.matrix.mtx").exists()
        assert (tmp_path / "results" / "run.features.tsv").exists()
        assert (tmp_path / "results" / "run.barcodes.tsv").exists()

    def test_h5ad(self, combined_pipestance, tmp_path):
        import anndata

        path = tmp_path / "run.h5ad"
        code = main([
            "load", str(combined_pipestance), "--h5ad", str(path),
            "--lower-detection-limit", "0.1", "--expression-family", "tobit",
        ])
        assert code == 0
        adata = anndata.read_h5ad(path)
        assert adata.uns["cellranger_loader"]["expression_family"] == "tobit"
        assert adata.uns["cellranger_loader"]["lower_detection_limit"] == 0.1

    def test_load_error_returns_1(self, tmp_path, builders, capsys):
        genome = ([["G1", "A"]], ["X"], [[1]])
        root = builders.legacy(tmp_path / "run", {"hg19": genome, "mm10": genome})
        assert main(["load", str(root)]) == 1
        assert "Multiple genomes" in capsys.readouterr().err

    def test_missing_pipestance_argument(self, capsys):
        assert main(["load"]) == 1
        assert "pipestance path is required" in capsys.readouterr().err

    def test_negative_detection_limit_rejected(self, combined_pipestance):
        with pytest.raises(SystemExit):
            main(["load", str(combined_pipestance), "--lower-detection-limit", "-1"])

    def test_config_file(self, combined_pipestance, tmp_path, capsys):
        config_path = tmp_path / "load.yaml"
        config_path.write_text(yaml.safe_dump({
            "pipestance": str(combined_pipestance),
            "genome": "mm10",
        }))
        assert main(["load", "--config", str(config_path)]) == 0
        out = capsys.readouterr().out
        assert "1 features x 3 cells" in out

    def test_explicit_flag_overrides_config(self, combined_pipestance, tmp_path, capsys):
        config_path = tmp_path / "load.yaml"
        config_path.write_text(yaml.safe_dump({
            "pipestance": str(combined_pipestance),
            "genome": "mm10",
        }))
        assert main(["load", "--config", str(config_path), "--genome", "hg19"]) == 0
        assert "2 features x 3 cells" in capsys.readouterr().out


class TestConfig:

    def test_load_yaml_and_json(self, tmp_path):
        yaml_path = tmp_path / "c.yaml"
        yaml_path.write_text("genome: hg19\nmodel:\n  lower_detection_limit: 1\n")
        json_path = tmp_path / "c.json"
        json_path.write_text(json.dumps({"genome": "hg19"}))
        assert load_config(yaml_path)["model"]["lower_detection_limit"] == 1
        assert load_config(json_path) == {"genome": "hg19"}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "c.toml"
        path.write_text("genome = 'hg19'")
        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    @pytest.mark.parametrize("config, match", [
        ({"genomes": "hg19"}, "Unknown config keys"),
        ({"barcode_filtered": "yes"}, "barcode_filtered"),
        ({"model": {"expression_family": "poisson"}}, "Unknown expression family"),
        ({"model": {"lower_detection_limit": -2}}, "lower_detection_limit"),
        ({"model": []}, "mapping"),
    ])
    def test_validation(self, config, match):
        with pytest.raises(ValueError, match=match):
            validate_config(config)

    @pytest.mark.parametrize("cli_value, config_value, explicit, expected", [
        ("hg19", "mm10", True, "hg19"),
        ("hg19", "mm10", False, "mm10"),
        ("hg19", None, False, "hg19"),
        (None, None, True, None),
    ])
    def test_merge_value_precedence(self, cli_value, config_value, explicit, expected):
        assert _merge_value(cli_value, config_value, explicit) == expected

    def test_merge_prefers_config_over_defaults(self):
        config = {"pipestance": "/data/run", "barcode_filtered": False,
                  "model": {"lower_detection_limit": 2.0}}
        merged = merge_config_with_args(config, _load_args(), [])
        assert merged.pipestance == Path("/data/run")
        assert merged.barcode_filtered is False
        assert merged.lower_detection_limit == 2.0

    def test_merge_explicit_flags_win(self):
        config = {"pipestance": "/data/run", "genome": "mm10", "output": "a"}
        args = _load_args(pipestance=Path("/other"), genome="hg19", output=Path("b"))
        merged = merge_config_with_args(config, args, ["/other", "-g", "hg19", "-o", "b"])
        assert merged.pipestance == Path("/other")
        assert merged.genome == "hg19"
        assert merged.output == Path("b")

    def test_to_load_config(self):
        settings = to_load_config(_load_args(pipestance=Path("/data/run"), genome="hg19"))
        assert settings.pipestance == Path("/data/run")
        assert settings.model.expression_family == "negbinomial.size"
