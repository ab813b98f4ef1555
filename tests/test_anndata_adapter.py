"""
Tests for the AnnData boundary adapter.
"""

import numpy as np
import pandas as pd
import pytest
from scipy import sparse

from cellranger_loader import load_cellranger_data
from cellranger_loader.adapters import CellDataSetConfig, ExpressionFamily, to_anndata


@pytest.fixture
def dataset(combined_pipestance):
    return load_cellranger_data(combined_pipestance)


class TestExpressionFamily:

    @pytest.mark.parametrize("name", ["negbinomial.size", "NEGBINOMIAL_SIZE", "negbinomial_size"])
    def test_lookup(self, name):
        assert ExpressionFamily.from_name(name) is ExpressionFamily.NEGBINOMIAL_SIZE

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown expression family"):
            ExpressionFamily.from_name("poisson")


class TestCellDataSetConfig:

    def test_defaults(self):
        config = CellDataSetConfig()
        assert config.lower_detection_limit == 0.5
        assert config.expression_family is ExpressionFamily.NEGBINOMIAL_SIZE

    def test_string_family_converted(self):
        config = CellDataSetConfig(expression_family="tobit")
        assert config.expression_family is ExpressionFamily.TOBIT

    @pytest.mark.parametrize("limit", [-1, float("nan"), float("inf")])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValueError, match="lower_detection_limit"):
            CellDataSetConfig(lower_detection_limit=limit)


class TestToAnnData:

    def test_orientation(self, dataset):
        adata = to_anndata(dataset)
        assert adata.shape == (dataset.n_cells, dataset.n_features)
        assert sparse.issparse(adata.X)
        np.testing.assert_array_equal(adata.X.toarray(), dataset.to_dense().T)

    def test_annotations(self, dataset):
        adata = to_anndata(dataset)
        assert adata.obs_names.tolist() == ["AAAC-1", "AAAG-1", "AAAT-1"]
        assert adata.var_names.tolist() == dataset.feature_ids.tolist()
        assert adata.var["gene_short_name"].tolist() == dataset.gene_short_names.tolist()

    def test_settings_recorded(self, dataset):
        config = CellDataSetConfig(lower_detection_limit=0.1, expression_family="negbinomial")
        adata = to_anndata(dataset, config)
        settings = adata.uns["cellranger_loader"]
        assert settings["lower_detection_limit"] == 0.1
        assert settings["expression_family"] == "negbinomial"
        assert settings["layout"] == "combined"
        assert "genome" not in settings

    def test_cell_metadata_joined(self, dataset):
        meta = pd.DataFrame(
            {"sample": ["s1", "s1", "s2"]},
            index=["AAAT-1", "AAAC-1", "AAAG-1"],
        )
        adata = to_anndata(dataset, cell_metadata=meta)
        assert adata.obs["sample"].tolist() == ["s1", "s2", "s1"]

    def test_cell_metadata_must_cover_barcodes(self, dataset):
        meta = pd.DataFrame({"sample": ["s1"]}, index=["AAAC-1"])
        with pytest.raises(ValueError, match="missing 2 barcode"):
            to_anndata(dataset, cell_metadata=meta)

    def test_cell_metadata_repeated_barcode_rejected(self, dataset):
        meta = pd.DataFrame(
            {"sample": ["s1", "s2", "s2", "s3"]},
            index=["AAAC-1", "AAAG-1", "AAAG-1", "AAAT-1"],
        )
        with pytest.raises(ValueError, match="unique barcodes"):
            to_anndata(dataset, cell_metadata=meta)

    def test_h5ad_roundtrip(self, dataset, tmp_path):
        import anndata

        path = tmp_path / "out.h5ad"
        to_anndata(dataset).write_h5ad(path)
        restored = anndata.read_h5ad(path)
        assert restored.shape == (3, 3)
        assert restored.uns["cellranger_loader"]["expression_family"] == "negbinomial.size"
