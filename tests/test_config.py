"""Tests for ZenithConfig and config file loading."""

import json

import pytest
import yaml

from zenith.config import ZenithConfig, load_config


class TestZenithConfig:

    def test_defaults(self):
        config = ZenithConfig()
        assert config.inter_gene_cor == 0.01
        assert config.n_genes_min == 10
        assert not config.use_ranks
        assert config.progressbar

    @pytest.mark.parametrize("token", ["NA", "nan", "estimate", "None"])
    def test_estimate_tokens(self, token):
        assert ZenithConfig(inter_gene_cor=token).inter_gene_cor is None

    def test_nan_means_estimate(self):
        assert ZenithConfig(inter_gene_cor=float("nan")).inter_gene_cor is None

    def test_invalid_values(self):
        with pytest.raises(ValueError, match=r"\[-1, 1\]"):
            ZenithConfig(inter_gene_cor=1.5)
        with pytest.raises(ValueError, match="number or null"):
            ZenithConfig(inter_gene_cor="high")
        with pytest.raises(ValueError, match="n_genes_min"):
            ZenithConfig(n_genes_min=0)
        with pytest.raises(ValueError, match="n_jobs"):
            ZenithConfig(n_jobs=0)

    def test_from_dict_accepts_dotted_keys(self):
        config = ZenithConfig.from_dict({
            "use.ranks": True,
            "inter-gene-cor": None,
            "n_genes_min": 5,
        })
        assert config.use_ranks
        assert config.inter_gene_cor is None
        assert config.n_genes_min == 5

    def test_from_dict_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unknown zenith setting 'ranks'"):
            ZenithConfig.from_dict({"ranks": True})

    def test_kwargs(self):
        config = ZenithConfig(square_corr=True)
        assert "n_genes_min" not in config.zenith_kwargs()
        assert config.zenith_kwargs()["square_corr"] is True
        assert config.gsa_kwargs()["n_genes_min"] == 10


class TestConfigFiles:

    def test_yaml_section(self, tmp_path):
        path = tmp_path / "zenith.yaml"
        path.write_text(yaml.safe_dump({
            "zenith": {"use_ranks": True, "inter_gene_cor": None, "n_genes_min": 15},
            "output": "results.tsv",
        }))
        config = ZenithConfig.from_file(path)
        assert config.use_ranks
        assert config.inter_gene_cor is None
        assert config.n_genes_min == 15

    def test_flat_json(self, tmp_path):
        path = tmp_path / "zenith.json"
        path.write_text(json.dumps({"allow.neg.cor": True, "n_jobs": 2}))
        config = ZenithConfig.from_file(str(path))
        assert config.allow_neg_cor
        assert config.n_jobs == 2

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config(path) == {}
        assert ZenithConfig.from_file(path) == ZenithConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "zenith.toml"
        path.write_text("use_ranks = true")
        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("zenith: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)
