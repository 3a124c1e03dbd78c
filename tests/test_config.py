"""
Tests for configuration loading and validation.
"""

import pytest
import sys
import os

import yaml

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from calibration.config import (
    DEFAULT_POSTERIOR_FILE,
    ErrorConfig,
    config_from_dict,
    load_config,
    validate_config
)
from calibration.exceptions import ConfigurationError
from calibration.metrics import ErrorMethod


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadConfig:
    """Tests for YAML configuration files."""

    def test_full_config(self, tmp_path):
        path = write_yaml(tmp_path / "error.yaml", {
            "method": "avg_inv_distance",
            "precision": 0.05,
            "min_samples": 200,
            "posterior_file": None,
            "progress_step": 25,
            "approximator": {"n_neighbors": 8, "kernel": "matern52"}
        })

        config = load_config(path)

        assert config.method == ErrorMethod.AVG_INV_DISTANCE
        assert config.precision == 0.05
        assert config.min_samples == 200
        assert config.posterior_file is None
        assert config.progress_step == 25
        assert config.approximator.n_neighbors == 8
        assert config.approximator.kernel == "matern52"

    def test_defaults(self, tmp_path):
        path = write_yaml(tmp_path / "error.yaml", {"method": "gauss_process", "precision": 1})

        config = load_config(path)

        assert config.method == ErrorMethod.GAUSS_PROCESS
        assert config.min_samples == 100
        assert config.posterior_file == DEFAULT_POSTERIOR_FILE
        assert config.approximator.n_neighbors == 10

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("method: [min_distance\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- min_distance\n- 0.1\n")
        with pytest.raises(ConfigurationError):
            load_config(path)


class TestValidation:
    """Tests for schema validation."""

    @pytest.mark.parametrize("data", [
        {"method": "min_distance"},
        {"precision": 0.1},
        {"method": "nearest", "precision": 0.1},
        {"method": "min_distance", "precision": 0},
        {"method": "min_distance", "precision": -0.5},
        {"method": "min_distance", "precision": 0.1, "min_samples": 0},
        {"method": "min_distance", "precision": 0.1, "unknown": True},
        {"method": "min_distance", "precision": 0.1, "approximator": {"kernel": "periodic"}},
    ])
    def test_invalid(self, data):
        assert validate_config(data)
        with pytest.raises(ConfigurationError):
            config_from_dict(data)

    def test_all_errors_reported(self):
        errors = validate_config({"method": "nearest", "precision": -1})
        assert len(errors) == 2

    def test_valid(self):
        assert validate_config({"method": "lin_quad_diff", "precision": 0.5}) == []

    def test_to_dict_is_valid(self):
        config = ErrorConfig(method=ErrorMethod.SUM_DISTANCE, precision=0.3)
        data = config.to_dict()

        assert validate_config(data) == []
        assert config_from_dict(data) == config


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
