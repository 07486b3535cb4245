"""Tests for configuration module."""

import pytest
import yaml

from connectedness_monitor.core.config import Config, ConfigLoader, validate_parameters
from connectedness_monitor.core.exceptions import (
    ConfigurationError,
    ConfigNotFoundError,
    ConfigValidationError,
)


class TestConfigLoader:
    """Tests for ConfigLoader class."""

    def test_load_valid_config(self, temp_config_file):
        """Test loading a valid configuration file."""
        config = ConfigLoader.load(temp_config_file)

        assert isinstance(config, Config)
        assert config.connectedness.bandwidth == 252
        assert config.execution.use_processes is False
        assert "Banks" in config.data.groups
        assert config.has_groups

    def test_load_nonexistent_file(self, tmp_path):
        """Test loading non-existent file raises error."""
        with pytest.raises(ConfigNotFoundError):
            ConfigLoader.load(tmp_path / "nonexistent.yaml")

    def test_load_or_default(self, tmp_path, monkeypatch):
        """Test load_or_default returns default config when file missing."""
        monkeypatch.chdir(tmp_path)
        config = ConfigLoader.load_or_default(tmp_path / "missing.yaml")

        assert isinstance(config, Config)
        assert config.connectedness.bandwidth == 252
        assert not config.has_groups

    def test_empty_file_gives_defaults(self, tmp_path):
        """Test an empty YAML file yields the default configuration."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        config = ConfigLoader.load(path)

        assert config.spillover.lags == 2
        assert config.spillover.horizon == 4

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises a configuration error."""
        path = tmp_path / "broken.yaml"
        path.write_text("connectedness: [unclosed")

        with pytest.raises(ConfigurationError):
            ConfigLoader.load(path)

    def test_unknown_section(self, tmp_path):
        """Test unknown top-level sections are rejected."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"thresholds": {"x": 1}}))

        with pytest.raises(ConfigValidationError):
            ConfigLoader.load(path)

    def test_collects_all_errors(self, sample_config_dict):
        """Test every range violation is reported at once."""
        sample_config_dict["connectedness"]["bandwidth"] = 10
        sample_config_dict["connectedness"]["significance"] = 0.5
        sample_config_dict["spillover"]["lags"] = 9

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader.validate(sample_config_dict)

        assert len(exc_info.value.errors) == 3

    def test_firm_in_two_groups(self, sample_config_dict):
        """Test a firm may belong to one group only."""
        sample_config_dict["data"]["groups"]["Insurers"].append("BANK_A")

        with pytest.raises(ConfigValidationError):
            ConfigLoader.validate(sample_config_dict)

    def test_non_boolean_flag(self, sample_config_dict):
        """Test boolean options reject other types."""
        sample_config_dict["connectedness"]["robust"] = "yes"

        with pytest.raises(ConfigValidationError):
            ConfigLoader.validate(sample_config_dict)


class TestValidateParameters:
    """Tests for parameter range checks."""

    @pytest.mark.parametrize("kwargs", [
        {"bandwidth": 29},
        {"significance": 0.0},
        {"significance": 0.21},
        {"k": 0.0},
        {"lags": 0},
        {"lags": 6},
        {"horizon": 16},
    ])
    def test_out_of_range(self, kwargs):
        assert len(validate_parameters(**kwargs)) == 1

    def test_bounds_accepted(self):
        errors = validate_parameters(bandwidth=30, significance=0.20, k=0.20, lags=5, horizon=15)
        assert errors == []


class TestConfig:
    """Tests for Config dataclass."""

    def test_default_is_valid(self):
        Config().validate()

    def test_validate_programmatic_changes(self):
        config = Config()
        config.connectedness.k = 0.3

        with pytest.raises(ConfigValidationError):
            config.validate()
