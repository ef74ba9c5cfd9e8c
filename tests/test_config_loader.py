"""Tests for plistkit.yaml configuration loading."""

from pathlib import Path

import pytest
import yaml

from plistkit.core.config_loader import ConfigLoader, LoggingOptions
from plistkit.core.types import DEFAULT_RESULT_FILTER, ResultKind


class TestConfigLoader:
    """Test ConfigLoader functionality."""

    def test_init_with_explicit_path(self, tmp_path):
        """Test initialization with explicit config path."""
        config_file = tmp_path / "plistkit.yaml"
        config_file.write_text("diff: {}")

        loader = ConfigLoader(config_file)
        assert loader.config_path == config_file

    def test_init_with_nonexistent_explicit_path(self, tmp_path):
        """Test initialization with nonexistent explicit path."""
        loader = ConfigLoader(tmp_path / "nonexistent.yaml")
        assert loader.config_path is None

    def test_find_config_in_parent_dir(self, tmp_path, monkeypatch):
        """Test finding plistkit.yaml in parent directory."""
        config_file = tmp_path / "plistkit.yaml"
        config_file.write_text("diff: {}")
        subdir = tmp_path / "subdir"
        subdir.mkdir()
        monkeypatch.chdir(subdir)

        loader = ConfigLoader()
        assert loader.config_path == config_file

    def test_no_config_file_found(self, tmp_path, monkeypatch):
        """Test defaults when no plistkit.yaml is found."""
        monkeypatch.chdir(tmp_path)

        loader = ConfigLoader()
        assert loader.config_path is None
        assert loader.load() == {}
        assert loader.logging_options() == LoggingOptions()
        assert loader.diff_options().result_filter == DEFAULT_RESULT_FILTER
        assert loader.settings_path() is None

    def test_load_invalid_yaml(self, tmp_path):
        """Test loading an invalid YAML file."""
        config_file = tmp_path / "plistkit.yaml"
        config_file.write_text("invalid: yaml: content: [")

        loader = ConfigLoader(config_file)
        with pytest.raises(ValueError, match="Invalid plistkit.yaml"):
            loader.load()

    def test_load_non_mapping(self, tmp_path):
        config_file = tmp_path / "plistkit.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            ConfigLoader(config_file).load()

    def test_sections(self, tmp_path, monkeypatch):
        """Test the typed views of each section."""
        monkeypatch.setenv("HOME", str(tmp_path))
        config_data = {
            "settings": "~/_DefaultSettings.plist",
            "logging": {"level": "debug", "file": "~/plistkit.log", "max_size_mb": 2, "backups": 3},
            "diff": {"max_depth": 4, "output_types": "<>"},
        }
        config_file = tmp_path / "plistkit.yaml"
        config_file.write_text(yaml.dump(config_data))

        loader = ConfigLoader(config_file)
        assert loader.settings_path() == Path(tmp_path) / "_DefaultSettings.plist"

        logging_options = loader.logging_options()
        assert logging_options.level == "DEBUG"
        assert logging_options.file == "~/plistkit.log"
        assert logging_options.max_bytes == 2 * 1024 * 1024
        assert logging_options.backups == 3

        diff_options = loader.diff_options()
        assert diff_options.max_depth == 4
        assert diff_options.result_filter == frozenset(
            {ResultKind.MISSING_FROM_SECOND, ResultKind.MISSING_FROM_FIRST}
        )

    def test_bad_output_types(self, tmp_path):
        config_file = tmp_path / "plistkit.yaml"
        config_file.write_text("diff: {output_types: 'x'}")

        with pytest.raises(ValueError):
            ConfigLoader(config_file).diff_options()
