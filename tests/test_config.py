"""Tests for configuration loading."""

from pathlib import Path

import pytest

from gho.config import Settings, default_config_dir, load_settings
from gho.errors import PersistenceError


class TestDefaultConfigDir:
    """Tests for default_config_dir."""

    def test_explicit_override(self, tmp_path: Path) -> None:
        """Test GHO_CONFIG_DIR wins over everything else."""
        env = {"GHO_CONFIG_DIR": str(tmp_path / "custom"), "XDG_CONFIG_HOME": "/xdg"}
        assert default_config_dir(env) == tmp_path / "custom"

    def test_xdg_config_home(self) -> None:
        """Test XDG_CONFIG_HOME is honored."""
        assert default_config_dir({"XDG_CONFIG_HOME": "/xdg"}) == Path("/xdg/gho")

    def test_home_fallback(self) -> None:
        """Test ~/.config/gho is used without overrides."""
        assert default_config_dir({}) == Path.home() / ".config" / "gho"


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        """Test defaults apply when config.yaml is absent."""
        settings = load_settings(tmp_path)

        assert settings.config_dir == tmp_path
        assert settings.api_base_url == "https://api.github.com"
        assert settings.per_page == 100
        assert settings.max_pages == 50
        assert settings.fetch_merge_state is True

    def test_yaml_overrides(self, tmp_path: Path) -> None:
        """Test values from config.yaml override defaults."""
        (tmp_path / "config.yaml").write_text(
            "api_base_url: https://ghe.example.com/api/v3\n"
            "max_pages: 5\n"
            "fetch_merge_state: false\n"
        )

        settings = load_settings(tmp_path)

        assert settings.api_base_url == "https://ghe.example.com/api/v3"
        assert settings.max_pages == 5
        assert settings.fetch_merge_state is False

    def test_empty_yaml(self, tmp_path: Path) -> None:
        """Test an empty file yields defaults."""
        (tmp_path / "config.yaml").write_text("")
        assert load_settings(tmp_path).timeout == Settings().timeout

    def test_invalid_value(self, tmp_path: Path) -> None:
        """Test out-of-range values raise PersistenceError."""
        (tmp_path / "config.yaml").write_text("per_page: 500\n")
        with pytest.raises(PersistenceError, match="Invalid settings"):
            load_settings(tmp_path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """Test a YAML list is rejected."""
        (tmp_path / "config.yaml").write_text("- a\n- b\n")
        with pytest.raises(PersistenceError, match="must contain a mapping"):
            load_settings(tmp_path)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        """Test a YAML syntax error is reported."""
        (tmp_path / "config.yaml").write_text("key: [unclosed\n")
        with pytest.raises(PersistenceError, match="Cannot read settings"):
            load_settings(tmp_path)
