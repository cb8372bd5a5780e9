"""
Tests for settings loading.
"""

import yaml

from tract_enrichment import config
from tract_enrichment.config import DEFAULT_SETTINGS, load_settings, resolve_path


class TestLoadSettings:
    """Test suite for load_settings."""

    def test_partial_file_merged_over_defaults(self, tmp_path):
        """Test values in the file override defaults section by section."""
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.dump({
            'imputation': {'n_neighbors': 4},
            'map': {'palette': 'Blues'},
        }))

        settings = load_settings(path)

        assert settings['imputation']['n_neighbors'] == 4
        assert settings['imputation']['suppressed_max_count'] == 5
        assert settings['map']['palette'] == 'Blues'
        assert settings['map']['bins'] == DEFAULT_SETTINGS['map']['bins']
        assert settings['dataset'] == DEFAULT_SETTINGS['dataset']

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.yaml")
        assert settings == DEFAULT_SETTINGS

    def test_invalid_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("imputation: [unclosed")

        assert load_settings(path) == DEFAULT_SETTINGS

    def test_defaults_not_shared(self, tmp_path):
        """Test callers cannot mutate the module defaults through a result."""
        settings = load_settings(tmp_path / "absent.yaml")
        settings['map']['palette'] = 'Greens'
        assert DEFAULT_SETTINGS['map']['palette'] == 'YlOrRd'

    def test_shipped_settings_file(self):
        """Test the settings file in the repository loads and names the core columns."""
        settings = load_settings()
        assert settings['dataset']['target_column'] == 'pct_elevated'
        assert settings['imputation']['suppressed_min_count'] == 1


class TestResolvePath:
    """Test suite for resolve_path."""

    def test_url_unchanged(self):
        url = "https://data.example.org/tracts.geojson"
        assert resolve_path(url) == url

    def test_relative_path_under_project_root(self):
        assert resolve_path("data/input/x.csv") == str(config.PROJECT_ROOT / "data/input/x.csv")

    def test_empty(self):
        assert resolve_path(None) is None
