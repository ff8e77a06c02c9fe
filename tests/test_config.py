"""Tests for settings loading."""

import pytest

from repograph.config import PROJECT_CONFIG_FILE, ScoringConfig, Settings, load_settings
from repograph.errors import ConfigError


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.max_files == 500
        assert settings.concurrency == 10
        assert settings.damping_factor == 0.85
        assert settings.max_iterations == 100
        assert settings.tolerance == 1e-6
        assert settings.scoring == ScoringConfig()

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("REPOGRAPH_MAX_FILES", "42")
        monkeypatch.setenv("REPOGRAPH_LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.max_files == 42
        assert settings.log_level == "DEBUG"


class TestLoadSettings:
    def test_project_file(self, make_repo):
        root = make_repo({
            PROJECT_CONFIG_FILE: "max_files: 50\nexclude_patterns:\n  - docs/**\nscoring:\n  high_value_names:\n    billing: 30\n",
        })

        settings = load_settings(root)

        assert settings.max_files == 50
        assert settings.exclude_patterns == ["docs/**"]
        assert settings.scoring.high_value_names == {"billing": 30}

    def test_overrides_beat_project_file(self, make_repo):
        root = make_repo({PROJECT_CONFIG_FILE: "max_files: 50\n"})

        assert load_settings(root, max_files=7).max_files == 7
        assert load_settings(root, max_files=None).max_files == 50

    def test_explicit_config_file(self, tmp_path):
        config = tmp_path / "custom.yml"
        config.write_text("min_cluster_size: 3\n")

        assert load_settings(config_file=config).min_cluster_size == 3

    def test_empty_file(self, make_repo):
        root = make_repo({PROJECT_CONFIG_FILE: ""})
        assert load_settings(root).max_files == 500

    def test_malformed_yaml(self, make_repo):
        root = make_repo({PROJECT_CONFIG_FILE: "max_files: [1, 2\n"})

        with pytest.raises(ConfigError) as exc:
            load_settings(root)
        assert exc.value.code == "INVALID_CONFIG"

    def test_non_mapping(self, make_repo):
        root = make_repo({PROJECT_CONFIG_FILE: "- a\n- b\n"})

        with pytest.raises(ConfigError):
            load_settings(root)

    @pytest.mark.parametrize(
        "overrides",
        [{"damping_factor": 1.5}, {"damping_factor": 0}, {"max_files": 0}, {"log_level": "LOUD"}],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            load_settings(**overrides)

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(config_file=tmp_path / "nope.yml")
