"""Unit tests for configuration loading."""

import pytest

from linguini.core.exceptions import ConfigurationError
from linguini.core.pipeline import AnnotationConfig, AnnotationPipeline
from linguini.translation.backends import LocalBackend
from linguini.utils.config_loader import (
    config_from_dict,
    get_default_config,
    load_config,
    override_with_env,
    save_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OPENAI_API_KEY", "LINGUINI_BACKEND", "LINGUINI_BATCH_SIZE", "LINGUINI_TARGET_LANGUAGE"):
        monkeypatch.delenv(name, raising=False)


class TestAnnotationConfig:
    """Test pipeline configuration validation."""

    def test_defaults(self):
        config = AnnotationConfig()

        assert config.batch_size == 6
        assert config.segment_granularity == "word"
        assert config.validate() == []

    def test_invalid_values(self):
        config = AnnotationConfig(batch_size=0, segment_granularity="sentence", min_detection_confidence=2)
        issues = config.validate()

        assert len(issues) == 3
        assert any("batch_size" in issue for issue in issues)

    def test_pipeline_rejects_invalid_config(self):
        with pytest.raises(ConfigurationError):
            AnnotationPipeline(LocalBackend(), AnnotationConfig(batch_size=0))


class TestConfigLoader:
    """Test YAML loading and environment overrides."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        config = get_default_config()
        config["translation"]["batch_size"] = 3

        save_config(config, str(path))
        loaded = load_config(str(path))

        assert loaded["translation"]["batch_size"] == 3
        assert loaded["segmentation"]["granularity"] == "word"

    def test_partial_file_merged_with_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("translation:\n  backend: free\n", encoding="utf-8")

        loaded = load_config(str(path))

        assert loaded["translation"]["backend"] == "free"
        assert loaded["translation"]["batch_size"] == 6

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LINGUINI_BATCH_SIZE", "2")
        monkeypatch.setenv("LINGUINI_BACKEND", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        config = override_with_env(get_default_config())

        assert config["translation"]["batch_size"] == 2
        assert config["translation"]["backend"] == "openai"
        assert config["api_keys"]["openai"] == "sk-test"

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("LINGUINI_BATCH_SIZE", "many")

        with pytest.raises(ConfigurationError):
            override_with_env(get_default_config())

    def test_config_from_dict(self):
        config = config_from_dict({
            "translation": {"backend": "openai", "batch_size": 4},
            "segmentation": {"granularity": "line"},
            "api_keys": {"openai": "sk-test"},
        })

        assert isinstance(config, AnnotationConfig)
        assert config.backend == "openai"
        assert config.api_key == "sk-test"
        assert config.batch_size == 4
        assert config.segment_granularity == "line"
        assert config.max_phrase_words == 4

    def test_config_from_empty_dict(self):
        config = config_from_dict({})
        assert config.backend == "local"
        assert config.api_key is None
