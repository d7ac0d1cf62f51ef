"""Test configuration loading from environment and YAML."""

import logging

import pytest

from product_studio.utils import config as config_module
from product_studio.utils.config import DEFAULT_ASPECT_PRESETS, get_config, load_config
from product_studio.utils.errors import ConfigurationError
from product_studio.utils import logger as logger_module
from product_studio.utils.logger import configure_logging, get_logger

ENV_KEYS = [
    "GEMINI_API_KEY",
    "API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
    "TIMEOUT_GEMINI_SECONDS",
    "TRANSIENT_RETRY_ATTEMPTS",
    "RETRY_INITIAL_DELAY_SECONDS",
    "LOCALE",
    "MESSAGES_PATH",
    "STUDIO_CONFIG_PATH",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate every test from the host environment and working directory."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "_config", None)
    monkeypatch.setattr(logger_module, "_level_override", None)
    yield
    configure_logging("INFO")


def write_yaml(tmp_path, text: str):
    path = tmp_path / "studio.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    """Environment and YAML merging."""
    
    def test_defaults(self):
        config = load_config()
        
        assert config.gemini_api_key is None
        assert config.transient_retry_attempts == 1
        assert config.locale == "en"
        assert config.aspect_presets == DEFAULT_ASPECT_PRESETS
    
    def test_env_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "gem-key")
        monkeypatch.setenv("TRANSIENT_RETRY_ATTEMPTS", "3")
        
        config = load_config()
        
        assert config.gemini_api_key == "gem-key"
        assert config.transient_retry_attempts == 3
    
    def test_generic_key_fallback(self, monkeypatch):
        """API_KEY is used when GEMINI_API_KEY is absent."""
        monkeypatch.setenv("API_KEY", "generic-key")
        
        assert load_config().gemini_api_key == "generic-key"
    
    def test_specific_key_preferred(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "generic-key")
        monkeypatch.setenv("GEMINI_API_KEY", "gem-key")
        
        assert load_config().gemini_api_key == "gem-key"
    
    def test_blank_key_is_missing(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "   ")
        
        assert load_config().gemini_api_key is None
    
    def test_yaml_overrides_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GEMINI_MODEL", "env-model")
        path = write_yaml(tmp_path, "gemini_model: yaml-model\nlocale: ko\n")
        
        config = load_config(path)
        
        assert config.gemini_model == "yaml-model"
        assert config.locale == "ko"
    
    def test_presets_merge(self, tmp_path):
        """YAML presets extend and override the built-in table."""
        path = write_yaml(tmp_path, "aspect_presets:\n  banner: '3:1'\n  instagram-post: '4:5'\n")
        
        presets = load_config(path).aspect_presets
        
        assert presets["banner"] == "3:1"
        assert presets["instagram-post"] == "4:5"
        assert presets["pinterest-pin"] == DEFAULT_ASPECT_PRESETS["pinterest-pin"]
    
    def test_path_from_env(self, monkeypatch, tmp_path):
        path = write_yaml(tmp_path, "gemini_model: from-env-path\n")
        monkeypatch.setenv("STUDIO_CONFIG_PATH", str(path))
        
        assert load_config().gemini_model == "from-env-path"
    
    def test_missing_file_is_fine(self, tmp_path):
        assert load_config(tmp_path / "absent.yaml").locale == "en"
    
    def test_non_mapping_yaml(self, tmp_path):
        path = write_yaml(tmp_path, "- a\n- b\n")
        
        with pytest.raises(ConfigurationError):
            load_config(path)
    
    def test_log_level_from_yaml(self, monkeypatch, tmp_path):
        """The YAML log level wins over LOG_LEVEL and reaches package loggers."""
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        existing = get_logger("product_studio.core.orchestrator")
        path = write_yaml(tmp_path, "log_level: DEBUG\n")
        
        assert load_config(path).log_level == "DEBUG"
        assert existing.level == logging.DEBUG
        assert get_logger("product_studio.created_after_config").level == logging.DEBUG
    
    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("TRANSIENT_RETRY_ATTEMPTS", "0")
        
        with pytest.raises(ConfigurationError):
            load_config()


class TestGetConfig:
    """Global config access."""
    
    def test_not_loaded(self):
        with pytest.raises(ConfigurationError):
            get_config()
    
    def test_returns_loaded(self):
        config = load_config()
        
        assert get_config() is config
