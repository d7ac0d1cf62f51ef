"""Configuration management for the product studio."""

import os
from pathlib import Path
from typing import Dict, Any, Optional
import yaml
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

from .errors import ConfigurationError
from .logger import configure_logging, get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()


DEFAULT_CONFIG_PATH = Path("config/studio.yaml")

DEFAULT_ASPECT_PRESETS: Dict[str, str] = {
    "original": "original",
    "instagram-post": "1:1",
    "instagram-story": "9:16",
    "naver-shopping": "1:1",
    "pinterest-pin": "2:3",
}


class Config(BaseModel):
    """Main application configuration."""
    
    # API Keys
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    
    # Image service
    gemini_model: str = Field(default="gemini-2.5-flash-image-preview", alias="GEMINI_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )
    timeout_gemini_seconds: float = Field(default=120.0, alias="TIMEOUT_GEMINI_SECONDS")
    
    # Retry policy for transient service failures (1 = no retry)
    transient_retry_attempts: int = Field(default=1, ge=1, alias="TRANSIENT_RETRY_ATTEMPTS")
    retry_initial_delay_seconds: float = Field(default=1.0, ge=0, alias="RETRY_INITIAL_DELAY_SECONDS")
    
    # Presentation
    locale: str = Field(default="en", alias="LOCALE")
    messages_path: Optional[Path] = Field(default=None, alias="MESSAGES_PATH")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    
    # Publishing targets: name -> "W:H" or "original"
    aspect_presets: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ASPECT_PRESETS))
    
    class Config:
        populate_by_name = True
    
    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


# Global config instance
_config: Optional[Config] = None


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from environment and an optional YAML file.
    
    The YAML file is looked up at ``path``, then ``STUDIO_CONFIG_PATH``,
    then ``config/studio.yaml``; a missing file is not an error. YAML
    values win over environment variables.
    
    Args:
        path: Explicit YAML config path
        
    Returns:
        Config instance
        
    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config
    
    config_path = Path(path or os.getenv("STUDIO_CONFIG_PATH") or DEFAULT_CONFIG_PATH)
    
    try:
        yaml_config: Dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
            if not isinstance(yaml_config, dict):
                raise ConfigurationError(f"{config_path} must contain a mapping")
        
        env = dict(os.environ)
        # Hosting setups often expose the key under a generic name
        if not env.get("GEMINI_API_KEY") and env.get("API_KEY"):
            env["GEMINI_API_KEY"] = env["API_KEY"]
        
        presets = dict(DEFAULT_ASPECT_PRESETS)
        presets.update(yaml_config.pop("aspect_presets", None) or {})
        
        # YAML may use field names; map them onto the env aliases so they win
        aliases = {
            name: field.alias
            for name, field in Config.model_fields.items()
            if field.alias
        }
        for key, value in yaml_config.items():
            env[aliases.get(key, key)] = value
        
        _config = Config(**env, aspect_presets=presets)
        configure_logging(_config.log_level)
        
        logger.info(
            "Configuration loaded successfully",
            extra={
                "config_file": str(config_path) if config_path.exists() else None,
                "model": _config.gemini_model,
                "has_api_key": _config.gemini_api_key is not None,
                "aspect_presets": sorted(_config.aspect_presets),
            }
        )
        
        return _config
        
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}")


def get_config() -> Config:
    """
    Get the current configuration instance.
    
    Returns:
        Config instance
        
    Raises:
        ConfigurationError: If config not loaded
    """
    if _config is None:
        raise ConfigurationError("Configuration not loaded. Call load_config() first.")
    return _config
