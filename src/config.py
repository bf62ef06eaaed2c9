"""
Configuration management using Pydantic for the Craftus selection pipeline.
Provides type-safe configuration with validation and environment variable support.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.constants import (
    APIConstants,
    DispatchConstants,
    GenerationConstants,
    RateLimitConstants,
    RetryConstants,
    SelectionConstants,
    SystemConstants,
)

logger = logging.getLogger(__name__)


class SelectionConfig(BaseSettings):
    """Mask analysis and region preparation configuration."""

    mask_threshold: int = Field(
        default=SelectionConstants.MASK_THRESHOLD,
        ge=1,
        le=255,
        description="Mask value at or above which a pixel is selected",
    )
    padding_percent: float = Field(
        default=SelectionConstants.DEFAULT_PADDING_PERCENT,
        ge=SelectionConstants.MIN_PADDING_PERCENT,
        le=SelectionConstants.MAX_PADDING_PERCENT,
        description="Default context padding per side, percent of box size",
    )
    min_selection_size: int = Field(
        default=SelectionConstants.MIN_SELECTION_SIZE,
        ge=1,
        description="Minimum selection width/height in pixels",
    )
    max_selection_ratio: float = Field(
        default=SelectionConstants.MAX_SELECTION_RATIO,
        gt=0.0,
        le=1.0,
        description="Maximum fraction of the image a selection may cover",
    )
    filter_largest_region: bool = Field(
        default=True, description="Keep only the largest connected component of a mask"
    )

    model_config = SettingsConfigDict(env_prefix="CRAFTUS_SELECTION_", extra="ignore")


class RateLimitConfig(BaseSettings):
    """Per-identity rate limit configuration."""

    image_generation_capacity: int = Field(
        default=RateLimitConstants.IMAGE_GENERATION_CAPACITY,
        ge=1,
        description="Image generation requests per window",
    )
    image_generation_window_ms: int = Field(
        default=RateLimitConstants.IMAGE_GENERATION_WINDOW_MS,
        ge=RateLimitConstants.MIN_WINDOW_MS,
        le=RateLimitConstants.MAX_WINDOW_MS,
        description="Image generation window length in milliseconds",
    )
    dissection_capacity: int = Field(
        default=RateLimitConstants.DISSECTION_CAPACITY,
        ge=1,
        description="Dissection requests per window",
    )
    dissection_window_ms: int = Field(
        default=RateLimitConstants.DISSECTION_WINDOW_MS,
        ge=RateLimitConstants.MIN_WINDOW_MS,
        le=RateLimitConstants.MAX_WINDOW_MS,
        description="Dissection window length in milliseconds",
    )

    model_config = SettingsConfigDict(env_prefix="CRAFTUS_RATE_LIMIT_", extra="ignore")


class RetryConfig(BaseSettings):
    """Retry configuration for transient service failures."""

    max_retries: int = Field(
        default=RetryConstants.DEFAULT_MAX_RETRIES, ge=0, le=10, description="Maximum retries"
    )
    base_delay_ms: int = Field(
        default=RetryConstants.DEFAULT_BASE_DELAY_MS,
        ge=0,
        le=60_000,
        description="Delay before the first retry in milliseconds",
    )
    backoff_multiplier: float = Field(
        default=RetryConstants.DEFAULT_BACKOFF_MULTIPLIER,
        ge=1.0,
        le=10.0,
        description="Delay multiplier applied per retry",
    )

    model_config = SettingsConfigDict(env_prefix="CRAFTUS_RETRY_", extra="ignore")


class DispatchConfig(BaseSettings):
    """Sequential dispatch configuration."""

    inter_entry_delay_ms: int = Field(
        default=DispatchConstants.DEFAULT_INTER_ENTRY_DELAY_MS,
        ge=0,
        le=DispatchConstants.MAX_INTER_ENTRY_DELAY_MS,
        description="Minimum delay between dependent requests in milliseconds",
    )

    model_config = SettingsConfigDict(env_prefix="CRAFTUS_DISPATCH_", extra="ignore")


class GenerationConfig(BaseSettings):
    """Remote generation service configuration."""

    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CRAFTUS_GENERATION_API_KEY", "GEMINI_API_KEY"),
        description="Gemini API key; generation endpoints are disabled without it",
    )
    text_model: str = Field(
        default=GenerationConstants.TEXT_MODEL,
        description="Model used for identification and dissection",
    )
    image_model: str = Field(
        default=GenerationConstants.IMAGE_MODEL, description="Model used for step images"
    )
    step_image_aspect_ratio: str = Field(
        default=GenerationConstants.STEP_IMAGE_ASPECT_RATIO,
        description="Aspect ratio of generated step images",
    )
    include_thoughts: bool = Field(
        default=True, description="Request model thinking and log it at debug level"
    )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    model_config = SettingsConfigDict(
        env_prefix="CRAFTUS_GENERATION_", extra="ignore", populate_by_name=True
    )


class APIConfig(BaseSettings):
    """API configuration."""

    host: str = Field(default="0.0.0.0", description="API host address")
    port: int = Field(default=8000, ge=1, le=65535, description="API port")
    api_version: str = Field(default=APIConstants.API_VERSION, description="API version")
    cors_enabled: bool = Field(default=True, description="Enable CORS")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")
    max_upload_size_mb: int = Field(
        default=APIConstants.MAX_UPLOAD_SIZE_MB,
        ge=1,
        le=500,
        description="Maximum upload size in MB",
    )

    model_config = SettingsConfigDict(env_prefix="CRAFTUS_API_", extra="ignore")


class SystemConfig(BaseSettings):
    """System configuration."""

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default=SystemConstants.LOG_LEVEL_DEFAULT, description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    model_config = SettingsConfigDict(env_prefix="CRAFTUS_SYSTEM_", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Sub-configurations
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    # Environment
    environment: str = Field(
        default="production", description="Environment (development, staging, production)"
    )

    # Config file support
    config_file: Optional[str] = Field(default=None, description="Path to YAML config file")

    @model_validator(mode="before")
    @classmethod
    def load_config_file(cls, values):
        """Load configuration from YAML file if specified."""
        if not isinstance(values, dict):
            return values

        config_file = values.get("config_file") or os.getenv("CRAFTUS_CONFIG_FILE")

        if config_file and Path(config_file).exists():
            import yaml

            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f)
                    if file_config:
                        # Merge file config with values (env vars take precedence)
                        for key, value in file_config.items():
                            if key not in values or values[key] is None:
                                values[key] = value
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file {config_file}: {e}")

        return values

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_envs = ["development", "staging", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary (secrets excluded)."""
        return self.model_dump(exclude_none=True, exclude={"generation": {"api_key"}})

    def save_to_file(self, path: str) -> None:
        """Save current configuration to YAML file."""
        import yaml

        config_dict = self.to_dict()
        with open(path, "w") as f:
            yaml.dump(config_dict, f, default_flow_style=False)

    model_config = SettingsConfigDict(
        env_prefix="CRAFTUS_",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with validated configuration
    """
    return Settings()


# Convenience function to reload settings (clears cache)
def reload_settings() -> Settings:
    """
    Reload settings, clearing the cache.

    Returns:
        Fresh Settings object
    """
    get_settings.cache_clear()
    return get_settings()
