"""Configuration management for the density histogram engine."""

import os
from pathlib import Path
from typing import ClassVar, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class EngineConfig(BaseModel):
    """Engine, data source and output configuration."""

    # Retry configuration
    max_attempts: int = Field(default=4, description="Fetch attempts per batch index, including the first")
    retry_base_delay: float = Field(default=0.0, description="Base delay for exponential backoff (0 disables)")
    retry_max_delay: float = Field(default=4.0, description="Maximum retry delay")
    retry_jitter_max: float = Field(default=0.0, description="Maximum jitter for retry delay")

    # Data source
    source: Literal["simulated", "http"] = Field(default="simulated", description="Batch source")
    server_url: str = Field(default="http://localhost:8001", description="Base URL of the batch server")
    connect_timeout: float = Field(default=3.0, description="HTTP connect timeout in seconds")
    read_timeout: float = Field(default=8.0, description="HTTP read timeout in seconds")

    # Simulated source parameters
    grid_columns: int = Field(default=10, description="Grid columns")
    grid_rows: int = Field(default=10, description="Grid rows")
    batch_count: int = Field(default=20, description="Number of batch indices")
    points_per_batch: int = Field(default=25, description="Upper bound of points per batch")
    error_rate: float = Field(default=0.1, description="Probability a single fetch attempt fails")
    empty_rate: float = Field(default=0.0, description="Probability a batch comes back empty")
    random_seed: Optional[int] = Field(default=None, description="Seed for deterministic data")

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    structured_logging: bool = Field(default=True, description="Enable structured logging")

    # Output configuration
    output_directory: str = Field(default="out", description="Output directory for results")
    output_filename: str = Field(default="histograms.json", description="Output JSON filename")

    @field_validator('max_attempts')
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        """At least one fetch attempt is required."""
        if v < 1:
            raise ValueError(f"max_attempts must be at least 1, got: {v}")
        return v

    @field_validator('grid_columns', 'grid_rows', 'batch_count', 'points_per_batch')
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"value must be non-negative, got: {v}")
        return v

    @field_validator('error_rate', 'empty_rate')
    @classmethod
    def validate_rate(cls, v: float) -> float:
        """Validate rates are probabilities."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"rate must be between 0.0 and 1.0, got: {v}")
        return v

    @field_validator('server_url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f"URL must start with http:// or https://, got: {v}")
        return v.rstrip('/')

    @property
    def output_path(self) -> Path:
        """Get full output file path."""
        return Path(self.output_directory) / self.output_filename

    # Environment variable overrides
    ENV_MAPPINGS: ClassVar[Dict[str, str]] = {
        "DENSITY_MAX_ATTEMPTS": "max_attempts",
        "DENSITY_SOURCE": "source",
        "DENSITY_SERVER_URL": "server_url",
        "DENSITY_BATCH_COUNT": "batch_count",
        "DENSITY_ERROR_RATE": "error_rate",
        "DENSITY_SEED": "random_seed",
        "DENSITY_LOG_LEVEL": "log_level",
        "DENSITY_CONNECT_TIMEOUT": "connect_timeout",
        "DENSITY_READ_TIMEOUT": "read_timeout",
    }

    @classmethod
    def env_overrides(cls) -> Dict[str, str]:
        """Raw field overrides for every mapped variable present in the environment."""
        return {
            field_name: os.environ[env_var]
            for env_var, field_name in cls.ENV_MAPPINGS.items()
            if env_var in os.environ
        }

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create configuration with environment variable overrides."""
        # Validation coerces the string values to the field types
        return cls(**cls.env_overrides())


class ConfigManager:
    """Manages configuration loading with override precedence."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path("config/config.yaml")
        self._config: Optional[EngineConfig] = None

    def load_config(self, cli_overrides: Optional[Dict] = None) -> EngineConfig:
        """
        Load configuration with override precedence: CLI > ENV > YAML.

        Args:
            cli_overrides: Optional dictionary of CLI flag overrides

        Returns:
            Fully merged EngineConfig instance

        Raises:
            ValueError: If configuration validation fails
        """
        config_dict = {}

        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config_dict.update(yaml_config)

        base_config = EngineConfig(**config_dict)

        # Merge configurations (ENV overrides YAML), whatever the env value
        merged_dict = base_config.model_dump()
        merged_dict.update(EngineConfig.env_overrides())

        if cli_overrides:
            cli_overrides = {k: v for k, v in cli_overrides.items() if v is not None}
            merged_dict.update(cli_overrides)

        self._config = EngineConfig(**merged_dict)
        return self._config

    @property
    def config(self) -> EngineConfig:
        """Get the loaded configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config
