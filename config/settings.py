"""
Configuration settings for the Adaptive Focus Recommender

Manages all configuration parameters including:
- State persistence backend (memory, SQL, Redis)
- Session store database
- Model parameters
- Logging
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.config import (
    BanditConfig, BurnoutConfig, CapacityConfig, DurationBounds,
    EngineConfig, RewardConfig, ZoneConfig
)

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database settings
    database_url: str = Field(
        default="sqlite:///focus_engine.db",
        description="SQLAlchemy URL for the session store and SQL state backend"
    )

    # State persistence
    state_backend: str = Field(
        default="sql",
        description="Where learned state lives: 'memory', 'sql' or 'redis'"
    )
    state_key_prefix: str = Field(
        default="focus_engine",
        description="Prefix for Redis keys"
    )

    # Redis settings
    redis_host: str = Field(default="localhost", description="Redis server host")
    redis_port: int = Field(default=6379, description="Redis server port")
    redis_db: int = Field(default=0, description="Redis database index")
    redis_password: Optional[str] = Field(default=None, description="Redis server password")

    # Thompson Sampling settings
    prior_alpha: float = Field(
        default=1.0,
        description="Prior successes for an unexplored duration"
    )
    prior_beta: float = Field(
        default=1.5,
        description="Prior failures for an unexplored duration"
    )
    bootstrap_threshold: float = Field(
        default=5.0,
        description="Evidence needed before Thompson Sampling takes over"
    )
    ewma_alpha: float = Field(
        default=0.7,
        description="Weight of the newest selection during bootstrap"
    )
    spillover_factor: float = Field(
        default=0.25,
        description="Share of a strong reward passed to the next longer duration"
    )
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for reproducible sampling"
    )

    # Duration limits
    max_focus_minutes: int = Field(default=120, description="Longest recommendable focus block")
    min_focus_minutes: int = Field(default=5, description="Shortest recommendable focus block")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    debug: bool = Field(default=False, description="Enable debug mode")

    def to_engine_config(self) -> EngineConfig:
        """Build the engine configuration from these settings."""
        return EngineConfig(
            bandit=BanditConfig(
                prior_alpha=self.prior_alpha,
                prior_beta=self.prior_beta,
                bootstrap_threshold=self.bootstrap_threshold,
                ewma_alpha=self.ewma_alpha,
                spillover_factor=self.spillover_factor,
                random_seed=self.random_seed,
            ),
            zones=ZoneConfig(),
            capacity=CapacityConfig(),
            rewards=RewardConfig(),
            burnout=BurnoutConfig(),
            bounds=DurationBounds(
                min_focus=self.min_focus_minutes,
                max_focus=self.max_focus_minutes,
            ),
        )


# Global settings instance
_settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def update_settings(**kwargs) -> Settings:
    """Update settings with new values."""
    global _settings
    if _settings is None:
        _settings = Settings()

    for key, value in kwargs.items():
        if hasattr(_settings, key):
            setattr(_settings, key, value)

    return _settings


# Environment-specific configurations
class DevelopmentSettings(Settings):
    """Development environment settings."""
    debug: bool = True
    log_level: str = "DEBUG"
    database_url: str = "sqlite:///focus_engine_dev.db"


class ProductionSettings(Settings):
    """Production environment settings."""
    debug: bool = False
    log_level: str = "WARNING"


class TestingSettings(Settings):
    """Testing environment settings."""
    debug: bool = True
    log_level: str = "DEBUG"
    database_url: str = "sqlite://"
    state_backend: str = "memory"
    random_seed: Optional[int] = 42


def get_environment_settings(environment: str = None) -> Settings:
    """Get settings for a specific environment."""
    if environment is None:
        environment = os.getenv("ENVIRONMENT", "development")

    if environment == "production":
        return ProductionSettings()
    elif environment == "testing":
        return TestingSettings()
    else:
        return DevelopmentSettings()


# Configuration validation
def validate_settings(settings: Settings) -> bool:
    """Validate configuration settings."""
    errors = []

    if settings.state_backend not in ("memory", "sql", "redis"):
        errors.append("State backend must be 'memory', 'sql' or 'redis'")

    if not settings.database_url.startswith(("sqlite:", "postgresql", "postgres:", "mysql")):
        errors.append("Invalid database URL format")

    if not (0 <= settings.redis_port <= 65535):
        errors.append("Invalid Redis port number")

    if settings.prior_alpha <= 0 or settings.prior_beta <= 0:
        errors.append("Prior alpha and beta must be positive")

    if not (0 < settings.ewma_alpha <= 1):
        errors.append("EWMA alpha must be between 0 and 1")

    if not (0 <= settings.spillover_factor <= 1):
        errors.append("Spillover factor must be between 0 and 1")

    if not (0 < settings.min_focus_minutes < settings.max_focus_minutes):
        errors.append("Focus limits must satisfy 0 < min < max")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True


# Default configuration for quick setup
DEFAULT_CONFIG = {
    "database_url": "sqlite:///focus_engine.db",
    "state_backend": "sql",
    "redis_host": "localhost",
    "redis_port": 6379,
    "prior_alpha": 1.0,
    "prior_beta": 1.5,
    "bootstrap_threshold": 5.0,
    "ewma_alpha": 0.7,
    "spillover_factor": 0.25,
    "max_focus_minutes": 120,
    "min_focus_minutes": 5,
    "log_level": "INFO",
    "debug": False,
}


def create_default_config_file(filepath: str = ".env"):
    """Create a default configuration file."""
    config_content = []

    for key, value in DEFAULT_CONFIG.items():
        if isinstance(value, str):
            config_content.append(f'{key.upper()}="{value}"')
        else:
            config_content.append(f'{key.upper()}={value}')

    config_content.extend([
        "",
        "# Optional: Redis password",
        "# REDIS_PASSWORD=",
        "",
        "# Optional: Environment",
        "# ENVIRONMENT=development"
    ])

    with open(filepath, 'w') as f:
        f.write('\n'.join(config_content))

    print(f"Default configuration file created: {filepath}")


if __name__ == "__main__":
    create_default_config_file()

    settings = get_settings()
    print("Current settings:")
    print(f"Database URL: {settings.database_url}")
    print(f"State backend: {settings.state_backend}")
    print(f"Prior: Beta({settings.prior_alpha}, {settings.prior_beta})")

    try:
        validate_settings(settings)
        print("Settings validation: PASSED")
    except ValueError as e:
        print(f"Settings validation: FAILED - {e}")
