"""
Configuration management for the Redis session store.

This module provides centralized configuration loading and validation using Pydantic settings.
Connection details are loaded from environment variables or .env files.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.
    
    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        # If invalid value, default to development
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.
    
    Files are loaded in order, with later files overriding earlier ones.
    The base .env file is loaded first, then the environment-specific file.
    
    Args:
        environment: The target environment.
        
    Returns:
        Tuple of .env file paths to load.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    
    env_specific_file = env_file_map.get(environment, ".env.development")
    
    return (".env", env_specific_file)


class Settings(BaseSettings):
    """
    Session store settings loaded from environment variables.
    
    Every field has a usable development default; staging and production
    deployments are expected to point redis_url at a shared instance.
    
    Environment-specific configuration is supported through:
    - .env.development - Development environment settings
    - .env.staging - Staging environment settings  
    - .env.production - Production environment settings
    
    The ENVIRONMENT variable determines which file to load.
    """
    
    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )
    
    # Redis Configuration
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for session storage"
    )
    redis_max_connections: int = Field(
        default=16,
        ge=1,
        le=1000,
        description="Upper bound on pooled Redis connections"
    )
    redis_pool_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="Seconds to wait for a free pooled connection"
    )
    
    # Session Store Retry Configuration
    session_store_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts for session store and load before failing"
    )
    session_store_retry_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        le=60,
        description="Fixed delay between session store retries"
    )
    
    # Observability Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    otel_endpoint: Optional[str] = Field(
        default=None,
        description="OpenTelemetry collector endpoint for session store spans"
    )
    otel_service_name: str = Field(
        default="redis-session-store",
        description="Service name attached to exported spans"
    )
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate that redis_url is not empty and uses a Redis URL scheme."""
        if not v or not v.strip():
            raise ValueError("redis_url cannot be empty")
        v = v.strip()
        if urlparse(v).scheme not in {"redis", "rediss", "unix"}:
            raise ValueError("redis_url must start with redis://, rediss:// or unix://")
        return v
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""
    
    def __init__(self, message: str, missing_fields: Optional[List[str]] = None, 
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())
    
    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]
        
        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")
        
        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append(f"\nInvalid field values:\n" + "\n".join(invalid_parts))
        
        return "".join(parts)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Factory function to create Settings for a specific environment.
    
    This function detects the environment from the ENVIRONMENT variable (if not provided)
    and loads the appropriate environment-specific .env file.
    
    Args:
        environment: Optional environment override. If not provided, detected from
                    ENVIRONMENT variable.
    
    Returns:
        Settings: Validated settings for the specified environment.
        
    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()
    
    env_files = _get_env_files(environment)
    
    existing_env_files = [env_file for env_file in env_files if Path(env_file).exists()]
    
    # If no env files exist, use the default tuple (pydantic will handle missing files)
    if not existing_env_files:
        existing_env_files = list(env_files)
    
    try:
        # Create a dynamic Settings class with the correct env_file configuration
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_file=tuple(existing_env_files),
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )
        
        return EnvironmentSettings()
    except Exception as e:
        # Parse Pydantic validation errors to provide better error messages
        missing_fields = []
        invalid_fields = {}
        
        if hasattr(e, 'errors'):
            for error in e.errors():
                field_name = '.'.join(str(loc) for loc in error.get('loc', []))
                error_type = error.get('type', '')
                error_msg = error.get('msg', str(error))
                
                if error_type == 'missing':
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error_msg
        
        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.
    
    Settings are loaded once and cached for subsequent calls.
    The environment is detected from the ENVIRONMENT variable.
    
    Returns:
        Settings: The validated application settings.
        
    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    global _settings_cache
    
    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()
    
    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.
    
    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None


def validate_startup() -> None:
    """
    Validate settings at application startup.
    
    Outside development a local Redis cannot share sessions between
    server instances, so a localhost redis_url is rejected there.
    
    Raises:
        ConfigurationError: If any settings are invalid.
    """
    settings = get_settings()
    
    validation_errors = {}
    
    if settings.environment != Environment.DEVELOPMENT:
        host = urlparse(settings.redis_url).hostname or ""
        if host in {"localhost", "127.0.0.1", "::1"}:
            validation_errors["redis_url"] = (
                f"{settings.environment.value} environment requires a shared Redis "
                f"instance, got {settings.redis_url}"
            )
    
    if validation_errors:
        raise ConfigurationError(
            "Configuration validation failed during startup",
            invalid_fields=validation_errors
        )
