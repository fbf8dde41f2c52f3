"""Application settings and configuration management"""

import os
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment-specific .env file
environment = os.getenv('ENVIRONMENT', 'development')
env_file = f'.env.{environment}'
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    load_dotenv()  # Fallback to .env


class Settings(BaseSettings):
    """
    Application configuration settings using Pydantic Settings.

    Environment variables will automatically override default values.
    A Settings instance is passed explicitly into the client and the
    retrieval agent; ``get_settings()`` only supplies the default one.
    """

    # YouTube Data API Settings
    youtube_api_key: str = Field(
        default="",
        alias="YOUTUBE_API_KEY",
        description="YouTube Data API key from Google Cloud Console"
    )
    youtube_api_base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        alias="YOUTUBE_API_BASE_URL",
        description="Base URL of the YouTube Data API"
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds applied by the transport"
    )

    # Pipeline Settings
    max_results: int = Field(
        default=50,
        ge=1,
        alias="MAX_RESULTS",
        description="Default cap on the number of videos returned per run"
    )
    detail_fetch_concurrency: int = Field(
        default=1,
        ge=1,
        description="Number of video detail chunks requested at once (1 = sequential)"
    )

    # Storage and collaborator paths
    channels_db_path: str = Field(
        default="data/channels.db",
        alias="CHANNELS_DB_PATH",
        description="SQLite file holding saved channels"
    )
    download_script_path: Optional[str] = Field(
        default=None,
        alias="DOWNLOAD_SCRIPT_PATH",
        description="Path to the audio download script receiving video IDs"
    )

    # Development Settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_dir: str = Field(
        default="logs",
        description="Directory for rotating log files"
    )
    environment: str = Field(
        default="development",
        description="Runtime environment (development, staging, production)"
    )

    @field_validator('log_level')
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of {valid_levels}')
        return v.upper()

    @field_validator('environment')
    def validate_environment(cls, v):
        """Validate environment is recognized"""
        valid_envs = ['development', 'staging', 'production']
        if v not in valid_envs:
            raise ValueError(f'environment must be one of {valid_envs}')
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment == 'development'

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == 'production'

    @property
    def has_api_key(self) -> bool:
        return bool(self.youtube_api_key.strip())

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "",
        "extra": "ignore",
        "populate_by_name": True
    }


# Global settings instance
_settings = None


def get_settings() -> Settings:
    """
    Get application settings instance.

    Returns:
        Settings: Application configuration settings
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """
    Force reload of settings from environment variables.

    Returns:
        Settings: Fresh application configuration settings
    """
    global _settings
    _settings = None
    return get_settings()
