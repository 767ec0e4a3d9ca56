"""
API configuration settings.
Handles service, database, token and logging settings loaded from the
environment (and an optional .env file).
"""

from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BookstoreConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Bookstore API"
    api_version: str = "1.0.0"
    api_description: str = "CRUD and full-text search over a collection of books"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Database Settings
    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("MONGODB_URL", "MONGO_DB_URI"),
    )
    mongodb_database: str = "Bookstore"
    mongodb_collection: str = "books"

    # Token Settings
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    token_expire_hours: int = 12

    # Listing
    default_page_size: int = 10

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",  # Ignore extra fields from .env
    )

    @field_validator("token_expire_hours")
    @classmethod
    def validate_token_expiry(cls, v):
        """Ensure tokens expire at some point."""
        if v < 1:
            raise ValueError("token_expire_hours must be at least 1")
        return v

    @field_validator("default_page_size")
    @classmethod
    def validate_page_size(cls, v):
        if v < 1:
            raise ValueError("default_page_size must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()


# Global config instance
config = BookstoreConfig()
