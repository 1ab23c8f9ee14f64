"""
Configuration management using environment variables.
Handles storage, token signing and logging settings with validation and defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "your-secret-key"


class CatalogConfig(BaseSettings):
    """
    Configuration for the catalog core.

    Built once at process startup and passed explicitly to the services;
    core code never reads environment variables itself.
    """

    # Storage Configuration
    data_dir: str = Field(default="data", description="Directory holding the collection files")
    users_collection: str = Field(default="users", description="Collection name for users")
    books_collection: str = Field(default="books", description="Collection name for books")

    # Token Configuration
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, description="Token signing secret")
    jwt_algorithm: str = Field(default="HS256", description="Token signing algorithm")
    token_expire_hours: int = Field(default=24, description="Token lifetime in hours")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra fields from .env
    }

    @field_validator("token_expire_hours")
    @classmethod
    def validate_token_expiry(cls, v):
        """Ensure token lifetime is positive."""
        if v < 1:
            raise ValueError("token_expire_hours must be at least 1")
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

    def get_data_dir(self) -> Path:
        """Get data directory as Path object."""
        return Path(self.data_dir)

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def uses_default_secret(self) -> bool:
        """Whether tokens are signed with the built-in fallback secret."""
        return self.jwt_secret == DEFAULT_JWT_SECRET
