"""
HTTP server settings for the Book Catalog API.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """Server-side settings; storage and token settings live in CatalogConfig."""

    api_title: str = Field(default="Book Catalog API")
    api_version: str = Field(default="1.0.0")
    api_description: str = Field(default="A REST API for a multi-user book catalog")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Listen port")
    debug: bool = Field(default=False, description="Expose internal error detail and auto-reload")

    # CORS; restrict origins in production
    cors_origins: List[str] = Field(default=["*"])
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: List[str] = Field(default=["*"])
    cors_allow_headers: List[str] = Field(default=["*"])

    log_level: str = Field(default="INFO", description="Uvicorn log level")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }
