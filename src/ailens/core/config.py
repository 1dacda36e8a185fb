"""Configuration management for the AI Lens API.

This module provides centralized configuration management using Pydantic Settings.
General settings are loaded from environment variables with the AILENS_ prefix;
the two provider credentials keep their conventional unprefixed names so an
existing ``.env`` file works unchanged.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (AILENS_* prefix, plus GEMINI_API_KEY / REPLICATE_API_TOKEN)
2. .env file in the project root
3. Default values defined in AILensConfig

Example .env file:
    GEMINI_API_KEY=...
    REPLICATE_API_TOKEN=...
    AILENS_TEXT_MODEL=gemini-2.5-flash
    AILENS_UPLOADS_DIR=uploads

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The FastAPI app passes it explicitly to the orchestrator at startup; request
handlers never consult the environment themselves.

Usage Example
-------------
    from ailens.core.config import config

    if not config.text_provider_configured:
        print("Set GEMINI_API_KEY first")
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Value shipped in the sample .env; treated the same as an absent key.
GEMINI_KEY_PLACEHOLDER = "your_gemini_api_key_here"


class AILensConfig(BaseSettings):
    """Main configuration for the AI Lens API.

    Attributes
    ----------
    Provider Credentials:
        gemini_api_key : str | None
            Google AI Studio key for the text/vision model (GEMINI_API_KEY)
        replicate_api_token : str | None
            Replicate token for Imagen 4 (REPLICATE_API_TOKEN)

    Provider Settings:
        text_model : str
            Gemini model name
        image_model : str
            Replicate model reference
        image_aspect_ratio : str
            Aspect ratio requested from the image model
        image_safety_filter_level : str
            Imagen safety filter level
        provider_timeout_seconds : float
            HTTP timeout applied to every provider call

    Uploads:
        uploads_dir : Path
            Directory holding uploaded reference images
        max_upload_bytes : int
            Maximum accepted upload size
        upload_retention_seconds : int
            Age after which an upload is swept
        cleanup_interval_seconds : int
            Interval between sweeps

    Server:
        server_host : str
            Bind address
        server_port : int
            Port (1024-65535)
        cors_origins : list[str]
            Allowed CORS origins
        log_level : str
            Root logging level used by the CLI entry point
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AILENS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Provider credentials
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "AILENS_GEMINI_API_KEY", "gemini_api_key"),
        description="Google AI Studio API key for the text/vision model",
    )
    replicate_api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "REPLICATE_API_TOKEN", "AILENS_REPLICATE_API_TOKEN", "replicate_api_token"
        ),
        description="Replicate API token for the image-generation model",
    )

    # Provider settings
    text_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for the photography analysis",
    )
    image_model: str = Field(
        default="google/imagen-4",
        description="Replicate model used for image generation",
    )
    image_aspect_ratio: str = Field(default="16:9")
    image_safety_filter_level: str = Field(default="block_medium_and_above")
    provider_timeout_seconds: float = Field(
        default=120.0,
        description="HTTP timeout for each provider call, in seconds",
        gt=0,
    )

    # Uploads
    uploads_dir: Path = Field(
        default=Path("uploads"),
        description="Directory for uploaded reference images",
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum upload size in bytes",
        ge=1,
    )
    upload_retention_seconds: int = Field(
        default=60 * 60,
        description="Uploads older than this are deleted by the janitor",
        ge=1,
    )
    cleanup_interval_seconds: int = Field(
        default=30 * 60,
        description="Seconds between upload sweeps",
        ge=1,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=3001,
        description="Server port",
        ge=1024,
        le=65535,
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @property
    def text_provider_configured(self) -> bool:
        """True when a usable Gemini key is present (not empty, not the placeholder)."""
        key = (self.gemini_api_key or "").strip()
        return bool(key) and key != GEMINI_KEY_PLACEHOLDER

    @property
    def image_provider_configured(self) -> bool:
        """True when a Replicate token is present."""
        return bool((self.replicate_api_token or "").strip())


# Global configuration instance
# Loads values from environment variables and the .env file once, at import.
config = AILensConfig()
