"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Canvas Art Publisher", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # Storage Configuration
    storage_path: Path = Field(default=Path("./storage"), description="Storage directory path")

    # Grid Configuration
    grid_rows: int = Field(default=32, gt=0, description="Number of grid rows")
    grid_cols: int = Field(default=48, gt=0, description="Number of grid columns")
    background_policy: str = Field(
        default="dark", description="Background detection policy: dark, light"
    )

    # Preview Configuration
    preview_cell_size: int = Field(default=10, gt=0, description="Preview cell size in SVG units")
    preview_style: str = Field(
        default="backdrop", description="Preview background style: backdrop, explicit"
    )

    # Image Generation Configuration
    image_source: str = Field(
        default="openai", description="Image generator: openai, pollinations"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="dall-e-3", description="OpenAI image model")
    openai_image_size: str = Field(default="1024x1024", description="OpenAI image size")
    openai_image_quality: str = Field(default="standard", description="OpenAI image quality")
    pollinations_url: str = Field(
        default="https://image.pollinations.ai/prompt", description="Pollinations endpoint"
    )
    image_width: int = Field(default=1024, gt=0, description="Requested image width")
    image_height: int = Field(default=1024, gt=0, description="Requested image height")
    image_seed: Optional[int] = Field(default=None, description="Fixed generation seed")
    fetch_timeout: int = Field(default=120, description="Image fetch timeout in seconds")
    fetch_max_redirects: int = Field(default=5, ge=0, description="Maximum redirects followed")
    fetch_attempts: int = Field(default=5, ge=1, description="Attempts for invalid image bytes")
    fetch_retry_delay: float = Field(default=5.0, ge=0, description="Delay between attempts")

    # Target Site Configuration
    target_url: str = Field(default="https://ginkgoartworks.com/", description="Canvas site URL")
    gallery_host: str = Field(default="opentrons-art", description="Gallery URL substring")
    cell_selector: str = Field(
        default='#grid-container input[type="checkbox"]', description="Cell control selector"
    )
    swatch_selector: str = Field(default='div[role="radio"]', description="Color selector")
    publish_button_text: str = Field(default="Publish", description="Publish button text")
    title_input_selector: str = Field(
        default='input[type="text"]:visible', description="Title input selector"
    )
    publish_tie_break: str = Field(
        default="first", description="Initiate publish tie-break: first, lowest"
    )
    confirm_button_id: Optional[str] = Field(
        default=None, description="Exact id of the modal confirm button, if known"
    )
    title_max_length: int = Field(default=50, gt=0, description="Prompt fallback title length")

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    chromium_executable_path: Optional[str] = Field(
        default=None, description="Chromium executable path"
    )
    viewport_width: int = Field(default=1280, description="Browser viewport width")
    viewport_height: int = Field(default=800, description="Browser viewport height")
    navigation_timeout_ms: int = Field(default=60000, description="Navigation timeout")
    settle_delay_ms: int = Field(default=1000, ge=0, description="Post-navigation settle delay")
    action_timeout_ms: int = Field(default=30000, gt=0, description="Playwright action timeout")
    cell_wait_timeout_ms: int = Field(default=15000, ge=0, description="Wait for grid cells")
    swatch_delay_ms: int = Field(default=100, ge=0, description="Delay after color selection")
    swatch_wait_timeout_ms: int = Field(default=2000, ge=0, description="Wait for swatch state")
    click_delay_ms: int = Field(default=5, ge=0, description="Delay between cell clicks")
    pre_publish_delay_ms: int = Field(default=500, ge=0, description="Delay before publishing")
    publish_settle_ms: int = Field(default=2000, ge=0, description="Wait for the publish modal")
    confirm_settle_ms: int = Field(default=4000, ge=0, description="Wait for the gallery link")
    poll_interval_ms: int = Field(default=100, gt=0, description="Condition poll interval")

    # Job Configuration
    job_retention_seconds: int = Field(default=3600, gt=0, description="Job retention window")

    # Security Configuration
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed hosts for CORS")

    # Monitoring Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("background_policy")
    @classmethod
    def validate_background_policy(cls, v: str) -> str:
        allowed = {"dark", "light"}
        if v not in allowed:
            raise ValueError(f"Background policy must be one of: {allowed}")
        return v

    @field_validator("preview_style")
    @classmethod
    def validate_preview_style(cls, v: str) -> str:
        allowed = {"backdrop", "explicit"}
        if v not in allowed:
            raise ValueError(f"Preview style must be one of: {allowed}")
        return v

    @field_validator("image_source")
    @classmethod
    def validate_image_source(cls, v: str) -> str:
        allowed = {"openai", "pollinations"}
        if v not in allowed:
            raise ValueError(f"Image source must be one of: {allowed}")
        return v

    @field_validator("publish_tie_break")
    @classmethod
    def validate_publish_tie_break(cls, v: str) -> str:
        allowed = {"first", "lowest"}
        if v not in allowed:
            raise ValueError(f"Publish tie-break must be one of: {allowed}")
        return v

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse allowed hosts from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["host1", "host2"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "*" or "host1,host2"
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("storage_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Ensure directories exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="CANVAS_ART_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
