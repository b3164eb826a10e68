"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="IXP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Server
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=3001, gt=0, lt=65536, description="HTTP port")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], description="CORS origins")

    # Sources
    intents_path: str | None = Field(default=None, description="Intent definitions JSON file")
    components_path: str | None = Field(default=None, description="Component definitions JSON file")
    watch_files: bool = Field(default=False, description="Hot reload definitions on change")
    watch_debounce_ms: int = Field(default=300, ge=0, description="File watch debounce (ms)")

    # Resolution
    default_ttl: int = Field(default=300, ge=0, description="Default resolution TTL (seconds)")
    max_parameters_size: int = Field(default=64 * 1024, gt=0, description="Max parameters payload")
    max_parameters_depth: int = Field(default=10, gt=0, description="Max parameters nesting")

    # Rendering
    enable_ssr: bool = Field(default=True, description="Attempt server-side rendering")
    ssr_url: str | None = Field(default=None, description="Remote SSR service URL")
    ssr_timeout: float = Field(default=5.0, gt=0.0, description="SSR request timeout")
    react_version: str = Field(default="18.2.0", description="React UMD version")
    vue_version: str = Field(default="3.3.4", description="Vue global build version")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
