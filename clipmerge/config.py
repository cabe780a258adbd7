"""Application settings from environment variables."""

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "supabase_key", "supabase_service_role_key", "supabase_anon_key"
        ),
    )
    jobs_table: str = "videos"
    output_bucket: str = "outputs"

    # Output URLs
    output_url_mode: Literal["signed", "public"] = "signed"
    signed_url_ttl_seconds: int = 60 * 60 * 24

    # Transcoding
    ffmpeg_binary: str = "ffmpeg"
    transcode_mode: Literal["reencode", "copy"] = "reencode"
    transcode_timeout_seconds: float = 3600.0
    transcode_max_output_bytes: int = 1024 * 1024 * 50

    # Downloads
    download_concurrency: int = Field(default=4, ge=1)
    download_timeout_seconds: float = 300.0
    work_dir: Optional[str] = None

    # Server / worker
    port: int = 3000
    poll_interval_seconds: float = 30.0
    # in_progress rows older than this are put back to processing
    claim_timeout_seconds: Optional[float] = 7200.0

    # Configuration
    log_level: str = "INFO"
    max_retry_attempts: int = Field(default=3, ge=1)
    base_delay_seconds: float = 1.0

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
