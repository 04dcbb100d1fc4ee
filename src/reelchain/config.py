"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """reelchain configuration loaded from environment variables."""

    model_config = {"env_prefix": "REELCHAIN_", "env_file": ".env", "extra": "ignore"}

    # Remote service
    openai_api_key: str = ""
    api_base: str = "https://api.openai.com/v1"
    request_timeout_seconds: float = 300.0
    download_timeout_seconds: float = 600.0

    # Models
    planner_model: str = "gpt-4o"
    video_model: str = "sora-2"

    # Brief defaults and limits
    default_size: str = "1280x720"
    default_seconds_per_segment: int = 8
    min_segments: int = 1
    max_segments: int = 20
    planner_allow_short_plan: bool = False

    # Polling
    poll_interval_seconds: float = 2.0
    poll_max_attempts: int = 600

    # Continuity frames
    frame_offset_seconds: float = 0.1
    frame_format: str = "jpg"
    frame_jpeg_quality: int = 95

    # Reference uploads
    allowed_reference_types: list[str] = ["png", "jpeg", "webp"]
    reference_max_size_mb: int = 20

    # Directories
    output_dir: Path = Path("/tmp/reelchain/output")


def get_settings() -> Settings:
    """Return a settings instance read from the environment."""
    return Settings()
