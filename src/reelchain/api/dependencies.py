"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from reelchain.config import Settings, get_settings
from reelchain.pipeline.manager import PipelineManager


@lru_cache
def get_pipeline_manager() -> PipelineManager:
    return PipelineManager()


def get_app_settings() -> Settings:
    return get_settings()
