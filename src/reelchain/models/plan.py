"""Segment plan data models."""

from pydantic import BaseModel, ConfigDict, Field


class SegmentPlan(BaseModel):
    """One planned clip of the sequence."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Execution order, 0-based")
    title: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    seconds: int = Field(..., gt=0, description="Clip length, always the brief's per-segment length")
