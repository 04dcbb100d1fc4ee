"""Data models for reelchain."""

from reelchain.models.brief import CreativeBrief, ReferenceImage, Resolution
from reelchain.models.errors import (
    ErrorResponse,
    ExtractionError,
    GenerationFailedError,
    JobTimeoutError,
    MalformedResponse,
    PipelineError,
    ReelchainError,
    RunCancelledError,
    ServiceError,
    ValidationError,
)
from reelchain.models.job import GenerationJob, JobStatus
from reelchain.models.pipeline import (
    PipelineState,
    ProgressEvent,
    ProgressObserver,
    RunEvent,
    RunStage,
    RunStatus,
    SegmentEvent,
    SegmentProgress,
    SegmentResult,
    SegmentStatus,
)
from reelchain.models.plan import SegmentPlan

__all__ = [
    "CreativeBrief",
    "ErrorResponse",
    "ExtractionError",
    "GenerationFailedError",
    "GenerationJob",
    "JobStatus",
    "JobTimeoutError",
    "MalformedResponse",
    "PipelineError",
    "PipelineState",
    "ProgressEvent",
    "ProgressObserver",
    "ReelchainError",
    "ReferenceImage",
    "Resolution",
    "RunCancelledError",
    "RunEvent",
    "RunStage",
    "RunStatus",
    "SegmentEvent",
    "SegmentPlan",
    "SegmentProgress",
    "SegmentResult",
    "SegmentStatus",
    "ServiceError",
    "ValidationError",
]
