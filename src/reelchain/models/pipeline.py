"""Pipeline state, stage and progress event models."""

from collections.abc import Callable
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from reelchain.models.brief import ReferenceImage


class RunStage(StrEnum):
    """Stages of a generation run."""

    PLANNING = "planning"
    GENERATING = "generating"
    EXTRACTING = "extracting"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStage.DONE, RunStage.FAILED, RunStage.CANCELLED)


class SegmentStatus(StrEnum):
    """Per-segment status shown to the caller."""

    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class SegmentProgress(BaseModel):
    """Caller-facing projection of one segment."""

    index: int = Field(..., ge=0)
    title: str
    status: SegmentStatus = Field(default=SegmentStatus.PENDING)
    progress: float = Field(default=0.0, ge=0, le=100)


class SegmentResult(BaseModel):
    """Output of one finished segment."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    job_id: str = Field(..., min_length=1)
    video: bytes = Field(..., repr=False, description="MPEG-4 clip")
    reference: ReferenceImage | None = Field(
        default=None, description="Reference image the job was seeded with"
    )
    continuity_frame: ReferenceImage | None = Field(
        default=None, description="Final frame, absent for the last segment"
    )


class PipelineState(BaseModel):
    """Run-scoped state, owned by a single orchestrator."""

    run_id: str = Field(..., min_length=1)
    stage: RunStage = Field(default=RunStage.PLANNING)
    current_segment: int | None = None
    segments: list[SegmentProgress] = Field(default_factory=list)
    results: list[SegmentResult] = Field(default_factory=list, exclude=True)
    error: str | None = None
    failed_stage: str | None = None
    failed_segment: int | None = None
    started_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def done(self) -> bool:
        return self.stage.is_terminal

    @property
    def deliverable(self) -> bytes | None:
        """The run's output video: the final segment's clip."""
        if self.stage != RunStage.DONE or not self.results:
            return None
        return self.results[-1].video


class SegmentEvent(BaseModel):
    """Progress update for one segment."""

    kind: str = "segment"
    run_id: str
    index: int
    title: str
    status: SegmentStatus
    progress: float


class RunEvent(BaseModel):
    """Progress update for the run as a whole."""

    kind: str = "run"
    run_id: str
    stage: RunStage
    current_segment: int | None = None
    done: bool = False
    error: str | None = None


ProgressEvent = SegmentEvent | RunEvent
ProgressObserver = Callable[[ProgressEvent], None]


class RunStatus(BaseModel):
    """Caller-side view of a run, rebuilt from pushed progress events."""

    run_id: str
    stage: RunStage = Field(default=RunStage.PLANNING)
    current_segment: int | None = None
    done: bool = False
    error: str | None = None
    segments: list[SegmentProgress] = Field(default_factory=list)

    def apply(self, event: ProgressEvent) -> "RunStatus":
        """Return a new status with one event folded in."""
        if isinstance(event, RunEvent):
            return self.model_copy(
                update={
                    "stage": event.stage,
                    "current_segment": event.current_segment,
                    "done": event.done,
                    "error": event.error,
                }
            )
        segments = [s.model_copy() for s in self.segments]
        entry = SegmentProgress(
            index=event.index, title=event.title, status=event.status, progress=event.progress
        )
        if event.index < len(segments):
            segments[event.index] = entry
        else:
            segments.extend(
                SegmentProgress(index=i, title=f"Segment {i + 1}")
                for i in range(len(segments), event.index)
            )
            segments.append(entry)
        return self.model_copy(update={"segments": segments})
