"""Remote generation job models."""

import logging
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from reelchain.models.errors import MalformedResponse

logger = logging.getLogger(__name__)


class JobStatus(StrEnum):
    """Lifecycle of a remote generation job."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        # completed and failed share the terminal rank
        return {"queued": 0, "in_progress": 1, "completed": 2, "failed": 2}[self.value]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class GenerationJob(BaseModel):
    """Handle on a job tracked by the remote service."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    status: JobStatus
    progress: float | None = Field(default=None, ge=0, le=100)
    error_message: str | None = None

    @classmethod
    def from_payload(cls, payload: object) -> "GenerationJob":
        """Build a job from the service's JSON job object."""
        if not isinstance(payload, dict):
            raise MalformedResponse(
                "Job response is not a JSON object",
                details={"response_preview": str(payload)[:200]},
            )
        job_id = payload.get("id")
        status = payload.get("status")
        if not job_id or not status:
            raise MalformedResponse(
                "Job response is missing id or status",
                details={"response_preview": str(payload)[:200]},
            )
        try:
            status = JobStatus(status)
        except ValueError:
            raise MalformedResponse(
                f"Unknown job status: {status!r}",
                details={"job_id": job_id, "status": status},
            )

        progress = payload.get("progress")
        if isinstance(progress, (int, float)) and not isinstance(progress, bool):
            progress = min(100.0, max(0.0, float(progress)))
        else:
            progress = None

        error = payload.get("error")
        error_message = error.get("message") if isinstance(error, dict) else None

        return cls(id=str(job_id), status=status, progress=progress, error_message=error_message)

    def merge(self, polled: "GenerationJob") -> "GenerationJob":
        """Fold a fresh poll result into this record.

        Terminal records never change, and a poll that reports an earlier
        status than the one already recorded is ignored.
        """
        if polled.id != self.id:
            raise MalformedResponse(
                f"Poll returned job {polled.id} while tracking {self.id}",
                details={"job_id": self.id, "polled_id": polled.id},
            )
        if self.status.is_terminal:
            return self
        if polled.status.rank < self.status.rank:
            logger.warning(
                f"Job {self.id} reported {polled.status.value} after {self.status.value}; ignoring"
            )
            return self
        return polled
