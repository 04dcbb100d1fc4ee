"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class ReelchainError(Exception):
    """Base error for all reelchain errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class ValidationError(ReelchainError):
    """Malformed or missing brief fields, caught before any network call."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="validation", details=details)


class ServiceError(ReelchainError):
    """The remote service answered with a non-success status or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
        operation: str = "",
    ):
        super().__init__(
            message,
            component="service",
            details={"status_code": status_code, "body": body[:2000], "operation": operation},
        )
        self.status_code = status_code
        self.body = body
        self.operation = operation


class MalformedResponse(ReelchainError):
    """The remote service answered successfully but the payload is unusable."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="service", details=details)


class ExtractionError(ReelchainError):
    """A continuity frame could not be derived from a finished clip."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="extraction", details=details)


class GenerationFailedError(ReelchainError):
    """The remote job reached the failed state."""

    def __init__(self, job_id: str, reason: str):
        super().__init__(reason, component="generation", details={"job_id": job_id})
        self.job_id = job_id
        self.reason = reason


class JobTimeoutError(ReelchainError):
    """A job did not reach a terminal state within the poll ceiling."""

    def __init__(self, job_id: str, attempts: int):
        super().__init__(
            f"Video generation timed out: job {job_id} still running after {attempts} polls",
            component="generation",
            details={"job_id": job_id, "attempts": attempts},
        )
        self.job_id = job_id
        self.attempts = attempts


class RunCancelledError(ReelchainError):
    """The caller abandoned the run."""

    def __init__(self, message: str = "Run was cancelled"):
        super().__init__(message, component="pipeline")


class PipelineError(ReelchainError):
    """Terminal error of a run, naming the failing stage and segment."""

    def __init__(self, stage: str, cause: ReelchainError, segment_index: int | None = None):
        where = f"{stage} failed"
        if segment_index is not None:
            where += f" at segment {segment_index + 1}"
        super().__init__(
            f"{where}: {cause.message}",
            component="pipeline",
            details={
                "stage": stage,
                "segment_index": segment_index,
                "cause": type(cause).__name__,
                **cause.details,
            },
        )
        self.stage = stage
        self.segment_index = segment_index
        self.cause = cause


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: ReelchainError, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance,
            retry_possible=retry,
        )
