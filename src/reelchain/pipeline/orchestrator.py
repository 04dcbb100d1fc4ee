"""Pipeline orchestrator: the per-run segment generation state machine.

One orchestrator drives one run:

    planning -> generating(0) -> extracting(0) -> generating(1) -> ...
             -> generating(N-1) -> assembling -> done

with ``failed`` (and ``cancelled``) reachable from any point. Segments are
strictly sequential because segment k is seeded with the final frame of
segment k-1. Cancellation is checked at every stage transition and at the
top of every poll iteration.
"""

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from pydantic import BaseModel, Field

from reelchain.models.brief import CreativeBrief, ReferenceImage, Resolution
from reelchain.models.errors import (
    GenerationFailedError,
    JobTimeoutError,
    PipelineError,
    ReelchainError,
    RunCancelledError,
)
from reelchain.models.job import GenerationJob, JobStatus
from reelchain.models.pipeline import (
    PipelineState,
    ProgressEvent,
    ProgressObserver,
    RunEvent,
    RunStage,
    SegmentEvent,
    SegmentProgress,
    SegmentResult,
    SegmentStatus,
)
from reelchain.models.plan import SegmentPlan

logger = logging.getLogger(__name__)


class VideoJobClient(Protocol):
    def submit(
        self,
        prompt: str,
        size: Resolution | str | None,
        seconds: int,
        model: str,
        reference: ReferenceImage | None = None,
    ) -> GenerationJob: ...

    def poll(self, job_id: str) -> GenerationJob: ...

    def fetch(self, job_id: str, variant: str = "video") -> bytes: ...


class Planner(Protocol):
    def plan(self, brief: CreativeBrief) -> list[SegmentPlan]: ...


class FrameExtractor(Protocol):
    def extract_final_frame(self, video: bytes) -> ReferenceImage: ...


class PollPolicy(BaseModel):
    """Bounded wait for one job: a timeout, not a retry policy."""

    interval_seconds: float = Field(default=2.0, ge=0)
    max_attempts: int = Field(default=600, ge=1)


class PipelineOrchestrator:
    """Runs plan -> {submit, poll, fetch, extract}* -> assemble for one brief."""

    def __init__(
        self,
        client: VideoJobClient,
        planner: Planner,
        extractor: FrameExtractor,
        run_id: str | None = None,
        poll_policy: PollPolicy | None = None,
        sleep: Callable[[float], None] | None = None,
        observer: ProgressObserver | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.client = client
        self.planner = planner
        self.extractor = extractor
        self.poll_policy = poll_policy or PollPolicy()
        self.observer = observer
        self._cancel = cancel_event or threading.Event()
        self._sleep = sleep or self._wait
        self._step = "planning"
        self._started = False
        self._state = PipelineState(run_id=run_id or str(uuid.uuid4()))

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def run_id(self) -> str:
        return self._state.run_id

    def cancel(self) -> None:
        """Ask the run to stop at its next checkpoint."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def run(self, brief: CreativeBrief) -> PipelineState:
        """Execute the whole run. Raises PipelineError on any failure."""
        if self._started:
            raise RuntimeError(f"Run {self.run_id} was already started")
        self._started = True

        state = self._state
        state.started_at = datetime.now(UTC)

        try:
            # Planning
            self._step = "planning"
            self._check_cancelled()
            self._set_stage(RunStage.PLANNING)
            plans = self.planner.plan(brief)
            state.segments = [SegmentProgress(index=p.index, title=p.title) for p in plans]
            for seg in state.segments:
                self._emit_segment(seg)

            # Generation chain
            reference = brief.reference_image
            for plan in plans:
                is_last = plan.index == len(plans) - 1
                result = self._generate_segment(brief, plan, reference, is_last)
                state.results.append(result)
                self._set_segment(plan.index, SegmentStatus.COMPLETED, 100.0)
                reference = result.continuity_frame

            # Assembly: the deliverable is the final clip
            self._step = "assembling"
            self._check_cancelled()
            state.current_segment = None
            self._set_stage(RunStage.ASSEMBLING)

            state.completed_at = datetime.now(UTC)
            self._set_stage(RunStage.DONE)
            logger.info(f"Run {self.run_id} finished: {len(state.results)} segments")
            return state

        except ReelchainError as e:
            raise self._fail(e) from e
        except Exception as e:
            cause = ReelchainError(str(e) or type(e).__name__, component="pipeline")
            raise self._fail(cause) from e

    def _generate_segment(
        self,
        brief: CreativeBrief,
        plan: SegmentPlan,
        reference: ReferenceImage | None,
        is_last: bool,
    ) -> SegmentResult:
        i = plan.index
        self._state.current_segment = i

        self._step = "submit"
        self._check_cancelled()
        self._set_stage(RunStage.GENERATING)
        self._set_segment(i, SegmentStatus.GENERATING, 0.0)
        job = self.client.submit(
            prompt=plan.prompt,
            size=brief.size,
            seconds=plan.seconds,
            model=brief.model,
            reference=reference,
        )
        logger.info(f"Run {self.run_id} segment {i + 1}: submitted job {job.id}")

        self._step = "poll"
        job = self._await_completion(job, i)

        self._step = "fetch"
        self._check_cancelled()
        video = self.client.fetch(job.id)

        frame = None
        if not is_last:
            self._step = "extract"
            self._check_cancelled()
            self._set_stage(RunStage.EXTRACTING)
            frame = self.extractor.extract_final_frame(video)
            logger.info(f"Run {self.run_id} segment {i + 1}: continuity frame extracted")

        return SegmentResult(
            index=i,
            job_id=job.id,
            video=video,
            reference=reference,
            continuity_frame=frame,
        )

    def _await_completion(self, job: GenerationJob, index: int) -> GenerationJob:
        """Poll until the job is terminal or the attempt ceiling is reached."""
        max_attempts = self.poll_policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            self._check_cancelled()
            job = job.merge(self.client.poll(job.id))
            logger.debug(
                f"Job {job.id} poll {attempt}/{max_attempts}: {job.status.value} {job.progress}"
            )

            if job.status == JobStatus.COMPLETED:
                return job
            if job.status == JobStatus.FAILED:
                raise GenerationFailedError(job.id, job.error_message or f"Job {job.id} failed")

            self._set_segment(index, SegmentStatus.GENERATING, job.progress or 0.0)
            if attempt < max_attempts:
                self._sleep(self.poll_policy.interval_seconds)

        raise JobTimeoutError(job.id, max_attempts)

    def _fail(self, cause: ReelchainError) -> PipelineError:
        state = self._state
        cancelled = isinstance(cause, RunCancelledError)
        index = state.current_segment

        if index is not None and state.segments[index].status == SegmentStatus.GENERATING:
            self._set_segment(index, SegmentStatus.FAILED, state.segments[index].progress)

        error = PipelineError(self._step, cause, segment_index=index)
        state.error = error.message
        state.failed_stage = self._step
        state.failed_segment = index
        state.completed_at = datetime.now(UTC)
        self._set_stage(RunStage.CANCELLED if cancelled else RunStage.FAILED)

        if cancelled:
            logger.warning(f"Run {self.run_id} cancelled during {self._step}")
        else:
            logger.error(f"Run {self.run_id} failed: {error.message}")
        return error

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise RunCancelledError()

    def _wait(self, seconds: float) -> None:
        # Returns early when the run is cancelled
        self._cancel.wait(seconds)

    def _set_stage(self, stage: RunStage) -> None:
        state = self._state
        state.stage = stage
        state.updated_at = datetime.now(UTC)
        self._emit(
            RunEvent(
                run_id=state.run_id,
                stage=stage,
                current_segment=state.current_segment,
                done=state.done,
                error=state.error,
            )
        )

    def _set_segment(self, index: int, status: SegmentStatus, progress: float) -> None:
        seg = self._state.segments[index]
        seg.status = status
        seg.progress = min(100.0, max(0.0, progress))
        self._state.updated_at = datetime.now(UTC)
        self._emit_segment(seg)

    def _emit_segment(self, seg: SegmentProgress) -> None:
        self._emit(
            SegmentEvent(
                run_id=self._state.run_id,
                index=seg.index,
                title=seg.title,
                status=seg.status,
                progress=seg.progress,
            )
        )

    def _emit(self, event: ProgressEvent) -> None:
        if self.observer is None:
            return
        # Observers are best-effort and never change the run's outcome
        try:
            self.observer(event)
        except Exception:
            logger.exception(f"Progress observer failed for run {self.run_id}")
