"""Pipeline manager: registry of generation runs."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from reelchain.clients.remote import RemoteServiceClient
from reelchain.config import Settings, get_settings
from reelchain.extractors.frame_extractor import ContinuityExtractor
from reelchain.models.brief import CreativeBrief
from reelchain.models.errors import PipelineError, ValidationError
from reelchain.models.pipeline import PipelineState, ProgressEvent, RunStatus
from reelchain.pipeline.orchestrator import PipelineOrchestrator, PollPolicy
from reelchain.planner.segment_planner import SegmentPlanner
from reelchain.storage.artifact_store import ArtifactStore, RunManifest

logger = logging.getLogger(__name__)


class RunStatusBoard:
    """Latest caller-facing status of every run, fed by progress events."""

    def __init__(self):
        self._lock = threading.Lock()
        self._runs: dict[str, RunStatus] = {}

    def __call__(self, event: ProgressEvent) -> None:
        with self._lock:
            current = self._runs.get(event.run_id)
            # Events of forgotten runs are dropped
            if current is not None:
                self._runs[event.run_id] = current.apply(event)

    def register(self, run_id: str) -> RunStatus:
        with self._lock:
            status = RunStatus(run_id=run_id)
            self._runs[run_id] = status
            return status

    def get(self, run_id: str) -> RunStatus | None:
        with self._lock:
            return self._runs.get(run_id)

    def forget(self, run_id: str) -> None:
        with self._lock:
            self._runs.pop(run_id, None)


@dataclass
class _Run:
    brief: CreativeBrief
    orchestrator: PipelineOrchestrator | None
    client: RemoteServiceClient
    owns_client: bool = False
    cancel_event: threading.Event = field(default_factory=threading.Event)
    summary: PipelineState | None = None

    @property
    def state(self) -> PipelineState | None:
        if self.summary is not None:
            return self.summary
        return self.orchestrator.state if self.orchestrator else None


class PipelineManager:
    """Creates, executes, cancels and cleans up generation runs.

    Runs share nothing but the read-only service client; each run owns its
    orchestrator, state and cancellation event. A run started with its own
    API key gets its own client, closed when the run ends.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: RemoteServiceClient | None = None,
        extractor: ContinuityExtractor | None = None,
        store: ArtifactStore | None = None,
        sleep: Callable[[float], None] | None = None,
        client_factory: Callable[[str], RemoteServiceClient] | None = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or RemoteServiceClient(self.settings)
        self.client_factory = client_factory or self._client_for_key
        self.extractor = extractor or ContinuityExtractor(
            offset_seconds=self.settings.frame_offset_seconds,
            image_format=self.settings.frame_format,
            jpeg_quality=self.settings.frame_jpeg_quality,
        )
        self.store = store or ArtifactStore(self.settings.output_dir)
        self.board = RunStatusBoard()
        self.poll_policy = PollPolicy(
            interval_seconds=self.settings.poll_interval_seconds,
            max_attempts=self.settings.poll_max_attempts,
        )
        self._sleep = sleep
        self._lock = threading.Lock()
        self._runs: dict[str, _Run] = {}

    def _client_for_key(self, api_key: str) -> RemoteServiceClient:
        return RemoteServiceClient(self.settings.model_copy(update={"openai_api_key": api_key}))

    def create_run(self, brief: CreativeBrief, api_key: str | None = None) -> RunStatus:
        """Register a new run for a brief without starting it."""
        if not self.settings.min_segments <= brief.segment_count <= self.settings.max_segments:
            raise ValidationError(
                f"segment_count must be between {self.settings.min_segments} "
                f"and {self.settings.max_segments}",
                details={"segment_count": brief.segment_count},
            )

        client = self.client_factory(api_key) if api_key else self.client
        cancel_event = threading.Event()
        orchestrator = PipelineOrchestrator(
            client=client,
            planner=SegmentPlanner(client, allow_short_plan=self.settings.planner_allow_short_plan),
            extractor=self.extractor,
            poll_policy=self.poll_policy,
            sleep=self._sleep,
            observer=self.board,
            cancel_event=cancel_event,
        )
        run_id = orchestrator.run_id
        with self._lock:
            self._runs[run_id] = _Run(
                brief=brief,
                orchestrator=orchestrator,
                client=client,
                owns_client=bool(api_key),
                cancel_event=cancel_event,
            )
        logger.info(f"Created run {run_id}: {brief.segment_count} x {brief.seconds_per_segment}s")
        return self.board.register(run_id)

    def get_run(self, run_id: str) -> RunStatus | None:
        """Get the latest caller-facing status of a run."""
        return self.board.get(run_id)

    def get_state(self, run_id: str) -> PipelineState | None:
        run = self._runs.get(run_id)
        return run.state if run else None

    def get_manifest(self, run_id: str) -> RunManifest | None:
        return self.store.load_manifest(run_id)

    def list_runs(self) -> list[str]:
        """IDs of runs known in memory or with stored artifacts."""
        with self._lock:
            known = set(self._runs)
        return sorted(known | set(self.store.list_runs()))

    def execute(self, run_id: str) -> PipelineState:
        """Run the pipeline for a registered run.

        Finished segments are written to the artifact store whether the run
        succeeds or not. The returned state keeps the clip bytes; the
        registry keeps only a summary. Raises PipelineError on failure.
        """
        run = self._runs.get(run_id)
        if run is None:
            raise ValidationError(f"Run {run_id} not found")
        if run.orchestrator is None:
            raise ValidationError(f"Run {run_id} has already been executed")

        orchestrator = run.orchestrator
        try:
            return orchestrator.run(run.brief)
        finally:
            self._finish(run_id, run, orchestrator.state)

    def _finish(self, run_id: str, run: _Run, state: PipelineState) -> None:
        with self._lock:
            if self._runs.get(run_id) is run:
                self.store.save_run(state)
            else:
                logger.info(f"Run {run_id} was deleted while running; artifacts not stored")
        run.summary = state.model_copy(update={"results": []})
        run.orchestrator = None
        if run.owns_client:
            run.client.close()

    def process(self, run_id: str) -> PipelineState:
        """Background entry point: failures are recorded on the run, not raised."""
        run = self._runs.get(run_id)
        try:
            return self.execute(run_id)
        except PipelineError as e:
            logger.info(f"Run {run_id} ended without a deliverable: {e.message}")
            return run.summary

    def cancel_run(self, run_id: str) -> bool:
        """Cancel a running run. The remote job in flight is left running."""
        run = self._runs.get(run_id)
        if run is None:
            return False
        run.cancel_event.set()
        logger.warning(f"Cancellation requested for run {run_id}")
        return True

    def delete_run(self, run_id: str) -> bool:
        """Delete all data for a run, cancelling it if it is still running."""
        with self._lock:
            run = self._runs.pop(run_id, None)
            stored = self.store.load_manifest(run_id) is not None
            self.store.delete_run(run_id)
        if run is not None:
            run.cancel_event.set()
        self.board.forget(run_id)
        return run is not None or stored
