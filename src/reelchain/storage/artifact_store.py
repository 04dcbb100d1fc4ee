"""Per-run artifact persistence for out-of-band assembly."""

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel, Field

from reelchain.config import get_settings
from reelchain.models.pipeline import PipelineState

logger = logging.getLogger(__name__)


class StoredSegment(BaseModel):
    """Files written for one segment."""

    index: int = Field(..., ge=0)
    job_id: str
    video_path: str
    frame_path: str | None = None
    frame_content_type: str | None = None


class RunManifest(BaseModel):
    """Index of everything written for a run."""

    run_id: str
    stage: str
    segments: list[StoredSegment] = Field(default_factory=list)
    final_path: str | None = None
    error: str | None = None


class ArtifactStore:
    """Writes segment clips, continuity frames and the deliverable of each run."""

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = Path(base_dir or get_settings().output_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def run_dir(self, run_id: str) -> Path:
        d = self.base_dir / run_id
        d.mkdir(parents=True, exist_ok=True)
        return d

    def segment_path(self, run_id: str, index: int) -> Path:
        return self.run_dir(run_id) / f"segment_{index + 1:02d}.mp4"

    def frame_path(self, run_id: str, index: int, extension: str = "jpg") -> Path:
        return self.run_dir(run_id) / f"segment_{index + 1:02d}_last.{extension}"

    def final_path(self, run_id: str) -> Path:
        return self.run_dir(run_id) / "final.mp4"

    def save_run(self, state: PipelineState) -> RunManifest:
        """Write every finished segment, plus the deliverable when the run is done."""
        run_id = state.run_id
        stored = []
        for result in state.results:
            video_path = self.segment_path(run_id, result.index)
            video_path.write_bytes(result.video)
            frame_path = None
            frame_type = None
            if result.continuity_frame is not None:
                frame = result.continuity_frame
                frame_path = self.frame_path(run_id, result.index, frame.extension)
                frame_path.write_bytes(frame.data)
                frame_type = frame.content_type
            stored.append(
                StoredSegment(
                    index=result.index,
                    job_id=result.job_id,
                    video_path=str(video_path),
                    frame_path=str(frame_path) if frame_path else None,
                    frame_content_type=frame_type,
                )
            )

        final_path = None
        if state.deliverable is not None:
            final_path = self.final_path(run_id)
            final_path.write_bytes(state.deliverable)

        manifest = RunManifest(
            run_id=run_id,
            stage=state.stage.value,
            segments=stored,
            final_path=str(final_path) if final_path else None,
            error=state.error,
        )
        (self.run_dir(run_id) / "manifest.json").write_text(manifest.model_dump_json(indent=2))
        logger.info(f"Stored {len(stored)} segment artifacts for run {run_id}")
        return manifest

    def load_manifest(self, run_id: str) -> RunManifest | None:
        path = self.base_dir / run_id / "manifest.json"
        if not path.exists():
            return None
        return RunManifest.model_validate_json(path.read_text())

    def delete_run(self, run_id: str) -> None:
        """Delete all stored artifacts of a run."""
        run_dir = self.base_dir / run_id
        if run_dir.exists():
            shutil.rmtree(run_dir, ignore_errors=True)
            logger.info(f"Deleted artifacts for run {run_id}")

    def list_runs(self) -> list[str]:
        """List all run IDs with stored artifacts."""
        return [d.name for d in self.base_dir.iterdir() if d.is_dir()]
