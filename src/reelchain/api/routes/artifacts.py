"""Artifact download endpoints."""

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from reelchain.api.dependencies import get_pipeline_manager
from reelchain.models.errors import ValidationError
from reelchain.pipeline.manager import PipelineManager
from reelchain.storage.artifact_store import RunManifest, StoredSegment

router = APIRouter(prefix="/api/v1", tags=["artifacts"])


def _manifest(manager: PipelineManager, run_id: str) -> RunManifest:
    manifest = manager.get_manifest(run_id)
    if manifest is None:
        raise ValidationError(f"No artifacts stored for run {run_id}")
    return manifest


def _segment(manifest: RunManifest, index: int) -> StoredSegment:
    for seg in manifest.segments:
        if seg.index == index:
            return seg
    raise ValidationError(f"Segment {index} of run {manifest.run_id} has no stored artifacts")


def _file(path: str | None, media_type: str, filename: str) -> FileResponse:
    if not path or not Path(path).exists():
        raise ValidationError("Output file not found")
    return FileResponse(path=path, media_type=media_type, filename=filename)


@router.get("/runs/{run_id}/video")
async def download_final_video(
    run_id: str,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Download the run's deliverable (the final segment's clip)."""
    manifest = _manifest(manager, run_id)
    if not manifest.final_path:
        raise ValidationError(f"Run is not complete (current stage: {manifest.stage})")
    return _file(manifest.final_path, "video/mp4", f"reelchain_{run_id}.mp4")


@router.get("/runs/{run_id}/segments/{index}/video")
async def download_segment_video(
    run_id: str,
    index: int,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Download one segment's clip."""
    seg = _segment(_manifest(manager, run_id), index)
    return _file(seg.video_path, "video/mp4", f"reelchain_{run_id}_segment_{index + 1:02d}.mp4")


@router.get("/runs/{run_id}/segments/{index}/frame")
async def download_segment_frame(
    run_id: str,
    index: int,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Download the continuity frame extracted from one segment."""
    seg = _segment(_manifest(manager, run_id), index)
    if not seg.frame_path:
        raise ValidationError(f"Segment {index} has no continuity frame")
    return _file(seg.frame_path, seg.frame_content_type or "image/jpeg", Path(seg.frame_path).name)
