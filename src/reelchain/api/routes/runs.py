"""Run endpoints: start, status, cancel."""

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile

from reelchain.api.dependencies import get_app_settings, get_pipeline_manager
from reelchain.config import Settings
from reelchain.extractors.validators import validate_reference_upload
from reelchain.models.brief import CreativeBrief
from reelchain.models.errors import ValidationError
from reelchain.pipeline.manager import PipelineManager

router = APIRouter(prefix="/api/v1", tags=["runs"])


@router.post("/runs")
async def start_run(
    background_tasks: BackgroundTasks,
    prompt: str = Form(...),
    segment_count: int = Form(2),
    seconds_per_segment: int | None = Form(None),
    size: str | None = Form(None),
    model: str | None = Form(None),
    planner_model: str | None = Form(None),
    api_key: str | None = Form(None),
    reference_image: UploadFile | None = File(None),
    manager: PipelineManager = Depends(get_pipeline_manager),
    settings: Settings = Depends(get_app_settings),
):
    """Validate a brief and start generating it in the background."""
    reference = None
    if reference_image is not None and reference_image.filename:
        data = await reference_image.read()
        reference = validate_reference_upload(data, reference_image.content_type or "")

    brief = CreativeBrief.from_input(
        prompt=prompt,
        segment_count=segment_count,
        seconds_per_segment=seconds_per_segment or settings.default_seconds_per_segment,
        size=size or settings.default_size,
        model=model or settings.video_model,
        planner_model=planner_model or settings.planner_model,
        reference_image=reference,
    )
    status = manager.create_run(brief, api_key=api_key or None)
    background_tasks.add_task(manager.process, status.run_id)

    return {
        "run_id": status.run_id,
        "status": "processing",
        "segment_count": brief.segment_count,
        "message": "Run started",
    }


@router.get("/runs")
async def list_runs(manager: PipelineManager = Depends(get_pipeline_manager)):
    """List runs in memory or with stored artifacts."""
    return {"runs": manager.list_runs()}


@router.get("/runs/{run_id}")
async def get_run_status(
    run_id: str,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Get per-segment and run-level progress."""
    status = manager.get_run(run_id)
    if not status:
        raise ValidationError(f"Run {run_id} not found")

    body = status.model_dump(mode="json")
    state = manager.get_state(run_id)
    if state is not None:
        body["failed_stage"] = state.failed_stage
        body["failed_segment"] = state.failed_segment
        body["started_at"] = state.started_at.isoformat() if state.started_at else None
        body["completed_at"] = state.completed_at.isoformat() if state.completed_at else None
    return body


@router.delete("/runs/{run_id}")
async def cancel_run(
    run_id: str,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Abandon a run. The job in flight on the remote service is not cancelled."""
    cancelled = manager.cancel_run(run_id)
    if not cancelled:
        raise ValidationError(f"Run {run_id} not found")
    return {"run_id": run_id, "status": "cancelling"}


@router.delete("/runs/{run_id}/artifacts")
async def delete_run(
    run_id: str,
    manager: PipelineManager = Depends(get_pipeline_manager),
):
    """Cancel a run if needed and delete everything stored for it."""
    if not manager.delete_run(run_id):
        raise ValidationError(f"Run {run_id} not found")
    return {"run_id": run_id, "status": "deleted"}
