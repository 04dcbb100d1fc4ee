"""Tests for all Pydantic data models."""

import pytest

from reelchain.models.brief import CreativeBrief, ReferenceImage, Resolution
from reelchain.models.errors import (
    ErrorResponse,
    GenerationFailedError,
    MalformedResponse,
    PipelineError,
    ReelchainError,
    ServiceError,
    ValidationError,
)
from reelchain.models.job import GenerationJob, JobStatus
from reelchain.models.pipeline import (
    PipelineState,
    RunEvent,
    RunStage,
    RunStatus,
    SegmentEvent,
    SegmentResult,
    SegmentStatus,
)
from reelchain.models.plan import SegmentPlan

# --- CreativeBrief ---


class TestCreativeBrief:
    def test_valid_construction(self, sample_brief):
        assert sample_brief.segment_count == 3
        assert sample_brief.seconds_per_segment == 8
        assert sample_brief.size == Resolution(width=1280, height=720)
        assert sample_brief.model == "sora-2"
        assert sample_brief.reference_image is None

    def test_size_string_parsed(self):
        brief = CreativeBrief(prompt="x", seconds_per_segment=4, segment_count=1, size="720x1280")
        assert brief.size.width == 720
        assert brief.size.height == 1280
        assert str(brief.size) == "720x1280"

    def test_frozen(self, sample_brief):
        with pytest.raises(Exception):
            sample_brief.segment_count = 5

    @pytest.mark.parametrize("count", [0, 21, -1])
    def test_segment_count_bounds(self, count):
        with pytest.raises(Exception):
            CreativeBrief(prompt="x", seconds_per_segment=8, segment_count=count)

    def test_seconds_must_be_positive(self):
        with pytest.raises(Exception):
            CreativeBrief(prompt="x", seconds_per_segment=0, segment_count=2)

    def test_blank_prompt_rejected(self):
        with pytest.raises(Exception):
            CreativeBrief(prompt="   ", seconds_per_segment=8, segment_count=2)

    def test_from_input_raises_project_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            CreativeBrief.from_input(prompt="", seconds_per_segment=8, segment_count=99)
        fields = {e["field"] for e in exc_info.value.details["errors"]}
        assert "prompt" in fields
        assert "segment_count" in fields
        assert exc_info.value.component == "validation"

    def test_from_input_bad_size(self):
        with pytest.raises(ValidationError, match="size"):
            CreativeBrief.from_input(
                prompt="x", seconds_per_segment=8, segment_count=2, size="widescreen"
            )

    def test_serialization_roundtrip(self, sample_brief):
        restored = CreativeBrief.model_validate_json(sample_brief.model_dump_json())
        assert restored == sample_brief


class TestReferenceImage:
    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("image/png", "reference.png"),
            ("IMAGE/PNG", "reference.png"),
            ("image/jpeg", "reference.jpg"),
            ("image/webp", "reference.jpg"),
        ],
    )
    def test_filename_by_content_type(self, content_type, expected):
        image = ReferenceImage(data=b"x", content_type=content_type)
        assert image.filename == expected

    def test_empty_data_rejected(self):
        with pytest.raises(Exception):
            ReferenceImage(data=b"", content_type="image/png")


# --- SegmentPlan ---


class TestSegmentPlan:
    def test_valid_construction(self):
        plan = SegmentPlan(index=0, title="Generation 1", prompt="Opening shot", seconds=8)
        assert plan.index == 0

    def test_negative_index(self):
        with pytest.raises(Exception):
            SegmentPlan(index=-1, title="t", prompt="p", seconds=8)


# --- GenerationJob ---


class TestGenerationJob:
    def test_from_payload(self):
        job = GenerationJob.from_payload({"id": "video_1", "status": "in_progress", "progress": 37})
        assert job.id == "video_1"
        assert job.status == JobStatus.IN_PROGRESS
        assert job.progress == 37.0
        assert job.error_message is None

    def test_from_payload_failed_with_reason(self):
        job = GenerationJob.from_payload(
            {"id": "v", "status": "failed", "error": {"message": "content policy violation"}}
        )
        assert job.status == JobStatus.FAILED
        assert job.error_message == "content policy violation"

    def test_progress_clamped(self):
        job = GenerationJob.from_payload({"id": "v", "status": "in_progress", "progress": 140})
        assert job.progress == 100.0

    @pytest.mark.parametrize(
        "payload",
        [
            {"status": "queued"},
            {"id": "v"},
            {"id": "v", "status": "exploded"},
            ["not", "an", "object"],
        ],
    )
    def test_malformed_payload(self, payload):
        with pytest.raises(MalformedResponse):
            GenerationJob.from_payload(payload)

    def test_merge_advances(self):
        queued = GenerationJob(id="v", status=JobStatus.QUEUED)
        running = GenerationJob(id="v", status=JobStatus.IN_PROGRESS, progress=10)
        assert queued.merge(running) == running

    def test_merge_ignores_regression(self):
        running = GenerationJob(id="v", status=JobStatus.IN_PROGRESS, progress=50)
        queued = GenerationJob(id="v", status=JobStatus.QUEUED)
        assert running.merge(queued) == running

    def test_merge_terminal_is_sticky(self):
        done = GenerationJob(id="v", status=JobStatus.COMPLETED, progress=100)
        failed = GenerationJob(id="v", status=JobStatus.FAILED, error_message="late")
        assert done.merge(failed) == done

    def test_merge_rejects_other_job(self):
        a = GenerationJob(id="a", status=JobStatus.QUEUED)
        b = GenerationJob(id="b", status=JobStatus.QUEUED)
        with pytest.raises(MalformedResponse):
            a.merge(b)


# --- PipelineState / RunStatus ---


class TestPipelineState:
    def test_defaults(self):
        state = PipelineState(run_id="r1")
        assert state.stage == RunStage.PLANNING
        assert not state.done
        assert state.deliverable is None

    def test_deliverable_is_last_clip(self):
        state = PipelineState(
            run_id="r1",
            stage=RunStage.DONE,
            results=[
                SegmentResult(index=0, job_id="a", video=b"first"),
                SegmentResult(index=1, job_id="b", video=b"second"),
            ],
        )
        assert state.done
        assert state.deliverable == b"second"

    def test_no_deliverable_when_failed(self):
        state = PipelineState(
            run_id="r1",
            stage=RunStage.FAILED,
            results=[SegmentResult(index=0, job_id="a", video=b"first")],
        )
        assert state.done
        assert state.deliverable is None

    def test_results_excluded_from_dump(self):
        state = PipelineState(
            run_id="r1", results=[SegmentResult(index=0, job_id="a", video=b"x")]
        )
        assert "results" not in state.model_dump()


class TestRunStatus:
    def test_apply_segment_and_run_events(self):
        status = RunStatus(run_id="r1")
        status = status.apply(
            SegmentEvent(run_id="r1", index=1, title="B", status=SegmentStatus.GENERATING, progress=5)
        )
        assert [s.index for s in status.segments] == [0, 1]
        assert status.segments[1].status == SegmentStatus.GENERATING

        status = status.apply(RunEvent(run_id="r1", stage=RunStage.FAILED, done=True, error="boom"))
        assert status.done
        assert status.error == "boom"
        assert status.segments[1].progress == 5

    def test_apply_returns_new_object(self):
        status = RunStatus(run_id="r1")
        updated = status.apply(RunEvent(run_id="r1", stage=RunStage.GENERATING))
        assert status.stage == RunStage.PLANNING
        assert updated.stage == RunStage.GENERATING


# --- Errors ---


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(ValidationError, ReelchainError)
        assert issubclass(ServiceError, ReelchainError)
        assert issubclass(PipelineError, ReelchainError)

    def test_service_error_carries_status_and_body(self):
        err = ServiceError("Create video failed", status_code=400, body='{"error":"bad"}')
        assert err.status_code == 400
        assert err.details["body"] == '{"error":"bad"}'

    def test_pipeline_error_message(self):
        cause = GenerationFailedError("video_1", "content policy violation")
        err = PipelineError("poll", cause, segment_index=1)
        assert err.message == "poll failed at segment 2: content policy violation"
        assert err.details["job_id"] == "video_1"
        assert err.cause is cause

    def test_pipeline_error_without_segment(self):
        err = PipelineError("planning", MalformedResponse("no JSON"))
        assert err.message == "planning failed: no JSON"

    def test_error_response_from_exception(self):
        err = ValidationError("bad brief")
        resp = ErrorResponse.from_exception(err, guidance="fix it")
        assert resp.error_type == "ValidationError"
        assert resp.component == "validation"
        assert resp.actionable_guidance == "fix it"
