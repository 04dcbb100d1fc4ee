"""Shared test fixtures, scripted service fakes and test media generators."""

import tempfile
from pathlib import Path
from types import SimpleNamespace

import cv2
import numpy as np
import pytest

from reelchain.models.brief import CreativeBrief, ReferenceImage
from reelchain.models.errors import ExtractionError
from reelchain.models.job import GenerationJob, JobStatus


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def sample_brief():
    """Three 8-second segments, no initial reference."""
    return CreativeBrief(
        prompt="Gameplay footage of a car driving through a futuristic city",
        seconds_per_segment=8,
        segment_count=3,
        size="1280x720",
    )


@pytest.fixture
def sample_reference():
    return ReferenceImage(data=b"\x89PNG initial reference", content_type="image/png")


def make_descriptors(n: int, seconds: int = 8) -> list[dict]:
    """Raw planner descriptors as the planning model would return them."""
    return [
        {"title": f"Generation {i + 1}", "seconds": seconds, "prompt": f"Shot {i + 1} of the city"}
        for i in range(n)
    ]


class FakeServiceClient:
    """Scripted stand-in for RemoteServiceClient.

    ``poll_scripts`` maps a submit ordinal (0 for the first submitted job) to
    the (status, progress, error_message) tuples returned by successive
    polls. Once a script runs out, its last entry repeats.
    """

    DEFAULT_SCRIPT = [("in_progress", 40.0, None), ("completed", 100.0, None)]

    def __init__(
        self,
        descriptors: list[dict] | None = None,
        poll_scripts: dict[int, list[tuple]] | None = None,
        plan_error: Exception | None = None,
        submit_errors: dict[int, Exception] | None = None,
        poll_errors: dict[int, Exception] | None = None,
        fetch_errors: dict[int, Exception] | None = None,
    ):
        self.descriptors = descriptors if descriptors is not None else make_descriptors(3)
        self.poll_scripts = poll_scripts or {}
        self.plan_error = plan_error
        self.submit_errors = submit_errors or {}
        self.poll_errors = poll_errors or {}
        self.fetch_errors = fetch_errors or {}
        self.plan_calls: list[dict] = []
        self.submit_calls: list[dict] = []
        self.poll_calls: list[str] = []
        self.fetch_calls: list[str] = []
        self._poll_pos: dict[str, int] = {}
        self.closed = False

    def request_plan(self, model: str, system_prompt: str, user_prompt: str) -> list[dict]:
        self.plan_calls.append(
            {"model": model, "system_prompt": system_prompt, "user_prompt": user_prompt}
        )
        if self.plan_error:
            raise self.plan_error
        return [dict(d) for d in self.descriptors]

    def submit(self, prompt, size, seconds, model, reference=None) -> GenerationJob:
        ordinal = len(self.submit_calls)
        self.submit_calls.append(
            {"prompt": prompt, "size": str(size), "seconds": seconds, "model": model,
             "reference": reference}
        )
        if ordinal in self.submit_errors:
            raise self.submit_errors[ordinal]
        return GenerationJob(id=f"video_{ordinal}", status=JobStatus.QUEUED)

    def poll(self, job_id: str) -> GenerationJob:
        self.poll_calls.append(job_id)
        ordinal = int(job_id.split("_")[1])
        if ordinal in self.poll_errors:
            raise self.poll_errors[ordinal]
        script = self.poll_scripts.get(ordinal, self.DEFAULT_SCRIPT)
        pos = self._poll_pos.get(job_id, 0)
        self._poll_pos[job_id] = pos + 1
        status, progress, error = script[min(pos, len(script) - 1)]
        return GenerationJob(
            id=job_id, status=JobStatus(status), progress=progress, error_message=error
        )

    def fetch(self, job_id: str, variant: str = "video") -> bytes:
        self.fetch_calls.append(job_id)
        ordinal = int(job_id.split("_")[1])
        if ordinal in self.fetch_errors:
            raise self.fetch_errors[ordinal]
        return f"mp4:{job_id}".encode()

    def close(self) -> None:
        self.closed = True


class FakeExtractor:
    """Derives a deterministic 'frame' from the clip bytes."""

    def __init__(self, fail_on: set[bytes] | None = None):
        self.calls: list[bytes] = []
        self.fail_on = fail_on or set()

    def extract_final_frame(self, video: bytes) -> ReferenceImage:
        self.calls.append(video)
        if video in self.fail_on:
            raise ExtractionError("Could not render the final frame")
        return ReferenceImage(data=b"last-frame:" + video, content_type="image/jpeg")


class FakeLLM:
    """Mimics ``OpenAI().chat.completions.create`` with a canned reply."""

    def __init__(self, content: str | None = None, error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_client():
    return FakeServiceClient()


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


def no_sleep(seconds: float) -> None:
    """Poll delay replacement for tests."""


def generate_test_video(
    path: Path,
    frames: int = 48,
    fps: float = 24.0,
    width: int = 160,
    height: int = 120,
    last_color: tuple[int, int, int] = (0, 0, 255),
    tail_frames: int = 6,
) -> Path:
    """Generate a small MP4 whose final frames are a solid BGR colour."""
    fourcc = cv2.VideoWriter_fourcc(*"mp4v")
    writer = cv2.VideoWriter(str(path), fourcc, fps, (width, height))
    for i in range(frames):
        if i >= frames - tail_frames:
            frame = np.full((height, width, 3), last_color, dtype=np.uint8)
        else:
            frame = np.zeros((height, width, 3), dtype=np.uint8)
            x = int((i / frames) * (width - 40))
            cv2.rectangle(frame, (x, 30), (x + 40, 90), (0, 255, 0), -1)
        writer.write(frame)
    writer.release()
    return path


def generate_test_png(width: int = 64, height: int = 48, color=(255, 128, 0)) -> bytes:
    """Encode a solid-colour PNG in memory."""
    image = np.full((height, width, 3), color, dtype=np.uint8)
    ok, buf = cv2.imencode(".png", image)
    assert ok
    return buf.tobytes()
