"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st

from reelchain.models.brief import CreativeBrief
from reelchain.models.job import GenerationJob, JobStatus

PROMPT_ALPHABET = "abcdefghijklmnopqrstuvwxyz ,.-"


@st.composite
def generate_brief(draw, max_segments=6):
    """Generate a random valid CreativeBrief."""
    words = draw(st.text(alphabet=PROMPT_ALPHABET, min_size=1, max_size=80))
    return CreativeBrief(
        prompt=f"scene {words}",
        seconds_per_segment=draw(st.sampled_from([4, 8, 12])),
        segment_count=draw(st.integers(min_value=1, max_value=max_segments)),
        size=draw(st.sampled_from(["1280x720", "1920x1080", "720x1280"])),
    )


@st.composite
def generate_descriptor(draw):
    """Generate one raw planner descriptor as a model might return it."""
    prompt = draw(st.text(min_size=1, max_size=60).filter(lambda s: s.strip()))
    descriptor = {"prompt": prompt}
    if draw(st.booleans()):
        descriptor["title"] = draw(st.text(max_size=30))
    if draw(st.booleans()):
        descriptor["seconds"] = draw(st.integers(min_value=-5, max_value=60))
    return descriptor


def generate_descriptors(min_size=0, max_size=10):
    return st.lists(generate_descriptor(), min_size=min_size, max_size=max_size)


@st.composite
def generate_job(draw, job_id="video_0"):
    """Generate a random GenerationJob snapshot for a fixed job."""
    status = draw(st.sampled_from(list(JobStatus)))
    progress = draw(st.one_of(st.none(), st.floats(min_value=0.0, max_value=100.0)))
    error = draw(st.one_of(st.none(), st.text(min_size=1, max_size=40)))
    return GenerationJob(
        id=job_id,
        status=status,
        progress=progress,
        error_message=error if status == JobStatus.FAILED else None,
    )


@st.composite
def generate_poll_script(draw, terminal=("completed",)):
    """Non-terminal polls followed by one terminal status."""
    pending = draw(
        st.lists(
            st.tuples(
                st.sampled_from(["queued", "in_progress"]),
                st.one_of(st.none(), st.floats(min_value=0.0, max_value=99.0)),
                st.none(),
            ),
            max_size=5,
        )
    )
    final = draw(st.sampled_from(terminal))
    reason = "content policy violation" if final == "failed" else None
    return [*pending, (final, 100.0 if final == "completed" else None, reason)]
