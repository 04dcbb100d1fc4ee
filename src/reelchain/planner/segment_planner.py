"""Segment planner: expands a creative brief into ordered per-clip prompts."""

import logging
from typing import Protocol

from reelchain.models.brief import CreativeBrief
from reelchain.models.errors import MalformedResponse, ValidationError
from reelchain.models.plan import SegmentPlan
from reelchain.planner.prompts import SYSTEM_PROMPT, build_planning_prompt

logger = logging.getLogger(__name__)


class PlanningClient(Protocol):
    def request_plan(self, model: str, system_prompt: str, user_prompt: str) -> list[dict]: ...


class SegmentPlanner:
    """Plans the clips of a run with one call to the planning model."""

    def __init__(self, client: PlanningClient, allow_short_plan: bool = False):
        self.client = client
        self.allow_short_plan = allow_short_plan

    def plan(self, brief: CreativeBrief) -> list[SegmentPlan]:
        """Return exactly ``brief.segment_count`` plans, in the planner's order."""
        logger.info(
            f"Planning {brief.segment_count} segments of {brief.seconds_per_segment}s "
            f"with {brief.planner_model}"
        )
        prompt = build_planning_prompt(
            base_prompt=brief.prompt,
            seconds_per_segment=brief.seconds_per_segment,
            segment_count=brief.segment_count,
        )
        descriptors = self.client.request_plan(brief.planner_model, SYSTEM_PROMPT, prompt)
        plans = self.normalize(descriptors, brief)
        logger.info(f"Planned {len(plans)} segments: {[p.title for p in plans]}")
        return plans

    def normalize(self, descriptors: list[dict], brief: CreativeBrief) -> list[SegmentPlan]:
        """Clamp, coerce and validate raw planner descriptors.

        Over-long plans are truncated in order. The planner's proposed
        durations are advisory and always replaced by the brief's.
        """
        if len(descriptors) > brief.segment_count:
            logger.warning(
                f"Planner returned {len(descriptors)} segments, keeping the first {brief.segment_count}"
            )
            descriptors = descriptors[: brief.segment_count]

        if len(descriptors) < brief.segment_count:
            if not self.allow_short_plan:
                raise ValidationError(
                    f"Planner returned {len(descriptors)} segments, "
                    f"{brief.segment_count} were requested",
                    details={"returned": len(descriptors), "requested": brief.segment_count},
                )
            logger.warning(
                f"Planner returned {len(descriptors)} of {brief.segment_count} segments; continuing"
            )
        if not descriptors:
            raise MalformedResponse("Planner returned no segments")

        plans = []
        for i, entry in enumerate(descriptors):
            prompt = entry.get("prompt")
            if not isinstance(prompt, str) or not prompt.strip():
                raise MalformedResponse(
                    f"Planner segment {i + 1} has no prompt",
                    details={"index": i, "keys": sorted(entry.keys())},
                )
            title = entry.get("title")
            if not isinstance(title, str) or not title.strip():
                title = f"Segment {i + 1}"
            plans.append(
                SegmentPlan(
                    index=i,
                    title=title.strip(),
                    prompt=prompt.strip(),
                    seconds=brief.seconds_per_segment,
                )
            )
        return plans
