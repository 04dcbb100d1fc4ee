"""Planner reply parsing."""

import json
import re

from reelchain.models.errors import MalformedResponse

_FENCE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def extract_json_object(response_text: str) -> dict:
    """Return the first top-level JSON object in a possibly prose-wrapped reply."""
    text = (response_text or "").strip()

    candidates = [text]
    fenced = _FENCE.search(text)
    if fenced:
        candidates.insert(0, fenced.group(1).strip())

    decoder = json.JSONDecoder()
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            return data

        # Scan for the first '{' that opens a complete object
        pos = candidate.find("{")
        while pos != -1:
            try:
                data, _ = decoder.raw_decode(candidate, pos)
            except json.JSONDecodeError:
                pos = candidate.find("{", pos + 1)
                continue
            return data

    raise MalformedResponse(
        "Planner did not return a JSON object",
        details={"response_preview": text[:200]},
    )


def extract_segment_descriptors(response_text: str) -> list[dict]:
    """Return the raw ``segments`` list of a planner reply."""
    data = extract_json_object(response_text)
    segments = data.get("segments")
    if not isinstance(segments, list):
        raise MalformedResponse(
            "Planner reply has no 'segments' list",
            details={"keys": sorted(data.keys())},
        )
    descriptors = []
    for i, entry in enumerate(segments):
        if not isinstance(entry, dict):
            raise MalformedResponse(
                f"Planner segment {i + 1} is not an object",
                details={"entry_preview": str(entry)[:200]},
            )
        descriptors.append(entry)
    return descriptors
