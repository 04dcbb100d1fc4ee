"""Prompt templates for segment planning."""

import json

SYSTEM_PROMPT = (
    "You are a senior prompt director for a text-to-video model. You receive "
    "a base prompt describing the whole video, a fixed clip length in seconds "
    "and a number of clips N. Your job is to write N shot prompts that play "
    "back to back as one continuous video.\n"
    "\n"
    "Rules:\n"
    "1. Clip 1 starts fresh from the base prompt\n"
    "2. Clip k (k>1) must begin exactly at the final frame of clip k-1\n"
    "3. Keep visual style, tone, lighting and subject identity consistent "
    "unless the base prompt asks for a change\n"
    "4. Every clip uses the given length; 'seconds' must equal it\n"
    "5. Each prompt carries a short 'Context' section for the model "
    "(what the previous clip ended on) followed by a 'Prompt:' line for the shot\n"
    "6. Be specific and cinematic: camera, lighting, motion, subject focus\n"
    "7. No real people, public figures, copyrighted characters or logos; keep "
    "content suitable for general audiences\n"
    "\n"
    "Respond with ONLY valid JSON matching the provided schema. "
    "No Markdown, no backticks."
)


def build_json_schema() -> dict:
    """Build the JSON schema for expected planner output."""
    return {
        "type": "object",
        "required": ["segments"],
        "properties": {
            "segments": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["title", "seconds", "prompt"],
                    "properties": {
                        "title": {"type": "string"},
                        "seconds": {"type": "integer", "minimum": 1},
                        "prompt": {"type": "string"},
                    },
                },
            },
        },
    }


def build_planning_prompt(base_prompt: str, seconds_per_segment: int, segment_count: int) -> str:
    """Build the user instruction for one brief."""
    return f"""BASE PROMPT: {base_prompt}

GENERATION LENGTH (seconds): {seconds_per_segment}
TOTAL GENERATIONS: {segment_count}

## Output Schema
```json
{json.dumps(build_json_schema(), indent=2)}
```

Return exactly {segment_count} segments."""
