"""Creative brief data models."""

import re

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

from reelchain.models.errors import ValidationError

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*[xX×]\s*(\d+)\s*$")


class ReferenceImage(BaseModel):
    """A still image used to seed a generation job."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., min_length=1, repr=False)
    content_type: str = Field(default="image/jpeg", min_length=1)

    @property
    def extension(self) -> str:
        """File extension the service expects for this image."""
        return "png" if "png" in self.content_type.lower() else "jpg"

    @property
    def filename(self) -> str:
        return f"reference.{self.extension}"


class Resolution(BaseModel):
    """Target frame size of the generated clips."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)

    @classmethod
    def parse(cls, value: "str | Resolution") -> "Resolution":
        if isinstance(value, Resolution):
            return value
        match = _SIZE_PATTERN.match(str(value))
        if not match:
            raise ValueError(f"size must look like 1280x720, got {value!r}")
        return cls(width=int(match.group(1)), height=int(match.group(2)))

    @model_serializer
    def _serialize(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class CreativeBrief(BaseModel):
    """Immutable input of one run."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., min_length=1, description="Base prompt of the whole video")
    seconds_per_segment: int = Field(..., gt=0, description="Length of every clip in seconds")
    segment_count: int = Field(..., ge=1, le=20, description="Number of clips to generate")
    size: Resolution = Field(default_factory=lambda: Resolution(width=1280, height=720))
    model: str = Field(default="sora-2", min_length=1, description="Video generation model")
    planner_model: str = Field(default="gpt-4o", min_length=1, description="Planning model")
    reference_image: ReferenceImage | None = None

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must not be blank")
        return v.strip()

    @field_validator("size", mode="before")
    @classmethod
    def parse_size(cls, v):
        if isinstance(v, str):
            return Resolution.parse(v)
        return v

    @classmethod
    def from_input(cls, **fields) -> "CreativeBrief":
        """Build a brief, reporting bad fields as a reelchain ValidationError."""
        try:
            return cls(**fields)
        except pydantic.ValidationError as e:
            problems = [
                {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
                for err in e.errors()
            ]
            summary = "; ".join(f"{p['field']}: {p['error']}" for p in problems)
            raise ValidationError(f"Invalid brief: {summary}", details={"errors": problems})
