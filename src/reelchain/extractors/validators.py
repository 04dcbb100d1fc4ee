"""Reference image format, size, and integrity validation."""

import cv2
import numpy as np

from reelchain.config import get_settings
from reelchain.models.brief import ReferenceImage
from reelchain.models.errors import ValidationError


def validate_image_format(content_type: str, allowed_formats: list[str]) -> None:
    """Validate that the declared MIME type names an allowed image format."""
    ctype = (content_type or "").lower()
    if not ctype.startswith("image/"):
        raise ValidationError(
            f"Unsupported content type: {content_type!r}. Expected an image",
            details={"content_type": content_type},
        )
    subtype = ctype.split("/", 1)[1].split(";", 1)[0].strip()
    if subtype == "jpg":
        subtype = "jpeg"
    if subtype not in allowed_formats:
        raise ValidationError(
            f"Unsupported image format: {subtype}. Allowed: {allowed_formats}",
            details={"format": subtype, "allowed": allowed_formats},
        )


def validate_image_size(data: bytes, max_size_mb: int | None = None) -> None:
    """Validate that the image is non-empty and within limits."""
    if not data:
        raise ValidationError("Reference image is empty")
    max_mb = max_size_mb or get_settings().reference_max_size_mb
    size_mb = len(data) / (1024 * 1024)
    if size_mb > max_mb:
        raise ValidationError(
            f"Reference image too large: {size_mb:.1f}MB exceeds {max_mb}MB limit",
            details={"size_mb": size_mb, "max_mb": max_mb},
        )


def validate_image_integrity(data: bytes) -> tuple[int, int]:
    """Decode the image and return its (width, height)."""
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise ValidationError(
            "Reference image appears to be corrupted or unreadable",
            details={"size_bytes": len(data)},
        )
    height, width = image.shape[:2]
    return width, height


def validate_reference_upload(data: bytes, content_type: str) -> ReferenceImage:
    """Full validation for an initial reference image."""
    settings = get_settings()
    validate_image_format(content_type, settings.allowed_reference_types)
    validate_image_size(data, settings.reference_max_size_mb)
    validate_image_integrity(data)
    return ReferenceImage(data=data, content_type=content_type)
