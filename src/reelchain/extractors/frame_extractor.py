"""Continuity frame extraction using OpenCV."""

import logging
import tempfile
from pathlib import Path

import cv2
import numpy as np

from reelchain.models.brief import ReferenceImage
from reelchain.models.errors import ExtractionError

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {"jpg": "image/jpeg", "png": "image/png"}


class ContinuityExtractor:
    """Renders the final frame of a finished clip as a still image."""

    def __init__(self, offset_seconds: float = 0.1, image_format: str = "jpg", jpeg_quality: int = 95):
        fmt = image_format.lower().lstrip(".")
        if fmt == "jpeg":
            fmt = "jpg"
        if fmt not in _CONTENT_TYPES:
            raise ValueError(f"Unsupported frame format: {image_format}")
        self.offset_seconds = offset_seconds
        self.image_format = fmt
        self.jpeg_quality = jpeg_quality

    def extract_final_frame(self, video: bytes) -> ReferenceImage:
        """Seek to (duration - offset), read that frame and encode it."""
        if not video:
            raise ExtractionError("Cannot extract a frame from an empty video")

        # VideoCapture only reads from a path
        with tempfile.TemporaryDirectory(prefix="reelchain-") as tmp:
            path = Path(tmp) / "segment.mp4"
            path.write_bytes(video)
            frame = self._read_final_frame(path)

        return self.encode(frame)

    def _read_final_frame(self, path: Path) -> np.ndarray:
        cap = cv2.VideoCapture(str(path))
        if not cap.isOpened():
            raise ExtractionError("Cannot decode video container")

        try:
            fps = cap.get(cv2.CAP_PROP_FPS)
            frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
            width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            if not fps or fps <= 0 or frame_count <= 0:
                raise ExtractionError(
                    "Video duration is unavailable",
                    details={"fps": fps, "frame_count": frame_count},
                )
            if width <= 0 or height <= 0:
                raise ExtractionError(
                    "Video dimensions are unavailable",
                    details={"width": width, "height": height},
                )

            duration = frame_count / fps
            target = max(0.0, duration - self.offset_seconds)
            cap.set(cv2.CAP_PROP_POS_MSEC, target * 1000.0)
            ok, frame = cap.read()

            if not ok or frame is None:
                # Some containers seek by frame index only
                cap.set(cv2.CAP_PROP_POS_FRAMES, frame_count - 1)
                ok, frame = cap.read()

            if not ok or frame is None:
                raise ExtractionError(
                    "Could not render the final frame",
                    details={"duration": round(duration, 4), "seek_seconds": round(target, 4)},
                )
            logger.debug(f"Read final frame at {target:.3f}s of {duration:.3f}s ({width}x{height})")
            return frame
        finally:
            cap.release()

    def encode(self, frame: np.ndarray) -> ReferenceImage:
        """Compress a BGR frame into the configured still format."""
        params = []
        if self.image_format == "jpg":
            params = [cv2.IMWRITE_JPEG_QUALITY, int(self.jpeg_quality)]
        ok, buf = cv2.imencode(f".{self.image_format}", frame, params)
        if not ok:
            raise ExtractionError(f"Failed to encode frame as {self.image_format}")
        return ReferenceImage(data=buf.tobytes(), content_type=_CONTENT_TYPES[self.image_format])
