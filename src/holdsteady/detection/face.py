"""Face detector built on OpenCV's Haar cascades."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import cv2
import numpy as np

from holdsteady.detection.base import DetectionError, DetectionProvider, ProviderUnavailableError
from holdsteady.domain.models import BoundingBox, Frame

logger = logging.getLogger(__name__)

DEFAULT_CASCADE = "haarcascade_frontalface_default.xml"

# Searched in order when no cascade path is configured
CASCADE_DIRS = (
    getattr(getattr(cv2, "data", None), "haarcascades", ""),
    "/usr/share/opencv4/haarcascades",
    "/usr/local/share/opencv4/haarcascades",
    "/usr/share/opencv/haarcascades",
)


def default_cascade_path(name: str = DEFAULT_CASCADE) -> str:
    """Locate a bundled or system-installed Haar cascade.

    Returns the first existing candidate, or the first candidate when none
    exists so that loading reports a meaningful path.
    """
    candidates = [Path(d) / name for d in CASCADE_DIRS if d]
    for path in candidates:
        if path.exists():
            return str(path)
    return str(candidates[0]) if candidates else name


class HaarFaceDetector(DetectionProvider):
    """Detects the largest frontal face in a frame."""

    def __init__(
        self,
        cascade_path: str | None = None,
        scale_factor: float = 1.1,
        min_neighbors: int = 5,
        min_size: int = 60,
    ) -> None:
        super().__init__()
        self._cascade_path = cascade_path or default_cascade_path()
        self._scale_factor = scale_factor
        self._min_neighbors = min_neighbors
        self._min_size = min_size
        self._cascade: cv2.CascadeClassifier | None = None

    @property
    def subject(self) -> str:
        return "face"

    async def _load(self) -> None:
        if not Path(self._cascade_path).exists():
            raise ProviderUnavailableError(f"Cascade file not found: {self._cascade_path}")
        loop = asyncio.get_running_loop()
        cascade = await loop.run_in_executor(None, cv2.CascadeClassifier, self._cascade_path)
        if cascade.empty():
            raise ProviderUnavailableError(f"Cascade file is empty or invalid: {self._cascade_path}")
        self._cascade = cascade

    async def detect(self, frame: Frame) -> BoundingBox | None:
        if self._cascade is None:
            raise DetectionError("Face detector is not loaded")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._detect_sync, frame.image)

    def _detect_sync(self, image: np.ndarray) -> BoundingBox | None:
        try:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            faces = self._cascade.detectMultiScale(
                gray,
                scaleFactor=self._scale_factor,
                minNeighbors=self._min_neighbors,
                minSize=(self._min_size, self._min_size),
            )
        except cv2.error as e:
            raise DetectionError(f"Face detection failed: {e}") from e

        if len(faces) == 0:
            return None
        # Haar gives no scores; the largest face is the best candidate.
        x, y, w, h = max(faces, key=lambda f: int(f[2]) * int(f[3]))
        return BoundingBox(x=float(x), y=float(y), width=float(w), height=float(h))

    async def close(self) -> None:
        self._cascade = None
        await super().close()
