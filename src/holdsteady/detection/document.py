"""Document detector based on edge contours.

Finds the largest roughly quadrilateral outline in the frame and reports
its bounding rectangle. No perspective correction is attempted; the
capture is a plain rectangular crop.
"""

from __future__ import annotations

import asyncio
import logging

import cv2
import numpy as np

from holdsteady.detection.base import DetectionError, DetectionProvider
from holdsteady.domain.models import BoundingBox, Frame

logger = logging.getLogger(__name__)


class ContourDocumentDetector(DetectionProvider):
    """Detects a document as the largest four-cornered contour."""

    def __init__(
        self,
        canny_low: int = 50,
        canny_high: int = 150,
        candidates: int = 5,
    ) -> None:
        super().__init__()
        self._canny_low = canny_low
        self._canny_high = canny_high
        self._candidates = candidates
        self._kernel: np.ndarray | None = None

    @property
    def subject(self) -> str:
        return "document"

    async def _load(self) -> None:
        self._kernel = np.ones((5, 5), np.uint8)

    async def detect(self, frame: Frame) -> BoundingBox | None:
        if self._kernel is None:
            raise DetectionError("Document detector is not loaded")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._detect_sync, frame.image)

    def _detect_sync(self, image: np.ndarray) -> BoundingBox | None:
        try:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            blurred = cv2.GaussianBlur(gray, (5, 5), 0)
            edges = cv2.Canny(blurred, self._canny_low, self._canny_high)
            # Close small gaps in the outline
            dilated = cv2.dilate(edges, self._kernel, iterations=2)
            contours, _ = cv2.findContours(dilated, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        except cv2.error as e:
            raise DetectionError(f"Document detection failed: {e}") from e

        if not contours:
            return None

        contours = sorted(contours, key=cv2.contourArea, reverse=True)
        for contour in contours[: self._candidates]:
            peri = cv2.arcLength(contour, True)
            approx = cv2.approxPolyDP(contour, 0.02 * peri, True)
            if len(approx) == 4:
                x, y, w, h = cv2.boundingRect(approx)
                return BoundingBox(x=float(x), y=float(y), width=float(w), height=float(h))
        return None

    async def close(self) -> None:
        self._kernel = None
        await super().close()
