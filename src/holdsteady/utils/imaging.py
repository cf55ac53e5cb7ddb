"""Image processing utilities for holdsteady.

Shared image encoding and drawing functions used by the capture
emitter, the sinks, and the CLI preview.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

from holdsteady.domain.models import BoundingBox, SessionStatus, StatusKind

logger = logging.getLogger(__name__)

# BGR
_BOX_COLOR = (94, 197, 34)
_STATUS_COLORS = {
    StatusKind.STABILIZING: (94, 197, 34),
    StatusKind.HOLD_STEADY: (11, 158, 245),
    StatusKind.UNAVAILABLE: (68, 68, 239),
    StatusKind.CAMERA_ERROR: (68, 68, 239),
}


def encode_jpeg(image: np.ndarray, quality: float = 0.9) -> bytes:
    """Encode a BGR image as JPEG.

    Args:
        image: BGR numpy array (OpenCV format).
        quality: Encoder quality in (0, 1], mapped to OpenCV's 1-100 scale.
    """
    level = max(1, min(100, round(quality * 100)))
    success, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, level])
    if not success:
        raise ValueError("Failed to encode image to JPEG")
    return buffer.tobytes()


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes back into a BGR array."""
    array = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(array, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Failed to decode image bytes")
    return image


def draw_overlay(
    image: np.ndarray,
    box: BoundingBox | None,
    status: SessionStatus | None = None,
) -> np.ndarray:
    """Draw the accepted box and status text on a copy of the frame.

    The returned image is for display only; captures are always cut from
    the undecorated frame.
    """
    canvas = image.copy()
    if box is not None:
        x1, y1 = int(round(box.x)), int(round(box.y))
        x2, y2 = int(round(box.x + box.width)), int(round(box.y + box.height))
        cv2.rectangle(canvas, (x1, y1), (x2, y2), _BOX_COLOR, 4)

    if status is not None:
        color = _STATUS_COLORS.get(status.kind, (255, 255, 255))
        (tw, th), baseline = cv2.getTextSize(
            status.message, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2
        )
        h = canvas.shape[0]
        cv2.rectangle(
            canvas, (10, h - th - baseline - 20), (tw + 30, h - 10), (0, 0, 0), -1
        )
        cv2.putText(
            canvas, status.message, (20, h - baseline - 15),
            cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2, cv2.LINE_AA,
        )
    return canvas
