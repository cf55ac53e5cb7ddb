"""Cuts the padded capture region out of a frame and encodes it."""

from __future__ import annotations

import logging

from holdsteady.domain.models import BoundingBox, CaptureArtifact, CropRegion, Frame
from holdsteady.utils.imaging import encode_jpeg

logger = logging.getLogger(__name__)


class CaptureEmitter:
    """Produces one encoded crop per stability crossing.

    The crop is the locked-in box grown by ``padding`` pixels on every
    side and clamped to the frame, taken from the undecorated frame.
    """

    def __init__(self, padding: int = 40, quality: float = 0.9) -> None:
        self._padding = padding
        self._quality = quality

    @property
    def padding(self) -> int:
        return self._padding

    @property
    def quality(self) -> float:
        return self._quality

    def compute_crop(self, box: BoundingBox, frame_width: int, frame_height: int) -> CropRegion:
        """Padded, frame-clamped crop geometry for ``box``.

        Raises:
            CropGeometryError: If the clamped region is empty.
        """
        p = self._padding
        sx = max(0, int(round(box.x - p)))
        sy = max(0, int(round(box.y - p)))
        sw = min(frame_width - sx, int(round(box.width + 2 * p)))
        sh = min(frame_height - sy, int(round(box.height + 2 * p)))
        if sw <= 0 or sh <= 0:
            raise CropGeometryError(
                f"Degenerate crop {sw}x{sh} at ({sx},{sy}) for frame {frame_width}x{frame_height}"
            )
        return CropRegion(x=sx, y=sy, width=sw, height=sh)

    def emit(self, frame: Frame, box: BoundingBox) -> CaptureArtifact:
        """Crop ``frame`` around ``box`` and encode the result.

        Raises:
            CropGeometryError: If the crop is empty or cannot be encoded.
        """
        crop = self.compute_crop(box, frame.width, frame.height)
        region = frame.image[crop.y : crop.y + crop.height, crop.x : crop.x + crop.width]
        try:
            data = encode_jpeg(region, self._quality)
        except ValueError as e:
            raise CropGeometryError(str(e)) from e
        logger.info(
            "Captured %dx%d region at (%d,%d) from frame %d (%d bytes)",
            crop.width, crop.height, crop.x, crop.y, frame.frame_number, len(data),
        )
        return CaptureArtifact(
            image=data,
            crop=crop,
            source_box=box,
            frame_number=frame.frame_number,
            timestamp=frame.timestamp,
        )


class CropGeometryError(Exception):
    """Raised when a capture region cannot be produced."""
