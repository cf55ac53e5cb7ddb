"""Webcam frame source implementation using OpenCV.

Maps camera selections onto OpenCV devices: a device id is an integer
index or a path/URL, and each facing mode is backed by a configured
device index.
"""

from __future__ import annotations

import asyncio
import logging

import cv2
import numpy as np

from holdsteady.capture.base import AcquisitionError, CaptureError, FrameSource
from holdsteady.domain.models import CameraSelection, FacingMode

logger = logging.getLogger(__name__)


class WebcamFrameSource(FrameSource):
    """Reads frames from a local camera using OpenCV.

    Runs OpenCV's blocking open/read/release calls in a thread pool
    executor to avoid blocking the async event loop.
    """

    def __init__(
        self,
        selection: CameraSelection | None = None,
        facing_devices: dict[FacingMode, int] | None = None,
        probe_limit: int = 4,
    ) -> None:
        super().__init__(selection=selection)
        self._facing_devices = facing_devices or {
            FacingMode.USER: 0,
            FacingMode.ENVIRONMENT: 1,
        }
        self._probe_limit = probe_limit
        self._cap: cv2.VideoCapture | None = None
        self._device_label = ""

    async def _acquire_device(self, device_id: str) -> None:
        """Open exactly the identified device."""
        target: int | str = int(device_id) if device_id.isdigit() else device_id
        if not await self._try_open(target):
            raise AcquisitionError(
                f"Failed to open camera device {device_id}", device=device_id
            )

    async def _acquire_facing(self, exact: bool) -> None:
        """Open the device backing the selected facing mode.

        Exact acquisition only accepts the mapped device. Relaxed
        acquisition also accepts the first other device that opens.
        """
        facing = self._selection.facing_mode
        mapped = self._facing_devices.get(facing)
        candidates: list[int] = [] if mapped is None else [mapped]
        if not exact:
            candidates += [i for i in range(self._probe_limit) if i != mapped]
        for index in candidates:
            if await self._try_open(index):
                if index != mapped:
                    logger.info(
                        "No %s camera at index %s, using device %d instead",
                        facing.value, mapped, index,
                    )
                return
        raise AcquisitionError(
            f"No camera available for facing mode {facing.value!r}"
            f" ({'exact' if exact else 'relaxed'})",
            device=str(mapped) if mapped is not None else "",
        )

    async def _try_open(self, target: int | str) -> bool:
        loop = asyncio.get_running_loop()
        cap = await loop.run_in_executor(None, cv2.VideoCapture, target)
        if not cap.isOpened():
            await loop.run_in_executor(None, cap.release)
            logger.debug("Camera %s did not open", target)
            return False
        s = self._selection
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, s.ideal_width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, s.ideal_height)
        self._cap = cap
        self._device_label = str(target)
        actual_w = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(
            "Opened camera %s (%dx%d, requested %dx%d)",
            target, actual_w, actual_h, s.ideal_width, s.ideal_height,
        )
        return True

    async def _release(self) -> None:
        """Release the camera device."""
        cap, self._cap = self._cap, None
        if cap is not None:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, cap.release)
            logger.info("Released camera %s", self._device_label)

    async def _read(self) -> np.ndarray:
        if self._cap is None:
            raise CaptureError("Camera is not open")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_sync)

    def _read_sync(self) -> np.ndarray:
        """Synchronous frame read (runs in thread pool)."""
        cap = self._cap
        if cap is None:
            raise CaptureError("Camera is not open")
        ret, frame = cap.read()
        if not ret or frame is None:
            raise CaptureError(f"Failed to read frame from camera {self._device_label}")
        return frame

    def describe(self) -> str:
        if self._device_label:
            return f"webcam:{self._device_label}"
        return super().describe()
