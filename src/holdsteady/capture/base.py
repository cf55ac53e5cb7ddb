"""Abstract base class for live frame sources.

A frame source owns exactly one live camera stream at a time. Switching
cameras is always a hard teardown of the current stream followed by a
fresh acquisition, never an in-place change of an open device.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from holdsteady.domain.models import CameraSelection, Frame

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """Abstract interface for a live camera stream.

    Implementations acquire a device for a ``CameraSelection``, expose the
    current frame with its pixel dimensions, and release the device on
    ``close()``. The ``ready`` event is set once the first frame has been
    read, which is the point at which frame dimensions are known.

    Example usage::

        async with WebcamFrameSource(selection) as source:
            await source.wait_ready()
            frame = await source.read_frame()
    """

    def __init__(self, selection: CameraSelection | None = None) -> None:
        self._selection = selection or CameraSelection()
        self._frame_counter: int = 0
        self._is_open: bool = False
        self._ready = asyncio.Event()

    @property
    def selection(self) -> CameraSelection:
        return self._selection

    @property
    def is_open(self) -> bool:
        """Whether a stream is currently acquired."""
        return self._is_open

    @property
    def ready(self) -> asyncio.Event:
        """Set once the first frame (and so its dimensions) is available."""
        return self._ready

    async def open(self) -> None:
        """Acquire the stream for the current selection.

        A device id is acquired exactly, with no fallback. A facing mode is
        first requested exactly; if that is rejected it is retried once
        without the exact qualifier.

        Raises:
            AcquisitionError: If the device cannot be acquired.
        """
        if self._is_open:
            return
        selection = self._selection
        if selection.device_id is not None:
            await self._acquire_device(selection.device_id)
        else:
            try:
                await self._acquire_facing(exact=True)
            except AcquisitionError as e:
                logger.warning(
                    "Exact %s camera rejected (%s), retrying without exact constraint",
                    selection.facing_mode.value, e,
                )
                await self._acquire_facing(exact=False)
        self._is_open = True
        self._frame_counter = 0
        self._ready.clear()

    async def close(self) -> None:
        """Stop the stream and release the device.

        Safe to call multiple times.
        """
        if self._is_open:
            await self._release()
        self._is_open = False
        self._ready.clear()

    async def select(self, selection: CameraSelection) -> None:
        """Switch to another camera.

        The previous stream is fully released before the new one is
        requested; some platforms serialize camera access and refuse a
        second open while the first is held.
        """
        await self.close()
        self._selection = selection
        await self.open()

    async def read_frame(self) -> Frame:
        """Read the current frame from the stream.

        Raises:
            CaptureError: If the stream is not open or the read fails.
        """
        if not self._is_open:
            raise CaptureError("Frame source is not open")
        image = await self._read()
        self._frame_counter += 1
        frame = Frame(
            image=image,
            frame_number=self._frame_counter,
            source_device=self.describe(),
        )
        if not self._ready.is_set():
            logger.info(
                "Stream ready on %s (%dx%d)", frame.source_device, frame.width, frame.height
            )
            self._ready.set()
        return frame

    async def wait_ready(self, timeout: float | None = None) -> Frame:
        """Read frames until the stream delivers one, then return it.

        Raises:
            CaptureError: If no frame arrives within ``timeout`` seconds.
        """
        async def _first_frame() -> Frame:
            while True:
                try:
                    return await self.read_frame()
                except CaptureError as e:
                    if not self._is_open:
                        raise
                    logger.debug("Waiting for first frame: %s", e)
                    await asyncio.sleep(0.05)

        try:
            return await asyncio.wait_for(_first_frame(), timeout)
        except asyncio.TimeoutError as e:
            raise CaptureError(
                f"No frame from {self.describe()} within {timeout}s"
            ) from e

    def describe(self) -> str:
        """Short identifier of the selected device, for logs and frames."""
        s = self._selection
        if s.device_id is not None:
            return f"device:{s.device_id}"
        return f"facing:{s.facing_mode.value}"

    @abstractmethod
    async def _acquire_device(self, device_id: str) -> None:
        """Open exactly the identified device or raise AcquisitionError."""
        ...

    @abstractmethod
    async def _acquire_facing(self, exact: bool) -> None:
        """Open a camera for the selected facing mode or raise AcquisitionError."""
        ...

    @abstractmethod
    async def _release(self) -> None:
        """Stop every track of the current stream."""
        ...

    @abstractmethod
    async def _read(self):
        """Return the current image as a BGR numpy array or raise CaptureError."""
        ...

    async def __aenter__(self) -> FrameSource:
        """Async context manager entry -- acquires the stream."""
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Async context manager exit -- releases the stream."""
        await self.close()


class CaptureError(Exception):
    """Raised when reading from the frame source fails."""


class AcquisitionError(CaptureError):
    """Raised when a camera cannot be acquired for a selection."""

    def __init__(self, message: str, device: str = "") -> None:
        super().__init__(message)
        self.device = device
