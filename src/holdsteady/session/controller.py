"""Session lifecycle management.

The controller owns the frame source, one detector per detection mode
and the running session. Any change of camera or detection mode tears
the running session down completely and starts a fresh one with a fresh
engine.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from holdsteady.capture.base import CaptureError, FrameSource
from holdsteady.config.settings import Settings
from holdsteady.detection import create_detector
from holdsteady.detection.base import DetectionProvider
from holdsteady.domain.models import (
    CameraSelection,
    DetectionMode,
    SessionStatus,
)
from holdsteady.engine.emitter import CaptureEmitter
from holdsteady.engine.stabilizer import StabilizationEngine
from holdsteady.engine.status import project_status
from holdsteady.session.loop import CaptureCallback, CaptureSession, TickObserver

logger = logging.getLogger(__name__)


class CaptureController:
    """Starts, switches and stops capture sessions.

    Example usage::

        controller = CaptureController(source, on_capture=sink, settings=settings)
        await controller.start()
        await controller.switch_camera()
        await controller.set_mode(DetectionMode.DOCUMENT)
        await controller.stop()
    """

    def __init__(
        self,
        source: FrameSource,
        on_capture: CaptureCallback,
        settings: Settings | None = None,
        detector_factory: Callable[[DetectionMode], DetectionProvider] | None = None,
        mode: DetectionMode | None = None,
        selection: CameraSelection | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._source = source
        self._on_capture = on_capture
        self._detector_factory = detector_factory or (
            lambda m: create_detector(m, self._settings.detection)
        )
        self._mode = mode or self._settings.detection.mode
        self._selection = selection or self._settings.camera.selection()
        self._detectors: dict[DetectionMode, DetectionProvider] = {}
        self._observers: list[TickObserver] = []
        self._session: CaptureSession | None = None
        self._task: asyncio.Task | None = None
        self._camera_failed = False

    @property
    def mode(self) -> DetectionMode:
        return self._mode

    @property
    def selection(self) -> CameraSelection:
        return self._selection

    @property
    def session(self) -> CaptureSession | None:
        return self._session

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def status(self) -> SessionStatus:
        if self._camera_failed:
            return project_status(0, False, False, 1, camera_failed=True)
        if self._session is not None:
            return self._session.status
        return project_status(
            0, False, False, 1, subject=self._mode.value
        )

    def add_observer(self, observer: TickObserver) -> None:
        """Register an observer for the current and every future session."""
        self._observers.append(observer)
        if self._session is not None:
            self._session.add_observer(observer)

    async def start(self) -> None:
        """Tear down any running session and start a new one.

        Raises:
            AcquisitionError: If the selected camera cannot be acquired.
        """
        await self._teardown()

        if not self._source.is_open or self._source.selection != self._selection:
            try:
                await self._source.select(self._selection)
            except CaptureError:
                self._camera_failed = True
                raise
        self._camera_failed = False

        session = self._build_session()
        self._session = session
        self._task = asyncio.create_task(session.run(), name=f"capture-session-{self._mode.value}")
        logger.info(
            "Started %s session on %s", self._mode.value, self._source.describe()
        )

    async def switch_camera(self) -> None:
        """Toggle between the user-facing and environment-facing camera."""
        self._selection = self._selection.toggled()
        logger.info("Switching camera to %s", self._selection.facing_mode.value)
        await self.start()

    async def set_mode(self, mode: DetectionMode) -> None:
        """Switch the detection mode, restarting the session."""
        if mode is self._mode and self.is_running:
            return
        self._mode = mode
        logger.info("Switching detection mode to %s", mode.value)
        await self.start()

    async def wait(self) -> int:
        """Wait for the current session to end and return its capture count.

        Re-raises the session's terminal error, if any.
        """
        if self._task is None:
            return 0
        return await self._task

    async def stop(self) -> None:
        """Stop the session and release the camera and detectors."""
        await self._teardown()
        await self._source.close()
        for detector in self._detectors.values():
            await detector.close()
        self._detectors.clear()
        logger.info("Capture controller stopped")

    def _detector_for(self, mode: DetectionMode) -> DetectionProvider:
        detector = self._detectors.get(mode)
        if detector is None:
            detector = self._detector_factory(mode)
            self._detectors[mode] = detector
        return detector

    def _build_session(self) -> CaptureSession:
        s = self._settings
        session = CaptureSession(
            source=self._source,
            detector=self._detector_for(self._mode),
            on_capture=self._on_capture,
            engine=StabilizationEngine(s.stabilization),
            emitter=CaptureEmitter(
                padding=s.capture.crop_padding, quality=s.capture.encode_quality
            ),
            refresh_rate=s.session.refresh_rate,
            load_attempts=s.detection.load_attempts,
            max_consecutive_errors=s.session.max_consecutive_errors,
            stop_after_capture=s.session.stop_after_capture,
            ready_timeout=s.camera.ready_timeout,
        )
        for observer in self._observers:
            session.add_observer(observer)
        return session

    async def _teardown(self) -> None:
        session, task = self._session, self._task
        self._task = None
        if session is not None:
            session.stop()
        if task is not None:
            # An in-flight detection is abandoned, not awaited
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.debug("Previous session cancelled")
            except CaptureError as e:
                logger.warning("Previous session ended with error: %s", e)
