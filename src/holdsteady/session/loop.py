"""The capture session loop.

Ties together the frame source, the detector, the stabilization engine
and the capture emitter: read -> detect -> stabilize -> capture -> repeat,
once per display refresh.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from holdsteady.capture.base import AcquisitionError, CaptureError, FrameSource
from holdsteady.detection.base import DetectionProvider, ProviderUnavailableError
from holdsteady.domain.models import (
    BoundingBox,
    CaptureArtifact,
    Frame,
    SessionStatus,
    TickReport,
)
from holdsteady.engine.emitter import CaptureEmitter, CropGeometryError
from holdsteady.engine.stabilizer import StabilizationEngine
from holdsteady.engine.status import project_status

logger = logging.getLogger(__name__)

CaptureCallback = Callable[..., Awaitable[None]]
TickObserver = Callable[[TickReport], None]


class CaptureSession:
    """One run of the engine bound to one camera and one detector.

    A tick reads the current frame, awaits the detector, feeds the result
    to the engine and, on a stability crossing, emits a capture to
    ``on_capture``. The next tick is scheduled only after the previous
    one has completed, so at most one detection is ever in flight and the
    engine sees exactly one update per completed detection.

    ``stop()`` ends the session: no further ticks are scheduled and a
    detection that completes afterwards is discarded. A session runs
    once; a stop requested before ``run()`` starts is honoured.
    """

    def __init__(
        self,
        source: FrameSource,
        detector: DetectionProvider,
        on_capture: CaptureCallback,
        engine: StabilizationEngine | None = None,
        emitter: CaptureEmitter | None = None,
        refresh_rate: float = 60.0,
        load_attempts: int = 1,
        max_consecutive_errors: int = 30,
        stop_after_capture: bool = False,
        ready_timeout: float = 10.0,
    ) -> None:
        self._source = source
        self._detector = detector
        self._on_capture = on_capture
        self._engine = engine or StabilizationEngine()
        self._emitter = emitter or CaptureEmitter()
        self._tick_interval = 1.0 / refresh_rate
        self._load_attempts = max(1, load_attempts)
        self._max_consecutive_errors = max_consecutive_errors
        self._stop_after_capture = stop_after_capture
        self._ready_timeout = ready_timeout

        self._observers: list[TickObserver] = []
        self._live = False
        self._stop_event = asyncio.Event()
        self._ticks = 0
        self._captures = 0
        self._consecutive_errors = 0
        self._provider_failed = False
        self._camera_failed = False
        self._status = self._project(accepted=False)

    @property
    def is_running(self) -> bool:
        return self._live

    @property
    def engine(self) -> StabilizationEngine:
        return self._engine

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def ticks(self) -> int:
        """Number of completed engine updates."""
        return self._ticks

    @property
    def captures(self) -> int:
        """Number of artifacts delivered to the capture callback."""
        return self._captures

    def add_observer(self, observer: TickObserver) -> None:
        """Register a callable notified with a TickReport after each tick."""
        self._observers.append(observer)

    def stop(self) -> None:
        """Signal the session to stop.

        Safe to call from an observer or the capture callback.
        """
        if self._live:
            logger.info("Capture session stop requested")
        self._live = False
        self._stop_event.set()

    async def run(self, max_ticks: int | None = None) -> int:
        """Run the session until stopped.

        Args:
            max_ticks: Optional number of engine updates after which the
                       session ends on its own.

        Returns:
            The number of captures delivered.

        Raises:
            AcquisitionError: If the camera cannot be acquired.
            CaptureError: If the camera delivers no frames.
        """
        if self._stop_event.is_set():
            logger.info("Capture session stopped before it started")
            return self._captures
        self._live = True
        self._engine.reset()
        self._publish()

        logger.info(
            "Capture session starting: %s detector on %s",
            self._detector.subject, self._source.describe(),
        )

        try:
            await self._prepare_camera()
            if not self._live:
                return self._captures
            if not await self._load_detector():
                return self._captures

            self._publish()
            while self._live:
                if max_ticks is not None and self._ticks >= max_ticks:
                    break
                await self._tick()
                if self._live:
                    await self._wait_next_tick()
        finally:
            self._live = False

        logger.info(
            "Capture session finished: ticks=%d, captures=%d", self._ticks, self._captures
        )
        return self._captures

    async def _prepare_camera(self) -> None:
        try:
            if not self._source.is_open:
                await self._source.open()
            if not self._source.ready.is_set():
                await self._source.wait_ready(self._ready_timeout)
        except CaptureError as e:
            self._camera_failed = True
            self._publish()
            if isinstance(e, AcquisitionError):
                logger.error("Camera acquisition failed: %s", e)
            else:
                logger.error("Camera produced no frames: %s", e)
            raise

    async def _load_detector(self) -> bool:
        """Load the detector, trying at most ``load_attempts`` times."""
        for attempt in range(1, self._load_attempts + 1):
            try:
                await self._detector.load()
                return True
            except ProviderUnavailableError as e:
                logger.error(
                    "Detector load failed (attempt %d/%d): %s",
                    attempt, self._load_attempts, e,
                )
        self._provider_failed = True
        self._publish()
        logger.error("%s detector unavailable, no detection will run", self._detector.subject)
        return False

    async def _tick(self) -> None:
        try:
            frame = await self._source.read_frame()
        except CaptureError as e:
            self._consecutive_errors += 1
            logger.warning(
                "Frame read failed (%d/%d): %s",
                self._consecutive_errors, self._max_consecutive_errors, e,
            )
            if self._consecutive_errors >= self._max_consecutive_errors:
                self._camera_failed = True
                self._publish()
                raise CaptureError("Too many consecutive frame read failures") from e
            return
        self._consecutive_errors = 0

        detection = await self._detect(frame)
        if not self._live:
            logger.debug("Discarding detection for frame %d after stop", frame.frame_number)
            return

        result = self._engine.update(detection, frame.width, frame.height)
        self._ticks += 1
        logger.debug(
            "Tick %d | accepted=%s counter=%d state=%s",
            self._ticks, result.accepted, result.counter, result.state.value,
        )

        if result.capture_box is not None:
            await self._capture(frame, result.capture_box)

        self._status = self._project(accepted=result.accepted)
        self._notify(TickReport(frame=frame, result=result, status=self._status, tick=self._ticks))

    async def _detect(self, frame: Frame) -> BoundingBox | None:
        """Run the detector; a failure counts as no detection."""
        try:
            return await self._detector.detect(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Detection failed on frame %d: %s", frame.frame_number, e)
            return None

    async def _capture(self, frame: Frame, box: BoundingBox) -> None:
        try:
            artifact: CaptureArtifact = self._emitter.emit(frame, box)
        except CropGeometryError as e:
            logger.error("Capture skipped: %s", e)
            return

        try:
            await self._on_capture(artifact)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Capture consumer failed: %s", e)
            return
        self._captures += 1

        if self._stop_after_capture:
            self.stop()

    async def _wait_next_tick(self) -> None:
        if self._tick_interval <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._tick_interval)
        except asyncio.TimeoutError:
            pass

    def _project(self, accepted: bool) -> SessionStatus:
        return project_status(
            counter=self._engine.counter,
            accepted=accepted,
            provider_ready=self._detector.is_ready,
            threshold=self._engine.threshold,
            subject=self._detector.subject,
            provider_failed=self._provider_failed,
            camera_failed=self._camera_failed,
        )

    def _publish(self) -> None:
        """Recompute the status outside a tick and notify observers."""
        self._status = self._project(accepted=False)
        self._notify(TickReport(status=self._status, tick=self._ticks))

    def _notify(self, report: TickReport) -> None:
        for observer in self._observers:
            try:
                observer(report)
            except Exception as e:
                logger.warning("Tick observer %r failed: %s", observer, e)
