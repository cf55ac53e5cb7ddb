"""Shared test fixtures for the holdsteady test suite.

Provides common fixtures used across unit tests: sample frames, a
scriptable in-memory frame source, and a scriptable detector.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import numpy as np
import pytest

from holdsteady.capture.base import AcquisitionError, CaptureError, FrameSource
from holdsteady.config.settings import StabilizationConfig
from holdsteady.detection.base import DetectionProvider, ProviderUnavailableError
from holdsteady.domain.models import BoundingBox, CameraSelection, Frame


FRAME_WIDTH = 1280
FRAME_HEIGHT = 720


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeFrameSource(FrameSource):
    """In-memory frame source that records every lifecycle call.

    ``reject_exact`` makes exact facing acquisition fail, ``reject_relaxed``
    makes the relaxed retry fail too, and ``reject_devices`` lists device
    ids that cannot be opened.
    """

    def __init__(
        self,
        selection: CameraSelection | None = None,
        image: np.ndarray | None = None,
        reject_exact: bool = False,
        reject_relaxed: bool = False,
        reject_devices: tuple[str, ...] = (),
        read_failures: int = 0,
    ) -> None:
        super().__init__(selection=selection)
        self.image = image if image is not None else np.zeros(
            (FRAME_HEIGHT, FRAME_WIDTH, 3), dtype=np.uint8
        )
        self.reject_exact = reject_exact
        self.reject_relaxed = reject_relaxed
        self.reject_devices = reject_devices
        self.read_failures = read_failures
        self.events: list[str] = []

    async def _acquire_device(self, device_id: str) -> None:
        self.events.append(f"acquire:device:{device_id}")
        if device_id in self.reject_devices:
            raise AcquisitionError(f"device {device_id} busy", device=device_id)

    async def _acquire_facing(self, exact: bool) -> None:
        kind = "exact" if exact else "relaxed"
        facing = self._selection.facing_mode.value
        self.events.append(f"acquire:{kind}:{facing}")
        if (exact and self.reject_exact) or (not exact and self.reject_relaxed):
            raise AcquisitionError(f"{kind} {facing} rejected")

    async def _release(self) -> None:
        self.events.append("release")

    async def _read(self) -> np.ndarray:
        if self.read_failures > 0:
            self.read_failures -= 1
            raise CaptureError("no frame yet")
        return self.image


class ScriptedDetector(DetectionProvider):
    """Detector that replays a script of results, one per call.

    Script entries are boxes, ``None`` or exceptions (raised). Once the
    script is exhausted ``default`` is returned.
    """

    def __init__(
        self,
        script: list | None = None,
        default: BoundingBox | None = None,
        fail_load: bool = False,
        subject: str = "face",
    ) -> None:
        super().__init__()
        self.script = list(script or [])
        self.default = default
        self.fail_load = fail_load
        self.load_calls = 0
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self._subject = subject

    @property
    def subject(self) -> str:
        return self._subject

    async def _load(self) -> None:
        self.load_calls += 1
        if self.fail_load:
            raise ProviderUnavailableError("model file missing")

    async def detect(self, frame: Frame) -> BoundingBox | None:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            item = self.script.pop(0) if self.script else self.default
            if isinstance(item, Exception):
                raise item
            return item
        finally:
            self.in_flight -= 1


# ---------------------------------------------------------------------------
# Frame / Geometry Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_image() -> np.ndarray:
    """A 1280x720 black image."""
    return np.zeros((FRAME_HEIGHT, FRAME_WIDTH, 3), dtype=np.uint8)


@pytest.fixture
def sample_frame(sample_image: np.ndarray) -> Frame:
    """A Frame wrapping the sample image."""
    return Frame(
        image=sample_image,
        timestamp=datetime(2025, 1, 1, 12, 0, 0),
        frame_number=1,
        source_device="test",
    )


@pytest.fixture
def centered_box() -> BoundingBox:
    """A box centered in a 1280x720 frame, covering ~13% of it."""
    return BoundingBox(x=440, y=210, width=400, height=300)


@pytest.fixture
def stabilization_config() -> StabilizationConfig:
    return StabilizationConfig()


# ---------------------------------------------------------------------------
# Fake Component Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_source() -> FakeFrameSource:
    return FakeFrameSource()


@pytest.fixture
def steady_detector(centered_box: BoundingBox) -> ScriptedDetector:
    """A detector that reports the same centered box every tick."""
    return ScriptedDetector(default=centered_box)


@pytest.fixture
def make_source() -> type[FakeFrameSource]:
    """The FakeFrameSource class, for tests that need custom options."""
    return FakeFrameSource


@pytest.fixture
def make_detector() -> type[ScriptedDetector]:
    """The ScriptedDetector class, for tests that need custom scripts."""
    return ScriptedDetector
