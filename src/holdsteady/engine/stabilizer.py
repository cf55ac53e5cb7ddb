"""The stabilization engine: decides when a subject has been held still.

Each tick the engine receives at most one detection plus the frame size.
A detection counts only if it is large enough and centered. Accepted
centers are smoothed with an exponential moving average, and a bounded
counter rises while the smoothed center stays within a small distance of
the previous accepted box. Reaching the threshold requests one capture
and resets the counter.

Counter rates are asymmetric: +1 per steady tick, -2 when movement is
observed, -1 when a tick has no accepted detection.
"""

from __future__ import annotations

import logging

from holdsteady.config.settings import StabilizationConfig
from holdsteady.domain.models import BoundingBox, EngineState, Point, TickResult

logger = logging.getLogger(__name__)

MOVEMENT_PENALTY = 2
DROPOUT_PENALTY = 1


class StabilizationEngine:
    """Per-session stability tracker.

    Owns the smoothed center, the stability counter and the previous
    accepted box for one session. ``reset()`` discards all three.
    """

    def __init__(self, config: StabilizationConfig | None = None) -> None:
        self._config = config or StabilizationConfig()
        self._counter: int = 0
        self._smoothed: Point | None = None
        self._previous_box: BoundingBox | None = None
        self._state = EngineState.SEARCHING
        self._captures: int = 0

    @property
    def config(self) -> StabilizationConfig:
        return self._config

    @property
    def threshold(self) -> int:
        return self._config.stability_threshold

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def smoothed_center(self) -> Point | None:
        return self._smoothed

    @property
    def previous_box(self) -> BoundingBox | None:
        return self._previous_box

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def capture_count(self) -> int:
        """Number of threshold crossings since the last reset."""
        return self._captures

    def reset(self) -> None:
        self._counter = 0
        self._smoothed = None
        self._previous_box = None
        self._state = EngineState.SEARCHING
        self._captures = 0

    def accepts(self, box: BoundingBox, frame_width: int, frame_height: int) -> bool:
        """Whether ``box`` is large enough and centered in the frame.

        Both tests are strict: a box covering exactly the minimum area, or
        centered exactly on a window edge, is rejected.
        """
        cfg = self._config
        frame_area = frame_width * frame_height
        if not box.area > frame_area * cfg.min_area_fraction:
            return False
        lo, hi = cfg.center_window
        c = box.center
        return (
            frame_width * lo < c.x < frame_width * hi
            and frame_height * lo < c.y < frame_height * hi
        )

    def update(
        self,
        detection: BoundingBox | None,
        frame_width: int,
        frame_height: int,
    ) -> TickResult:
        """Advance the engine by one tick."""
        cfg = self._config
        accepted = (
            detection is not None
            and frame_width > 0
            and frame_height > 0
            and self.accepts(detection, frame_width, frame_height)
        )

        if not accepted:
            self._counter = max(0, self._counter - DROPOUT_PENALTY)
            self._smoothed = None
            self._state = EngineState.SEARCHING
            return TickResult(accepted=False, counter=self._counter, state=self._state)

        current = detection.center
        if self._smoothed is None:
            self._smoothed = current
        else:
            a = cfg.ema_alpha
            self._smoothed = Point(
                x=self._smoothed.x * (1 - a) + current.x * a,
                y=self._smoothed.y * (1 - a) + current.y * a,
            )

        previous = self._previous_box
        distance: float | None = None
        capture_box: BoundingBox | None = None

        if previous is not None:
            move_limit = frame_width * cfg.relative_movement_limit
            distance = self._smoothed.distance_to(previous.center)
            moved = distance > move_limit
        else:
            moved = False

        if moved:
            self._counter = max(0, self._counter - MOVEMENT_PENALTY)
            logger.debug("Movement %.1fpx over limit, counter=%d", distance, self._counter)
        else:
            self._counter = min(self._counter + 1, self.threshold)
            if self._counter >= self.threshold:
                capture_box = previous if previous is not None else detection
                self._counter = 0
                self._captures += 1
                logger.info(
                    "Subject stable for %d ticks, requesting capture", self.threshold
                )

        self._previous_box = detection

        if capture_box is not None:
            self._state = EngineState.CAPTURED
        elif self._counter > 0:
            self._state = EngineState.STABILIZING
        else:
            self._state = EngineState.UNSTABLE

        return TickResult(
            accepted=True,
            box=detection,
            counter=self._counter,
            smoothed_center=self._smoothed,
            distance=distance,
            capture_box=capture_box,
            state=self._state,
        )
