"""Core domain models for the holdsteady system.

These models represent the data flowing through one capture session:
frames read from the camera, detections produced by the detector, the
engine's per-tick verdict, and the cropped artifact handed to consumers.
"""

from __future__ import annotations

import base64
import enum
import math
from datetime import datetime

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class FacingMode(str, enum.Enum):
    """Which way the requested camera faces."""

    USER = "user"  # Front / selfie camera
    ENVIRONMENT = "environment"  # Rear camera

    def toggled(self) -> FacingMode:
        return FacingMode.ENVIRONMENT if self is FacingMode.USER else FacingMode.USER


class DetectionMode(str, enum.Enum):
    """What kind of subject the session is looking for."""

    FACE = "face"
    DOCUMENT = "document"


class EngineState(str, enum.Enum):
    """Coarse state of the stabilization engine after a tick."""

    SEARCHING = "searching"  # No accepted box this tick
    UNSTABLE = "unstable"  # Accepted box, counter at zero
    STABILIZING = "stabilizing"  # Counter rising toward the threshold
    CAPTURED = "captured"  # Transient: threshold crossed this tick


class StatusKind(str, enum.Enum):
    """Category of the human-readable session status."""

    LOADING = "loading"
    UNAVAILABLE = "unavailable"
    CAMERA_ERROR = "camera_error"
    ALIGN = "align"
    HOLD_STEADY = "hold_steady"
    STABILIZING = "stabilizing"


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class Point(BaseModel):
    """A point in frame pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


class BoundingBox(BaseModel):
    """An axis-aligned detection box in frame pixel coordinates.

    Origin at top-left. Produced fresh each tick by a detector; boxes
    carry no identity across frames.
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(description="Left edge x-coordinate in pixels")
    y: float = Field(description="Top edge y-coordinate in pixels")
    width: float = Field(ge=0, description="Box width in pixels")
    height: float = Field(ge=0, description="Box height in pixels")

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Point:
        return Point(x=self.x + self.width / 2, y=self.y + self.height / 2)


class CropRegion(BaseModel):
    """Defines a rectangular crop region within a captured frame.

    Coordinates are in pixels, origin at top-left.
    """

    model_config = ConfigDict(frozen=True)

    x: int = Field(ge=0, description="Left edge x-coordinate in pixels")
    y: int = Field(ge=0, description="Top edge y-coordinate in pixels")
    width: int = Field(gt=0, description="Width of the crop region in pixels")
    height: int = Field(gt=0, description="Height of the crop region in pixels")


# ---------------------------------------------------------------------------
# Capture Models
# ---------------------------------------------------------------------------


class CameraSelection(BaseModel):
    """Which camera a frame source should acquire, and at what resolution.

    A device id, when present, takes priority over the facing mode.
    """

    model_config = ConfigDict(frozen=True)

    facing_mode: FacingMode = Field(default=FacingMode.USER)
    device_id: str | None = Field(default=None, description="Exact device identifier")
    ideal_width: int = Field(default=1920, gt=0)
    ideal_height: int = Field(default=1080, gt=0)

    def toggled(self) -> CameraSelection:
        """The opposite facing camera, dropping any explicit device id."""
        return self.model_copy(
            update={"facing_mode": self.facing_mode.toggled(), "device_id": None}
        )


class Frame(BaseModel):
    """A single frame read from the live camera stream.

    Contains the raw image data as a numpy array along with its pixel
    dimensions and metadata about when and where it was read.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: np.ndarray = Field(description="Raw image data as BGR numpy array (OpenCV format)")
    width: int = Field(default=0, ge=0, description="Frame width in pixels")
    height: int = Field(default=0, ge=0, description="Frame height in pixels")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the frame was read")
    frame_number: int = Field(default=0, ge=0, description="Sequential frame counter")
    source_device: str = Field(default="webcam", description="Identifier for the capture device")

    @model_validator(mode="after")
    def _fill_dimensions(self) -> Frame:
        h, w = self.image.shape[:2]
        self.width = w
        self.height = h
        return self


class CaptureArtifact(BaseModel):
    """The encoded crop produced on a stability crossing."""

    model_config = ConfigDict(frozen=True)

    image: bytes = Field(description="Encoded image bytes")
    media_type: str = Field(default="image/jpeg")
    crop: CropRegion = Field(description="Region of the original frame that was encoded")
    source_box: BoundingBox = Field(description="Detection box the crop was derived from")
    frame_number: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=datetime.now)

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.image).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


# ---------------------------------------------------------------------------
# Engine / Session Models
# ---------------------------------------------------------------------------


class TickResult(BaseModel):
    """What the stabilization engine decided for one tick."""

    model_config = ConfigDict(frozen=True)

    accepted: bool = Field(description="Whether a detection passed the acceptance test")
    box: BoundingBox | None = Field(default=None, description="The accepted box, if any")
    counter: int = Field(ge=0, description="Stability counter after this tick")
    smoothed_center: Point | None = Field(default=None)
    distance: float | None = Field(
        default=None, description="Movement distance, when a movement check ran"
    )
    capture_box: BoundingBox | None = Field(
        default=None, description="Box to capture when the threshold was crossed"
    )
    state: EngineState = Field(default=EngineState.SEARCHING)

    @property
    def should_capture(self) -> bool:
        return self.capture_box is not None


class SessionStatus(BaseModel):
    """Human-readable progress of a capture session."""

    model_config = ConfigDict(frozen=True)

    kind: StatusKind
    message: str
    progress: int = Field(default=0, ge=0, le=100)


class TickReport(BaseModel):
    """Observer payload published after every completed tick."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    frame: Frame | None = None
    result: TickResult | None = None
    status: SessionStatus
    tick: int = Field(default=0, ge=0)
