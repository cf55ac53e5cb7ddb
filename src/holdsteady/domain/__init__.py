"""Domain models for holdsteady.

This package contains all core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation and serialization.
"""

from holdsteady.domain.models import (
    BoundingBox,
    CameraSelection,
    CaptureArtifact,
    CropRegion,
    DetectionMode,
    EngineState,
    FacingMode,
    Frame,
    Point,
    SessionStatus,
    StatusKind,
    TickReport,
    TickResult,
)

__all__ = [
    "BoundingBox",
    "CameraSelection",
    "CaptureArtifact",
    "CropRegion",
    "DetectionMode",
    "EngineState",
    "FacingMode",
    "Frame",
    "Point",
    "SessionStatus",
    "StatusKind",
    "TickReport",
    "TickResult",
]
